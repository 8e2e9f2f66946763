"""Time-of-day to pixel ordinate mapping."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

BASE_DAY_MINUTES = 1440


def _check_zoom(zoom: float) -> None:
    if zoom <= 0:
        raise ValueError(f"Zoom must be positive, got {zoom}")


def day_height(zoom: float, base_minutes: int = BASE_DAY_MINUTES) -> float:
    """Pixel height of one day block at the given zoom."""

    _check_zoom(zoom)
    return float(base_minutes) * zoom


def localize(timestamp: datetime, tz: Optional[tzinfo]) -> datetime:
    """Read an aware timestamp on the clock of ``tz``; naive ones pass through."""

    if tz is not None and timestamp.tzinfo is not None:
        return timestamp.astimezone(tz)
    return timestamp


def ordinate_from_minutes(minutes_of_day: int, zoom: float, base_minutes: int = BASE_DAY_MINUTES) -> float:
    _check_zoom(zoom)
    return float(base_minutes - minutes_of_day) * zoom


def ordinate(timestamp: datetime, zoom: float, base_minutes: int = BASE_DAY_MINUTES) -> float:
    """Return the true ordinate of a timestamp inside its day block.

    Later times map to smaller ordinates, so midnight sits at the bottom
    (``base_minutes * zoom``) and the end of the day near zero.
    """

    return ordinate_from_minutes(timestamp.hour * 60 + timestamp.minute, zoom, base_minutes)


def minutes_at(position: float, zoom: float, base_minutes: int = BASE_DAY_MINUTES) -> int:
    """Inverse of :func:`ordinate`: minutes-of-day under a pixel position."""

    height = day_height(zoom, base_minutes)
    clamped = min(max(position, 0.0), height)
    return int(round(base_minutes - clamped / zoom))
