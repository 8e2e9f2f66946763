"""Zoom levels and day-ruler tick spacing."""

from __future__ import annotations

from dosage_timeline.schema import TickMark, TickPlan
from dosage_timeline.time_mapper import BASE_DAY_MINUTES, ordinate_from_minutes

ZOOM_LEVELS = (0.25, 0.5, 1, 2, 3, 5, 10)

DEFAULT_ZOOM = 1

# (highest zoom for the row, tick interval minutes, label interval minutes)
TICK_TABLE = (
    (0.25, 60, 360),
    (0.5, 30, 180),
    (1, 20, 120),
    (2, 10, 60),
    (3, 5, 30),
    (5, 2, 10),
    (10, 1, 5),
)


def validate_zoom(zoom: float) -> float:
    if zoom not in ZOOM_LEVELS:
        raise ValueError(f"Zoom level must be one of {list(ZOOM_LEVELS)}, got {zoom}")
    return zoom


def tick_plan(zoom: float) -> TickPlan:
    """Pick tick and label spacing for a zoom level.

    Uses the first row whose threshold the zoom does not exceed; anything past
    the last threshold gets the finest spacing.
    """

    if zoom <= 0:
        raise ValueError(f"Zoom must be positive, got {zoom}")

    for threshold, tick_minutes, label_minutes in TICK_TABLE:
        if zoom <= threshold:
            return TickPlan(zoom, tick_minutes, label_minutes)
    _, tick_minutes, label_minutes = TICK_TABLE[-1]
    return TickPlan(zoom, tick_minutes, label_minutes)


def tick_marks(zoom: float, base_minutes: int = BASE_DAY_MINUTES) -> list[TickMark]:
    """Ruler marks for one day block, midnight to midnight.

    The top of the block always gets a mark, even when ``base_minutes`` is not
    a multiple of the tick interval.
    """

    plan = tick_plan(zoom)
    minutes = list(range(0, base_minutes + 1, plan.tick_interval_minutes))
    if minutes[-1] != base_minutes:
        minutes.append(base_minutes)
    return [
        TickMark(
            minutes=minute,
            ordinate=ordinate_from_minutes(minute, zoom, base_minutes),
            is_label=minute % plan.label_interval_minutes == 0,
        )
        for minute in minutes
    ]


def zoom_in(zoom: float) -> float:
    """Next finer zoom level, or the same level at the top of the range."""

    index = ZOOM_LEVELS.index(validate_zoom(zoom))
    return ZOOM_LEVELS[min(index + 1, len(ZOOM_LEVELS) - 1)]


def zoom_out(zoom: float) -> float:
    index = ZOOM_LEVELS.index(validate_zoom(zoom))
    return ZOOM_LEVELS[max(index - 1, 0)]
