"""Greedy proximity clustering of one lane's events."""

from __future__ import annotations

from datetime import tzinfo
from typing import Iterable, Optional, Sequence

from dosage_timeline.schema import ClusterGroup, ClusterKey, Clustered, Event, Single
from dosage_timeline.time_mapper import BASE_DAY_MINUTES, localize, ordinate
from dosage_timeline.units import BASE_UNIT, to_base_quantity

__all__ = ["cluster", "cluster_key", "position_events", "summarize_cluster"]


def position_events(
    events: Iterable[Event],
    zoom: float,
    base_minutes: int = BASE_DAY_MINUTES,
    tz: Optional[tzinfo] = None,
) -> list[Single]:
    """Map events to true ordinates, sorted by ordinate ascending.

    Aware timestamps are read on the clock of ``tz`` when it is given, so a
    marker lands at the local time of the day bucket it was grouped into.
    Equal ordinates fall back to the later timestamp first, then input order.
    """

    by_time = sorted(events, key=lambda e: e.timestamp, reverse=True)
    positioned = [
        Single(event, ordinate(localize(event.timestamp, tz), zoom, base_minutes)) for event in by_time
    ]
    return sorted(positioned, key=lambda item: item.ordinate)


def _close_group(group: list[Single]) -> Clustered:
    if len(group) == 1:
        return group[0]

    members = tuple(item.event for item in group)
    ordinates = tuple(item.ordinate for item in group)
    return ClusterGroup(
        lane=members[0].lane,
        members=members,
        ordinates=ordinates,
        representative_ordinate=sum(ordinates) / len(ordinates),
        aggregate_quantity=sum(to_base_quantity(e.quantity, e.unit) for e in members),
        latest_timestamp=max(e.timestamp for e in members),
    )


def cluster(positioned: Sequence[Single], threshold: float) -> list[Clustered]:
    """Partition sorted positioned events into singles and cluster groups.

    Single left-to-right pass: the next item joins the open group while its gap
    to the group's last member is below ``threshold``. Boundaries are never
    rebalanced afterwards.
    """

    if threshold < 0:
        raise ValueError(f"Cluster threshold must be non-negative, got {threshold}")

    groups: list[Clustered] = []
    current: list[Single] = []
    for item in positioned:
        if current and item.ordinate - current[-1].ordinate < threshold:
            current.append(item)
            continue
        if current:
            groups.append(_close_group(current))
        current = [item]
    if current:
        groups.append(_close_group(current))
    return groups


def cluster_key(group: ClusterGroup) -> ClusterKey:
    return group.key


def _format_span(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


def summarize_cluster(group: ClusterGroup) -> str:
    """Short label for a collapsed cluster, e.g. ``3 doses, 45 mg over 25m``."""

    earliest = min(e.timestamp for e in group.members)
    span = int((group.latest_timestamp - earliest).total_seconds())
    quantity = f"{group.aggregate_quantity:g} {BASE_UNIT}"
    return f"{group.size} doses, {quantity} over {_format_span(span)}"
