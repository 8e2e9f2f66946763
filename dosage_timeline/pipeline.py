"""Render pipeline: events to per-day, per-lane layout."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, tzinfo
from typing import AbstractSet, Iterable, Optional

from dosage_timeline.clusterer import cluster, position_events, summarize_cluster
from dosage_timeline.config import EngineConfig
from dosage_timeline.day_grouper import group_by_day
from dosage_timeline.layout import solve_lane_layout
from dosage_timeline.schema import (
    ClusterGroup,
    ClusterKey,
    DayBucket,
    DayLayout,
    Event,
    LaneLayout,
    LayoutItem,
    Single,
    TimelineView,
)
from dosage_timeline.ticks import tick_marks, tick_plan, validate_zoom
from dosage_timeline.time_mapper import day_height, ordinate

logger = logging.getLogger(__name__)

ExpansionState = AbstractSet[ClusterKey]


def toggle_expansion(expanded: ExpansionState, key: ClusterKey) -> frozenset:
    """Return a new expansion set with ``key`` flipped."""

    if key in expanded:
        return frozenset(expanded - {key})
    return frozenset(expanded | {key})


def layout_lane(
    lane: str,
    events: Iterable[Event],
    zoom: float,
    expanded: ExpansionState,
    config: EngineConfig,
    tz: Optional[tzinfo] = None,
) -> LaneLayout:
    """Cluster one lane and place its individually visible markers."""

    positioned = position_events(events, zoom, config.base_minutes, tz)
    groups = cluster(positioned, config.cluster_threshold)

    visible: list[tuple[Single, Optional[ClusterKey]]] = []
    collapsed: list[ClusterGroup] = []
    for group in groups:
        if isinstance(group, Single):
            visible.append((group, None))
        elif group.key in expanded:
            visible.extend((Single(e, o), group.key) for e, o in zip(group.members, group.ordinates))
        else:
            collapsed.append(group)

    visible.sort(key=lambda pair: pair[0].ordinate)
    # Solver ids are list positions; event ids need not be unique.
    placements = solve_lane_layout(
        [(str(index), item.ordinate) for index, (item, _) in enumerate(visible)],
        config.min_separation,
        passes=config.relaxation_passes,
        damping=config.damping,
        tolerance=config.convergence_tolerance,
    )
    display_at = {int(placement.id): placement.display_ordinate for placement in placements}

    items = []
    for index, (item, key) in enumerate(visible):
        display = display_at[index]
        items.append(
            LayoutItem(
                event=item.event,
                true_ordinate=item.ordinate,
                display_ordinate=display,
                connector=abs(display - item.ordinate) > config.connector_tolerance,
                cluster_key=key,
            )
        )

    logger.debug(
        "Lane %s: %d visible, %d collapsed clusters", lane, len(items), len(collapsed)
    )
    return LaneLayout(lane=lane, items=tuple(items), clusters=tuple(collapsed))


def layout_day(
    bucket: DayBucket,
    zoom: float,
    expanded: ExpansionState,
    config: EngineConfig,
    now: Optional[datetime] = None,
) -> DayLayout:
    """Lay out every lane of one day independently."""

    tz = now.tzinfo if now is not None else None
    by_lane: dict[str, list[Event]] = defaultdict(list)
    for event in bucket.events:
        by_lane[event.lane].append(event)

    lanes = tuple(
        layout_lane(lane, by_lane[lane], zoom, expanded, config, tz)
        for lane in sorted(by_lane)
    )

    now_ordinate = None
    if now is not None and now.date() == bucket.date:
        now_ordinate = ordinate(now, zoom, config.base_minutes)

    return DayLayout(
        date=bucket.date,
        day_height=day_height(zoom, config.base_minutes),
        lanes=lanes,
        now_ordinate=now_ordinate,
    )


def build_timeline(
    events: Iterable[Event],
    now: datetime,
    zoom: float,
    expanded: ExpansionState = frozenset(),
    config: Optional[EngineConfig] = None,
) -> TimelineView:
    """Recompute the full render model from an event snapshot."""

    config = config or EngineConfig()
    validate_zoom(zoom)

    buckets = group_by_day(events, now)
    days = tuple(layout_day(bucket, zoom, expanded, config, now=now) for bucket in buckets)
    logger.debug("Built timeline: %d days at zoom %s", len(days), zoom)

    return TimelineView(
        zoom=zoom,
        tick_plan=tick_plan(zoom),
        tick_marks=tuple(tick_marks(zoom, config.base_minutes)),
        days=days,
    )


def _event_to_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "lane": event.lane,
        "timestamp": event.timestamp.isoformat(),
        "quantity": event.quantity,
        "unit": event.unit,
        "category": event.category,
    }


def view_to_dict(view: TimelineView) -> dict:
    """JSON-ready form of a render model."""

    return {
        "zoom": view.zoom,
        "tick_plan": {
            "tick_interval_minutes": view.tick_plan.tick_interval_minutes,
            "label_interval_minutes": view.tick_plan.label_interval_minutes,
        },
        "days": [
            {
                "date": day.date.isoformat(),
                "day_height": day.day_height,
                "now_ordinate": day.now_ordinate,
                "lanes": [
                    {
                        "lane": lane.lane,
                        "items": [
                            {
                                "event": _event_to_dict(item.event),
                                "dot": item.true_ordinate,
                                "panel": item.display_ordinate,
                                "connector": item.connector,
                                "cluster_key": list(item.cluster_key) if item.cluster_key else None,
                            }
                            for item in lane.items
                        ],
                        "clusters": [
                            {
                                "key": list(group.key),
                                "ordinate": group.representative_ordinate,
                                "count": group.size,
                                "summary": summarize_cluster(group),
                                "aggregate_quantity": group.aggregate_quantity,
                                "latest_timestamp": group.latest_timestamp.isoformat(),
                            }
                            for group in lane.clusters
                        ],
                    }
                    for lane in day.lanes
                ],
            }
            for day in view.days
        ],
    }
