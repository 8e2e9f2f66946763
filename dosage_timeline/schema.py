"""Core value types for the timeline layout engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple, Union

ClusterKey = Tuple[str, ...]


@dataclass(frozen=True)
class Event:
    """Normalized intake record used by all modules."""

    id: str
    lane: str
    timestamp: datetime
    quantity: float
    unit: str
    category: Optional[str] = None


@dataclass(frozen=True)
class DayBucket:
    """Events of one calendar day, latest first."""

    date: date
    events: tuple[Event, ...] = ()


@dataclass(frozen=True)
class Single:
    event: Event
    ordinate: float


@dataclass(frozen=True)
class ClusterGroup:
    """Run of same-lane events drawn as one collapsible marker."""

    lane: str
    members: tuple[Event, ...]
    ordinates: tuple[float, ...]
    representative_ordinate: float
    aggregate_quantity: float
    latest_timestamp: datetime

    @property
    def key(self) -> ClusterKey:
        return tuple(sorted(member.id for member in self.members))

    @property
    def size(self) -> int:
        return len(self.members)


Clustered = Union[Single, ClusterGroup]


@dataclass(frozen=True)
class Placement:
    """Layout solver output for one item."""

    id: str
    true_ordinate: float
    display_ordinate: float


@dataclass(frozen=True)
class LayoutItem:
    """Individually visible event with its dot and panel positions."""

    event: Event
    true_ordinate: float
    display_ordinate: float
    connector: bool = False
    cluster_key: Optional[ClusterKey] = None


@dataclass(frozen=True)
class TickPlan:
    zoom: float
    tick_interval_minutes: int
    label_interval_minutes: int


@dataclass(frozen=True)
class TickMark:
    minutes: int
    ordinate: float
    is_label: bool


@dataclass(frozen=True)
class LaneLayout:
    lane: str
    items: tuple[LayoutItem, ...] = ()
    clusters: tuple[ClusterGroup, ...] = ()


@dataclass(frozen=True)
class DayLayout:
    date: date
    day_height: float
    lanes: tuple[LaneLayout, ...] = ()
    now_ordinate: Optional[float] = None


@dataclass(frozen=True)
class TimelineView:
    """Render model handed to the presentation layer."""

    zoom: float
    tick_plan: TickPlan
    tick_marks: tuple[TickMark, ...]
    days: tuple[DayLayout, ...]
