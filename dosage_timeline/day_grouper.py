"""Calendar-day bucketing of events."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable

from dosage_timeline.schema import DayBucket, Event
from dosage_timeline.time_mapper import localize


def day_key(timestamp: datetime, now: datetime) -> date:
    """Local calendar date of a timestamp, read in ``now``'s zone when both are aware."""

    return localize(timestamp, now.tzinfo).date()


def group_by_day(events: Iterable[Event], now: datetime) -> list[DayBucket]:
    """Bucket events per calendar day, most recent day first.

    Every day from the earliest event's day through today gets a bucket, empty
    or not. Events after ``now`` keep their own day but the walk stops at today,
    so empty days between today and a future event are not created.
    """

    today = now.date()
    by_day: dict[date, list[Event]] = defaultdict(list)
    for event in events:
        by_day[day_key(event.timestamp, now)].append(event)

    days = set(by_day)
    cursor = min(days | {today})
    while cursor <= today:
        days.add(cursor)
        cursor += timedelta(days=1)

    buckets = []
    for day in sorted(days, reverse=True):
        day_events = sorted(by_day.get(day, []), key=lambda e: e.timestamp, reverse=True)
        buckets.append(DayBucket(date=day, events=tuple(day_events)))
    return buckets


def flatten_buckets(buckets: Iterable[DayBucket]) -> list[Event]:
    return [event for bucket in buckets for event in bucket.events]
