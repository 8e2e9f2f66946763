import json
from datetime import date, datetime, timedelta, timezone

import pytest

from dosage_timeline.config import EngineConfig
from dosage_timeline.pipeline import build_timeline, toggle_expansion, view_to_dict
from dosage_timeline.schema import Event

NOW = datetime(2025, 3, 5, 12, 0)
CONFIG = EngineConfig(cluster_threshold=10, min_separation=12)


def make_event(event_id, stamp, lane="AH", quantity=10.0, unit="mg"):
    return Event(event_id, lane, datetime.fromisoformat(stamp), quantity, unit, "IM")


def sample_events():
    # Zoom 1 ordinates: 150, 109, 105, 100.
    return [
        make_event("p", "2025-03-03T21:30:00"),
        make_event("q", "2025-03-03T22:11:00"),
        make_event("r", "2025-03-03T22:15:00", unit="ml", quantity=0.5),
        make_event("s", "2025-03-03T22:20:00"),
    ]


def lane_of(view, day, lane):
    (layout_day,) = [d for d in view.days if d.date == day]
    (lane_layout,) = [l for l in layout_day.lanes if l.lane == lane]
    return lane_layout


def test_collapsed_cluster_and_isolated_single():
    view = build_timeline(sample_events(), NOW, zoom=1, config=CONFIG)
    lane = lane_of(view, date(2025, 3, 3), "AH")
    assert [item.event.id for item in lane.items] == ["p"]
    assert lane.items[0].display_ordinate == 150.0
    assert lane.items[0].connector is False
    (group,) = lane.clusters
    assert group.key == ("q", "r", "s")
    assert group.aggregate_quantity == 30.0
    assert group.representative_ordinate == pytest.approx((100 + 105 + 109) / 3)


def test_expanded_cluster_is_spread_and_single_stays():
    expanded = toggle_expansion(frozenset(), ("q", "r", "s"))
    view = build_timeline(sample_events(), NOW, zoom=1, expanded=expanded, config=CONFIG)
    lane = lane_of(view, date(2025, 3, 3), "AH")
    assert lane.clusters == ()
    assert [item.event.id for item in lane.items] == ["s", "r", "q", "p"]
    displays = [item.display_ordinate for item in lane.items]
    assert all(b - a >= 12 - 1e-6 for a, b in zip(displays, displays[1:]))
    assert lane.items[-1].display_ordinate == 150.0
    assert {item.cluster_key for item in lane.items[:3]} == {("q", "r", "s")}
    assert lane.items[-1].cluster_key is None
    assert any(item.connector for item in lane.items[:3])


def test_lanes_are_laid_out_independently():
    events = sample_events() + [make_event("x", "2025-03-03T22:15:00", lane="EI")]
    view = build_timeline(events, NOW, zoom=1, config=CONFIG)
    day = [d for d in view.days if d.date == date(2025, 3, 3)][0]
    assert [lane.lane for lane in day.lanes] == ["AH", "EI"]
    ei = lane_of(view, date(2025, 3, 3), "EI")
    assert ei.items[0].display_ordinate == 105.0
    assert lane_of(view, date(2025, 3, 3), "AH").clusters[0].key == ("q", "r", "s")


def test_empty_days_and_now_marker():
    view = build_timeline(sample_events(), NOW, zoom=2, config=CONFIG)
    assert [d.date for d in view.days] == [date(2025, 3, 5), date(2025, 3, 4), date(2025, 3, 3)]
    today, empty, _ = view.days
    assert today.lanes == () and empty.lanes == ()
    assert today.now_ordinate == 1440.0
    assert empty.now_ordinate is None
    assert today.day_height == 2880.0
    assert view.tick_plan.tick_interval_minutes == 10


def test_zoom_doubles_true_ordinates():
    one = lane_of(build_timeline(sample_events(), NOW, zoom=1, config=CONFIG), date(2025, 3, 3), "AH")
    two = lane_of(build_timeline(sample_events(), NOW, zoom=2, config=CONFIG), date(2025, 3, 3), "AH")
    p_one = [item for item in one.items if item.event.id == "p"][0]
    p_two = [item for item in two.items if item.event.id == "p"][0]
    assert p_two.true_ordinate == 2 * p_one.true_ordinate == 300.0


def test_aware_event_is_drawn_at_local_time_of_its_bucket():
    now = datetime(2025, 3, 2, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    event = Event("z", "AH", datetime(2025, 3, 1, 22, 0, tzinfo=timezone.utc), 5.0, "mg")
    view = build_timeline([event], now, zoom=1)
    assert [d.date for d in view.days] == [date(2025, 3, 2)]
    (item,) = lane_of(view, date(2025, 3, 2), "AH").items
    assert item.true_ordinate == 1440 - 3 * 60


def test_mixed_offsets_are_ordered_on_one_clock():
    now = datetime(2025, 3, 2, 23, 0, tzinfo=timezone.utc)
    events = [
        Event("east", "AH", datetime(2025, 3, 2, 10, 0, tzinfo=timezone(timedelta(hours=2))), 5.0, "mg"),
        Event("utc", "AH", datetime(2025, 3, 2, 9, 0, tzinfo=timezone.utc), 5.0, "mg"),
    ]
    view = build_timeline(events, now, zoom=1, config=EngineConfig(cluster_threshold=0))
    lane = lane_of(view, date(2025, 3, 2), "AH")
    assert [item.event.id for item in lane.items] == ["utc", "east"]
    assert [item.true_ordinate for item in lane.items] == [900.0, 960.0]


def test_repeated_event_ids_are_still_separated():
    events = [make_event("dup", "2025-03-03T08:00:00"), make_event("dup", "2025-03-03T08:05:00")]
    config = EngineConfig(cluster_threshold=0, min_separation=24)
    lane = lane_of(build_timeline(events, NOW, zoom=1, config=config), date(2025, 3, 3), "AH")
    assert [item.true_ordinate for item in lane.items] == [955.0, 960.0]
    first, second = (item.display_ordinate for item in lane.items)
    assert second - first >= 24 - 1e-6


def test_invalid_zoom_rejected():
    with pytest.raises(ValueError):
        build_timeline(sample_events(), NOW, zoom=4)


def test_toggle_expansion_round_trip():
    key = ("a", "b")
    expanded = toggle_expansion(frozenset(), key)
    assert key in expanded
    assert toggle_expansion(expanded, key) == frozenset()


def test_view_to_dict_is_json_ready():
    view = build_timeline(sample_events(), NOW, zoom=1, config=CONFIG)
    payload = json.loads(json.dumps(view_to_dict(view)))
    day = [d for d in payload["days"] if d["date"] == "2025-03-03"][0]
    lane = day["lanes"][0]
    assert lane["items"][0]["event"]["id"] == "p"
    assert lane["clusters"][0]["count"] == 3
    assert lane["clusters"][0]["summary"].startswith("3 doses, 30 mg")
