"""Streamlit demo UI for dosage-timeline."""

from __future__ import annotations

import tempfile
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

from dosage_timeline.adapters import csv_adapter, json_adapter
from dosage_timeline.clusterer import summarize_cluster
from dosage_timeline.config import EngineConfig
from dosage_timeline.pipeline import build_timeline
from dosage_timeline.schema import TimelineView
from dosage_timeline.ticks import DEFAULT_ZOOM, ZOOM_LEVELS


def _parse_events_from_path(file_path: str) -> list:
    suffix = Path(file_path).suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(file_path)
    if suffix == ".json":
        return json_adapter.parse(file_path)
    raise ValueError("Unsupported file type. Please use .csv or .json")


def _parse_uploaded(uploaded_file) -> list:
    suffix = Path(uploaded_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
        handle.write(uploaded_file.getbuffer())
        temp_path = handle.name
    return _parse_events_from_path(temp_path)


def _build_summary(events: list) -> dict[str, Any]:
    lane_counts = Counter(event.lane for event in events)
    return {
        "total_events": len(events),
        "lanes": dict(sorted(lane_counts.items())),
        "first": min((e.timestamp for e in events), default=None),
        "last": max((e.timestamp for e in events), default=None),
    }


def _fmt_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _cluster_options(view: TimelineView) -> dict[str, tuple]:
    options = {}
    for day in view.days:
        for lane in day.lanes:
            for group in lane.clusters:
                label = f"{day.date} {lane.lane}: {summarize_cluster(group)}"
                options[label] = group.key
    return options


def _day_rows(day) -> list[dict[str, Any]]:
    rows = []
    for lane in day.lanes:
        for item in lane.items:
            rows.append(
                {
                    "lane": lane.lane,
                    "time": item.event.timestamp.strftime("%H:%M"),
                    "dose": f"{item.event.quantity:g} {item.event.unit}",
                    "category": item.event.category or "",
                    "dot": round(item.true_ordinate, 1),
                    "panel": round(item.display_ordinate, 1),
                    "connector": item.connector,
                }
            )
        for group in lane.clusters:
            rows.append(
                {
                    "lane": lane.lane,
                    "time": group.latest_timestamp.strftime("%H:%M"),
                    "dose": f"{group.aggregate_quantity:g} mg",
                    "category": f"cluster x{group.size}",
                    "dot": round(group.representative_ordinate, 1),
                    "panel": round(group.representative_ordinate, 1),
                    "connector": False,
                }
            )
    return sorted(rows, key=lambda row: (row["lane"], row["dot"]))


def main() -> None:
    import streamlit as st

    st.set_page_config(page_title="Dosage Timeline Demo", layout="wide")
    st.title("Dosage Timeline — Streamlit Demo")

    with st.sidebar:
        st.header("Controls")
        uploaded = st.file_uploader("Upload intake log", type=["csv", "json"])
        use_demo = st.checkbox("Load demo dataset", value=True)
        zoom = st.select_slider("Zoom", options=list(ZOOM_LEVELS), value=DEFAULT_ZOOM)
        threshold = st.number_input("Cluster threshold (px)", min_value=0.0, value=20.0, step=1.0)
        separation = st.number_input("Minimum separation (px)", min_value=0.0, value=24.0, step=1.0)
        now_text = st.text_input("Now (ISO, blank = current time)", value="2025-03-05T10:00:00")

    try:
        if use_demo:
            events = csv_adapter.parse("examples/sample_intakes.csv")
            data_source = "demo dataset (examples/sample_intakes.csv)"
        elif uploaded is not None:
            events = _parse_uploaded(uploaded)
            data_source = f"uploaded file ({uploaded.name})"
        else:
            st.info("Upload a CSV/JSON file or enable 'Load demo dataset'.")
            return

        now = datetime.fromisoformat(now_text) if now_text.strip() else datetime.now()
        config = EngineConfig(cluster_threshold=float(threshold), min_separation=float(separation))

        collapsed_view = build_timeline(events, now, zoom, config=config)
        options = _cluster_options(collapsed_view)
        chosen = st.multiselect("Expand clusters", options=list(options))
        expanded = frozenset(options[label] for label in chosen)
        view = build_timeline(events, now, zoom, expanded, config) if expanded else collapsed_view

        st.success(f"Loaded {len(events)} events from {data_source}.")

        summary = _build_summary(events)
        c1, c2, c3 = st.columns(3)
        c1.metric("Total events", summary["total_events"])
        c2.metric("Days shown", len(view.days))
        c3.metric("Tick / label", f"{view.tick_plan.tick_interval_minutes}m / {view.tick_plan.label_interval_minutes}m")
        st.table([summary["lanes"]])

        labels = [_fmt_minutes(mark.minutes) for mark in view.tick_marks if mark.is_label]
        st.caption("Ruler labels: " + ", ".join(labels))

        for day in view.days:
            st.subheader(f"{day.date.isoformat()} (height {day.day_height:g}px)")
            rows = _day_rows(day)
            if rows:
                st.table(rows)
            else:
                st.write("No intakes.")

    except ValueError as exc:
        st.error(f"Input error: {exc}")
    except Exception:
        st.error("Something went wrong while running the demo. Please verify the input format.")


if __name__ == "__main__":
    main()
