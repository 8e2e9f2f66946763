"""Demo script for dosage-timeline."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dosage_timeline.adapters.csv_adapter import parse
from dosage_timeline.clusterer import summarize_cluster
from dosage_timeline.pipeline import build_timeline, toggle_expansion


def main() -> None:
    events = parse("examples/sample_intakes.csv")
    now = datetime(2025, 3, 5, 10, 0)
    view = build_timeline(events, now, zoom=1)

    expanded = frozenset()
    for day in view.days:
        print(day.date.isoformat(), f"height={day.day_height:g}")
        for lane in day.lanes:
            for item in lane.items:
                marker = " <-" if item.connector else ""
                print(f"  {lane.lane} {item.event.id} dot={item.true_ordinate:g} panel={item.display_ordinate:.1f}{marker}")
            for group in lane.clusters:
                print(f"  {lane.lane} cluster {group.key}: {summarize_cluster(group)}")
                expanded = toggle_expansion(expanded, group.key)

    if expanded:
        print("Expanded:")
        for day in build_timeline(events, now, zoom=1, expanded=expanded).days:
            for lane in day.lanes:
                for item in lane.items:
                    if item.cluster_key:
                        print(f"  {day.date} {lane.lane} {item.event.id} panel={item.display_ordinate:.1f}")


if __name__ == "__main__":
    main()
