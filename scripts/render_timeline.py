"""Render the timeline layout for a CSV/JSON intake file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dosage_timeline.adapters import csv_adapter, json_adapter
from dosage_timeline.config import EngineConfig, load_config
from dosage_timeline.pipeline import build_timeline, view_to_dict
from dosage_timeline.ticks import DEFAULT_ZOOM, ZOOM_LEVELS

logger = logging.getLogger("render_timeline")


def _load_events(path: Path):
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return csv_adapter.parse(str(path))
    if suffix == ".json":
        return json_adapter.parse(str(path))
    raise ValueError("Unsupported input format, expected .csv or .json")


def _parse_expanded(values: list[str]) -> frozenset:
    keys = set()
    for value in values:
        ids = [part.strip() for part in value.split(",") if part.strip()]
        if ids:
            keys.add(tuple(sorted(ids)))
    return frozenset(keys)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render dosage timeline layout as JSON")
    parser.add_argument("--data", required=True, help="Path to CSV/JSON events file")
    parser.add_argument("--zoom", type=float, default=DEFAULT_ZOOM, help=f"One of {list(ZOOM_LEVELS)}")
    parser.add_argument("--now", help="ISO timestamp used as 'now' (default: current time)")
    parser.add_argument(
        "--expand",
        action="append",
        default=[],
        help="Comma-separated member ids of a cluster to expand (repeatable)",
    )
    parser.add_argument("--config", help="Path to JSON engine config")
    parser.add_argument("--out", default="outputs/timeline.json", help="Where to write the render model")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (stderr)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        now = datetime.fromisoformat(args.now) if args.now else datetime.now()
        config = load_config(args.config) if args.config else EngineConfig()
        events = _load_events(Path(args.data))
        view = build_timeline(events, now, args.zoom, _parse_expanded(args.expand), config)
    except ValueError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    report = view_to_dict(view)
    print(json.dumps(report, indent=2))

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    logger.info("Saved render model to %s", out_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
