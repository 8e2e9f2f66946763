"""CSV adapter for intake events."""

from __future__ import annotations

import csv
import logging
from datetime import datetime

from dosage_timeline.schema import Event
from dosage_timeline.units import UNIT_FACTORS, is_known_unit

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "lane", "timestamp", "quantity", "unit")


def _parse_row(row: dict, row_number: int) -> Event:
    missing = [field for field in _REQUIRED_FIELDS if not (row.get(field) or "").strip()]
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")

    try:
        timestamp = datetime.fromisoformat(row["timestamp"].strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Row {row_number}: malformed timestamp") from exc

    try:
        quantity = float(row["quantity"])
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Row {row_number}: invalid quantity") from exc
    if quantity < 0:
        raise ValueError(f"Row {row_number}: quantity must be non-negative")

    unit = row["unit"].strip().lower()
    if not is_known_unit(unit):
        raise ValueError(f"Row {row_number}: invalid unit '{unit}', expected one of {sorted(UNIT_FACTORS)}")

    category_raw = row.get("category")
    category = category_raw.strip() if category_raw and category_raw.strip() else None

    return Event(
        id=row["id"].strip(),
        lane=row["lane"].strip(),
        timestamp=timestamp,
        quantity=quantity,
        unit=unit,
        category=category,
    )


def parse(file_path: str) -> list[Event]:
    """Parse CSV file into a list of events."""

    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []

        events: list[Event] = []
        seen: set[str] = set()
        for row_number, row in enumerate(reader, start=2):
            event = _parse_row(row, row_number)
            if event.id in seen:
                raise ValueError(f"Row {row_number}: duplicate id '{event.id}'")
            seen.add(event.id)
            events.append(event)

    logger.info("Parsed %d events from %s", len(events), file_path)
    return events
