"""JSON adapter for intake events."""

from __future__ import annotations

import json
import logging
from datetime import datetime

from dosage_timeline.schema import Event
from dosage_timeline.units import UNIT_FACTORS, is_known_unit

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "lane", "timestamp", "quantity", "unit")


def _parse_item(item: dict, index: int) -> Event:
    if not isinstance(item, dict):
        raise ValueError(f"Item {index}: expected an object")

    missing = [field for field in _REQUIRED_FIELDS if item.get(field) in (None, "")]
    if missing:
        raise ValueError(f"Item {index}: missing required fields {missing}")

    try:
        timestamp = datetime.fromisoformat(str(item["timestamp"]).strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Item {index}: malformed timestamp") from exc

    quantity_raw = item["quantity"]
    if isinstance(quantity_raw, bool):
        raise ValueError(f"Item {index}: invalid quantity")
    try:
        quantity = float(quantity_raw)
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Item {index}: invalid quantity") from exc
    if quantity < 0:
        raise ValueError(f"Item {index}: quantity must be non-negative")

    unit = str(item["unit"]).strip().lower()
    if not is_known_unit(unit):
        raise ValueError(f"Item {index}: invalid unit '{unit}', expected one of {sorted(UNIT_FACTORS)}")

    category_raw = item.get("category")
    category = str(category_raw).strip() if category_raw else None

    return Event(
        id=str(item["id"]).strip(),
        lane=str(item["lane"]).strip(),
        timestamp=timestamp,
        quantity=quantity,
        unit=unit,
        category=category or None,
    )


def parse(file_path: str) -> list[Event]:
    """Parse JSON file into events."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, list):
        raise ValueError("JSON payload must be a list of objects")

    events: list[Event] = []
    seen: set[str] = set()
    for index, item in enumerate(payload, start=1):
        event = _parse_item(item, index)
        if event.id in seen:
            raise ValueError(f"Item {index}: duplicate id '{event.id}'")
        seen.add(event.id)
        events.append(event)
    logger.info("Parsed %d events from %s", len(events), file_path)
    return events
