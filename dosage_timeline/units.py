"""Dosage unit normalization."""

from __future__ import annotations

BASE_UNIT = "mg"

# Conversion factors into the base unit.
UNIT_FACTORS = {
    "mg": 1.0,
    "ml": 20.0,
}


def to_base_quantity(quantity: float, unit: str) -> float:
    """Convert a quantity into milligrams."""

    factor = UNIT_FACTORS.get(unit)
    if factor is None:
        raise ValueError(f"Unknown unit '{unit}', expected one of {sorted(UNIT_FACTORS)}")
    return float(quantity) * factor


def is_known_unit(unit: str) -> bool:
    return unit in UNIT_FACTORS
