"""Engine configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from dosage_timeline.layout import DEFAULT_DAMPING, DEFAULT_PASSES
from dosage_timeline.time_mapper import BASE_DAY_MINUTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Layout policy knobs, in pixels at the current zoom unless noted."""

    base_minutes: int = BASE_DAY_MINUTES
    cluster_threshold: float = 20.0
    min_separation: float = 24.0
    relaxation_passes: int = DEFAULT_PASSES
    damping: float = DEFAULT_DAMPING
    convergence_tolerance: Optional[float] = None
    connector_tolerance: float = 0.5

    def __post_init__(self) -> None:
        if self.base_minutes <= 0:
            raise ValueError(f"base_minutes must be positive, got {self.base_minutes}")
        if self.cluster_threshold < 0:
            raise ValueError(f"cluster_threshold must be non-negative, got {self.cluster_threshold}")
        if self.min_separation < 0:
            raise ValueError(f"min_separation must be non-negative, got {self.min_separation}")
        if self.relaxation_passes < 0:
            raise ValueError(f"relaxation_passes must be non-negative, got {self.relaxation_passes}")
        if not 0.0 <= self.damping <= 1.0:
            raise ValueError(f"damping must be within [0, 1], got {self.damping}")
        if self.convergence_tolerance is not None and self.convergence_tolerance <= 0:
            raise ValueError("convergence_tolerance must be positive when set")
        if self.connector_tolerance < 0:
            raise ValueError(f"connector_tolerance must be non-negative, got {self.connector_tolerance}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EngineConfig":
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown config keys {unknown}")
        return cls(**dict(payload))


def load_config(file_path: str) -> EngineConfig:
    """Read an :class:`EngineConfig` from a JSON object file."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)

    if not isinstance(payload, dict):
        raise ValueError("Config file must contain a JSON object")

    config = EngineConfig.from_dict(payload)
    logger.info("Loaded engine config from %s", Path(file_path).name)
    return config
