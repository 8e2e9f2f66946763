"""Minimum-separation layout of individually visible markers.

The solver is a relaxation heuristic rather than an exact optimizer. A group of
crowded items is seeded as a contiguous stack centred on its temporal centroid,
then each pass pushes overlapping neighbours apart and pulls every item a little
towards its true ordinate. The pass budget is tuned for clusters of tens of
items.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from dosage_timeline.schema import Placement

logger = logging.getLogger(__name__)

DEFAULT_PASSES = 40
DEFAULT_DAMPING = 0.08
SEPARATION_EPSILON = 1e-9

LayoutInput = Tuple[str, float]


def _sweep(display: np.ndarray, min_separation: float) -> None:
    n = len(display)
    for i in range(1, n):
        gap = display[i] - display[i - 1]
        if gap < min_separation:
            display[i] += min_separation - gap
    for i in range(n - 2, -1, -1):
        gap = display[i + 1] - display[i]
        if gap < min_separation:
            display[i] -= min_separation - gap


def _check_params(min_separation: float, passes: int, damping: float) -> None:
    if min_separation < 0:
        raise ValueError(f"Minimum separation must be non-negative, got {min_separation}")
    if passes < 0:
        raise ValueError(f"Relaxation passes must be non-negative, got {passes}")
    if not 0.0 <= damping <= 1.0:
        raise ValueError(f"Damping must be within [0, 1], got {damping}")


def solve_layout(
    items: Sequence[LayoutInput],
    min_separation: float,
    passes: int = DEFAULT_PASSES,
    damping: float = DEFAULT_DAMPING,
    tolerance: Optional[float] = None,
) -> list[Placement]:
    """Compute display ordinates for ``(id, true_ordinate)`` pairs.

    Items are expected sorted by true ordinate ascending. With ``tolerance``
    set, relaxation stops after the first pass that moves no item by more
    than it.
    """

    _check_params(min_separation, passes, damping)

    ordered = sorted(items, key=lambda item: item[1])
    if not ordered:
        return []
    if len(ordered) == 1:
        item_id, true_ordinate = ordered[0]
        return [Placement(item_id, true_ordinate, true_ordinate)]

    n = len(ordered)
    true = np.array([float(item[1]) for item in ordered])
    half = (n - 1) * min_separation / 2.0
    display = true.mean() - half + np.arange(n) * min_separation

    for pass_index in range(passes):
        before = display.copy()
        _sweep(display, min_separation)
        display += (true - display) * damping
        if tolerance is not None and np.max(np.abs(display - before)) < tolerance:
            logger.debug("Layout of %d items settled after %d passes", n, pass_index + 1)
            break

    # The pull runs last in every pass, so restore the separation before returning.
    _sweep(display, min_separation)

    return [
        Placement(item_id, float(true_ordinate), float(position))
        for (item_id, true_ordinate), position in zip(ordered, display)
    ]


def _crowded_runs(ordered: list[LayoutInput], min_separation: float) -> list[list[LayoutInput]]:
    runs: list[list[LayoutInput]] = []
    for item in ordered:
        if runs and item[1] - runs[-1][-1][1] < min_separation:
            runs[-1].append(item)
        else:
            runs.append([item])
    return runs


def solve_lane_layout(
    items: Sequence[LayoutInput],
    min_separation: float,
    passes: int = DEFAULT_PASSES,
    damping: float = DEFAULT_DAMPING,
    tolerance: Optional[float] = None,
) -> list[Placement]:
    """Lay out a whole lane, solving each crowded run on its own.

    Items far enough from their neighbours keep their true ordinate. Runs
    whose solved stacks collide are merged and solved again.
    """

    _check_params(min_separation, passes, damping)

    ordered = sorted(items, key=lambda item: item[1])
    runs = _crowded_runs(ordered, min_separation)
    solved = [solve_layout(run, min_separation, passes, damping, tolerance) for run in runs]

    merged = True
    while merged and len(runs) > 1:
        merged = False
        for index in range(len(runs) - 1):
            gap = solved[index + 1][0].display_ordinate - solved[index][-1].display_ordinate
            if gap < min_separation - SEPARATION_EPSILON:
                runs[index] = runs[index] + runs.pop(index + 1)
                solved.pop(index + 1)
                solved[index] = solve_layout(runs[index], min_separation, passes, damping, tolerance)
                merged = True
                break

    return [placement for run in solved for placement in run]
