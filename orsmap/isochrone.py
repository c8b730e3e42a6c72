"""Threshold planning for isochrone requests."""
from __future__ import annotations

import math
from typing import List

DISTANCE = "distance"
TIME = "time"
UNITS = {DISTANCE, TIME}
# openrouteservice accepts at most this many values in an isochrone range list.
MAX_RANGE_VALUES = 10


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_meters(km: float) -> int:
    return max(1, _round_half_up(km * 1000))


def to_seconds(minutes: float) -> int:
    return max(1, _round_half_up(minutes * 60))


def step_count(range_value: float, interval: float) -> int:
    return max(1, int(math.floor(range_value / max(1, interval))))


def plan_steps(range_value: float, interval: float) -> List[float]:
    """Return the user-unit steps ``interval, 2*interval, ...`` up to ``range_value``.

    At least one step is always produced, even when the interval exceeds the
    range. A non-positive interval is treated as 1.
    """
    step = interval if interval > 0 else 1
    count = step_count(range_value, interval)
    return [i * step for i in range(1, count + 1)]


def plan_thresholds(range_value: float, interval: float, unit: str) -> List[int]:
    """Convert planned steps into backend units (meters or seconds).

    Steps that collapse onto the previous threshold after rounding are dropped.
    """
    if unit not in UNITS:
        raise ValueError(f"unit must be one of {sorted(UNITS)}")
    convert = to_meters if unit == DISTANCE else to_seconds

    thresholds: List[int] = []
    for step in plan_steps(range_value, interval):
        value = convert(step)
        if thresholds and value <= thresholds[-1]:
            continue
        thresholds.append(value)
    return thresholds
