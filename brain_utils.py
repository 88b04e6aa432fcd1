"""Numeric helpers shared by the firing, learning and site modules."""

from __future__ import annotations

import math
import numbers
from typing import Any

WEIGHT_MIN = -0.5
WEIGHT_MAX = 1.0


def clamp(value: float, low: float, high: float) -> float:
    return low if value < low else high if value > high else value


def clamp_weight(weight: float) -> float:
    return clamp(weight, WEIGHT_MIN, WEIGHT_MAX)


def is_number(value: Any) -> bool:
    """True for real, non-NaN numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(value)
