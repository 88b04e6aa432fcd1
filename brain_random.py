"""
Shared pseudo-random source for topology generation and weight assignment.

All draws go through one module-level ``numpy.random.Generator`` so that a
single ``seed()`` call makes network construction, joins and the unlearning
sample reproducible.

Usage::

    import brain_random

    brain_random.seed(42)
    brain_random.integer(1, 7)      # inclusive on both ends
    brain_random.gaussian()         # bell-shaped in [0, 1]
    brain_random.alpha(6)           # 'a3f09c'
"""

from __future__ import annotations

from typing import Optional

import numpy as np

_rng: np.random.Generator = np.random.default_rng()

_ALPHABET = "0123456789abcdef"


def seed(value: Optional[int] = None) -> None:
    """Re-create the shared generator (``None`` draws fresh OS entropy)."""
    global _rng
    _rng = np.random.default_rng(value)


def generator() -> np.random.Generator:
    return _rng


def uniform() -> float:
    """Float in [0, 1)."""
    return float(_rng.random())


def integer(low: int, high: Optional[int] = None) -> int:
    """Random integer inclusive of both bounds.

    ``integer(n)`` is shorthand for ``integer(0, n)``.  Reversed bounds are
    swapped rather than rejected.
    """
    if high is None:
        low, high = 0, low
    if high < low:
        low, high = high, low
    return int(_rng.integers(low, high + 1))


def gaussian(tightness: int = 6) -> float:
    """Approximate normal draw in [0, 1] centred on 0.5.

    Averages ``tightness`` uniform draws; larger values give a narrower bell.
    """
    tightness = max(1, int(tightness))
    return float(_rng.random(tightness).mean())


def chance(probability: float) -> bool:
    return uniform() < probability


def alpha(length: int = 6) -> str:
    """Lowercase hexadecimal identifier for neurons without an index."""
    picks = _rng.integers(0, len(_ALPHABET), size=max(0, length))
    return "".join(_ALPHABET[i] for i in picks)
