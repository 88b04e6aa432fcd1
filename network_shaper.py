"""
Topology strategies: where does a neuron's next synapse point?

Every strategy has the signature::

    shape(size, index, connections_per_neuron, ordinal) -> Optional[int]

and is called once per candidate synapse while a neuron is generated.
Returning ``None`` means "no suitable target" and the candidate is dropped.
Strategies are pure apart from the shared ``brain_random`` source and never
raise, including for networks of size 0 or 1.

Pluggable: any callable with the same signature can be passed to
``NeuralNetwork`` in place of a registered name.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Optional

import brain_random

Shaper = Callable[[int, int, int, int], Optional[int]]


def uniform(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Random target anywhere in the network (no self-synapses)."""
    if size <= 1:
        return None
    target = brain_random.integer(0, size - 1)
    if target == index:
        return None
    return target


def _forward_step(size: int, fraction: float) -> int:
    window = math.ceil(size * fraction)
    return max(1, math.ceil(brain_random.uniform() * window))


def forward(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Forward-biased window: link slightly ahead, drop past the end."""
    if size <= 1:
        return None
    target = index + _forward_step(size, 0.1)
    if target >= size:
        return None
    return target


def ring(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Like ``forward`` but wraps around, so every neuron gets a target."""
    if size <= 1:
        return None
    target = (index + _forward_step(size, 0.05)) % size
    if target == index:
        return None
    return target


def layered(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Fully connect each layer of ``connections_per_neuron`` neurons to the next.

    ``ordinal`` selects the member of the next layer; the last layer has no
    targets.
    """
    width = max(1, int(connections_per_neuron))
    if size <= 1 or ordinal >= width:
        return None
    layer = index // width
    target = width * (layer + 1) + ordinal
    if target >= size:
        return None
    return target


def _windowed(size: int, index: int, fraction: float, tries: int = 3) -> Optional[int]:
    reach = math.ceil(size * fraction)
    for _ in range(tries):
        target = brain_random.integer(index - reach, index + reach)
        if 0 <= target < size and target != index:
            return target
    return None


def tube(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Neighbours within a fifth of the network, either direction."""
    if size <= 1:
        return None
    return _windowed(size, index, 0.2)


def snake(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
    """Tight neighbourhood: a twentieth of the network, either direction."""
    if size <= 1:
        return None
    return _windowed(size, index, 0.05)


SHAPES: Dict[str, Shaper] = {
    "uniform": uniform,
    "forward": forward,
    "ring": ring,
    "layered": layered,
    "tube": tube,
    "snake": snake,
}

# Strategies that draw exactly ``connections_per_neuron`` candidates.
EXACT_COUNT_SHAPES = frozenset({"layered"})


def get_shaper(name: str) -> Shaper:
    """Look up a registered strategy.

    Raises:
        ValueError: If ``name`` is not registered.
    """
    try:
        return SHAPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown shape {name!r}; expected one of {sorted(SHAPES)}"
        ) from None


def uniform_range(low: int, high: int, exclude_self: bool = False) -> Shaper:
    """Build a strategy drawing uniformly in ``[low, high]``.

    Used to stitch joined networks together.  Empty ranges yield ``None``.
    """

    def shape(size: int, index: int, connections_per_neuron: int = 1, ordinal: int = 0) -> Optional[int]:
        if high < low:
            return None
        target = brain_random.integer(low, high)
        if exclude_self and target == index:
            return None
        return target

    return shape
