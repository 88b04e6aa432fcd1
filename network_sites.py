"""
I/O sites: named neuron groups at the boundary of a network.

An ``InputSite`` is an injector: calling it with a value in [0, 1] fires every
member neuron at that potential.  An ``OutputSite`` is an observable: every
time one of its members fires it reports the mean firing potential across
all members as ``data``, and ``change`` when that differs from the last
report.

Usage::

    light = net.input("light", 4)
    light(0.7)

    wheel = net.output("wheel", 2)
    wheel.register_event_handler("data", lambda value: ...)
    wheel.register_event_handler("change", lambda value, previous, delta: ...)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List

import numpy as np

from brain_utils import clamp, is_number

if TYPE_CHECKING:
    from neural_network import NeuralNetwork


class InputSite:
    """Injector over an ordered list of neuron ids."""

    def __init__(self, network: "NeuralNetwork", label: str, neuron_ids: List[int]) -> None:
        self.network = network
        self.label = label
        self.neuron_ids = list(neuron_ids)

    def __repr__(self) -> str:
        return f"InputSite({self.label!r}, {self.neuron_ids})"

    def __call__(self, value: Any) -> bool:
        return self.inject(value)

    def inject(self, value: Any) -> bool:
        """Fire every member at ``value`` clamped to [0, 1].

        Returns:
            ``False`` (and does nothing) when ``value`` is not a number.
        """
        if not is_number(value):
            return False
        potential = clamp(float(value), 0.0, 1.0)
        for nid in self.neuron_ids:
            self.network.fire(nid, potential)
        return True


class OutputSite:
    """Observable readout over an ordered list of neuron ids.

    Subscribes to the network's ``fire`` notifications on creation; call
    ``close()`` to detach.
    """

    def __init__(self, network: "NeuralNetwork", label: str, neuron_ids: List[int]) -> None:
        self.network = network
        self.label = label
        self.neuron_ids = list(neuron_ids)
        self._members = set(self.neuron_ids)
        self.last_value = 0.0
        self._event_handlers: Dict[str, List[Callable]] = {}
        network.register_event_handler("fire", self._on_fire)

    def __repr__(self) -> str:
        return f"OutputSite({self.label!r}, {self.neuron_ids})"

    def value(self) -> float:
        """Mean firing potential of the members (idle members count as 0)."""
        if not self.neuron_ids:
            return 0.0
        potentials = []
        for nid in self.neuron_ids:
            neuron = self.network.resolve(nid)
            potentials.append(neuron.fired_potential if neuron is not None and neuron.is_firing else 0.0)
        return float(np.mean(potentials))

    def register_event_handler(self, event_type: str, callback: Callable) -> None:
        """Subscribe to ``data(value)`` or ``change(value, previous, delta)``."""
        self._event_handlers.setdefault(event_type, []).append(callback)

    def close(self) -> None:
        self.network.remove_event_handler("fire", self._on_fire)

    def _on_fire(self, neuron_id: Any, **kwargs: Any) -> None:
        if neuron_id not in self._members:
            return
        value = self.value()
        previous = self.last_value
        self.last_value = value
        self._emit("data", value=value)
        if value != previous:
            self._emit("change", value=value, previous=previous, delta=value - previous)

    def _emit(self, event_type: str, **kwargs: Any) -> None:
        for cb in list(self._event_handlers.get(event_type, [])):
            cb(**kwargs)
