"""
botbrain core: a spiking neural network of delayed, cascading neurons.

A ``NeuralNetwork`` owns an ordered list of ``Neuron`` objects; each neuron
owns its outgoing ``Synapse`` edges.  Synapses store the *index* of their
target and resolve it through the network when a signal is delivered, so the
graph has no reference cycles and exports to a plain record directly.

Activation is event driven.  ``Neuron.fire()`` accumulates potential and, once
the fire threshold is crossed, schedules propagation after the conduction
delay and recovery after the refractory delay on the network's
``EventScheduler``.  Cascades from different neurons overlap freely.

Design principles:
    - Arena + index: neurons live in one list, synapses point by index
    - Clamp, don't reject: weights stay in [-0.5, 1], potentials in [-1, 1]
    - Grow only at construction/join: forgetting is decay, never removal
    - Persistence-native: ``export()``/``from_record()`` round-trip exactly

Usage::

    from neural_network import NeuralNetwork

    net = NeuralNetwork(100, {"shape": "ring"})
    sensor = net.input("light", 4)
    motor = net.output("wheel", 2)
    motor.register_event_handler("data", lambda value: print(value))
    sensor(0.8)
    net.advance(1000)
    net.learn()
"""

from __future__ import annotations

import json
import logging
import math
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import msgpack
import numpy as np

import brain_random
from brain_utils import WEIGHT_MAX, WEIGHT_MIN, clamp, clamp_weight, is_number
from botbrain_paths import get_checkpoint_path
from brain_config import NetworkConfig, load_config
from event_scheduler import EventScheduler
from network_shaper import EXACT_COUNT_SHAPES, SHAPES, Shaper, get_shaper, uniform_range
from network_sites import InputSite, OutputSite
from plasticity import LearningResult, LearningRule, RecencyLearningRule

logger = logging.getLogger("botbrain.network")

RECORD_VERSION = "1.0"


class CorruptRecordError(ValueError):
    """An exported record cannot be turned back into a network."""


def _record_index(value: Any, field: str) -> int:
    """Integer from a record field; bools and fractional numbers are rejected."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise CorruptRecordError(f"{field} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        return int(value)
    if not float(value).is_integer():
        raise CorruptRecordError(f"{field} must be an integer, got {value!r}")
    return int(value)


def propagated_potential(weight: float, potential: float) -> float:
    """Potential delivered across a synapse.

    Average of ``|weight|`` and the firer's potential, carrying the sign of the
    weight so inhibitory synapses push the target away from threshold.
    """
    return math.copysign((abs(weight) + potential) / 2.0, weight)


# ---------------------------------------------------------------------------
# Graph elements
# ---------------------------------------------------------------------------

@dataclass
class Synapse:
    """Directed edge owned by its source neuron.

    Attributes:
        target: Index of the target neuron in the owning network.
        weight: Short-term weight in [-0.5, 1]; negative is inhibitory.
        long_term_weight: Slow average of ``weight`` anchoring decay.
        last_fired: Logical time (ms) the synapse last carried a signal
            that left its target firing.
    """

    target: int
    weight: float = 0.0
    long_term_weight: Optional[float] = None
    last_fired: Optional[float] = None

    def __post_init__(self) -> None:
        self.weight = clamp_weight(float(self.weight))
        if self.long_term_weight is None:
            self.long_term_weight = self.weight
        else:
            self.long_term_weight = clamp_weight(float(self.long_term_weight))


class Neuron:
    """A firing unit.

    Neurons attached to a network take their configuration, scheduler and
    target lookup from it.  A detached neuron (``network=None``) runs on a
    private scheduler with default configuration and cannot propagate.

    Args:
        index: Position in the owning network; ``None`` generates a random id.
        synapses: Outgoing synapses.
        network: Owning network.
    """

    def __init__(
        self,
        index: Optional[int] = None,
        synapses: Optional[List[Synapse]] = None,
        network: Optional["NeuralNetwork"] = None,
    ) -> None:
        self.index = index
        self.id: Union[int, str] = index if index is not None else brain_random.alpha(6)
        self.synapses: List[Synapse] = list(synapses or [])
        self.network = network
        self.potential = 0.0
        self.fired_potential = 0.0
        self.is_firing = False
        self._scheduler: Optional[EventScheduler] = None
        self._config: Optional[NetworkConfig] = None

    def __repr__(self) -> str:
        return (
            f"Neuron(id={self.id!r}, potential={self.potential:.3f}, "
            f"firing={self.is_firing}, synapses={len(self.synapses)})"
        )

    @property
    def config(self) -> NetworkConfig:
        if self.network is not None:
            return self.network.config
        if self._config is None:
            self._config = NetworkConfig()
        return self._config

    @property
    def scheduler(self) -> EventScheduler:
        if self.network is not None:
            return self.network.scheduler
        if self._scheduler is None:
            self._scheduler = EventScheduler()
        return self._scheduler

    @property
    def _owner(self) -> Any:
        return self.network if self.network is not None else self

    def fire(self, potential: Any = 1.0, source: Optional[Union[int, str]] = None) -> bool:
        """Deliver ``potential`` to this neuron.

        The potential is added for one conduction delay, then subtracted
        back out.  If the total exceeds the fire threshold the neuron commits:
        after the conduction delay it notifies listeners and signals every
        outgoing synapse; after the refractory delay it resets.

        Args:
            potential: Incoming potential; non-numbers count as 1.0, values
                are clamped to [-1, 1].
            source: Id of the upstream neuron, for attribution.

        Returns:
            ``False`` if the neuron is already firing (nothing changes),
            otherwise ``True``.
        """
        if self.is_firing:
            return False
        potential = clamp(float(potential), -1.0, 1.0) if is_number(potential) else 1.0
        cfg = self.config
        sched = self.scheduler
        owner = self._owner

        self.potential += potential
        sched.call_later(cfg.conduction_delay, self._decay_back, potential, owner=owner)

        if self.potential > cfg.signal_fire_threshold:
            self.is_firing = True
            self.fired_potential = self.potential
            sched.call_later(cfg.conduction_delay, self._propagate, source, owner=owner)
            sched.call_later(cfg.refractory_delay, self._recover, owner=owner)
        return True

    def _decay_back(self, amount: float) -> None:
        self.potential -= amount

    def _propagate(self, source: Optional[Union[int, str]]) -> None:
        now = self.scheduler.now
        self._emit(
            "fire",
            neuron_id=self.id,
            potential=self.fired_potential,
            source_id=source,
            time=now,
        )
        if self.network is None:
            return
        # Snapshot: a join may append synapses while the cascade is running.
        for syn in list(self.synapses):
            target = self.network.resolve(syn.target)
            if target is None:
                continue
            # Rejected calls (target already firing) are not stamped.
            delivered = propagated_potential(syn.weight, self.fired_potential)
            accepted = target.fire(delivered, source=self.id)
            if accepted and target.is_firing:
                syn.last_fired = now

    def _recover(self) -> None:
        self.potential = 0.0
        self.fired_potential = 0.0
        self.is_firing = False
        self._emit("ready", neuron_id=self.id, time=self.scheduler.now)

    def _emit(self, event_type: str, **kwargs: Any) -> None:
        if self.network is not None:
            self.network._emit(event_type, **kwargs)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def generate_synapses(
    size: int,
    index: int,
    config: NetworkConfig,
    shaper: Shaper,
    exact_count: bool = False,
) -> List[Synapse]:
    """Draw outgoing synapses for the neuron at ``index``.

    The candidate count averages ``connections_per_neuron`` (exactly that many
    when ``exact_count``).  Candidates the shaper cannot place are dropped.
    """
    cpn = int(config.connections_per_neuron)
    count = cpn if exact_count else brain_random.integer(1, 2 * cpn - 1)
    synapses: List[Synapse] = []
    for ordinal in range(count):
        target = shaper(size, index, cpn, ordinal)
        if target is None:
            continue
        # Mostly weak, slightly excitatory on average.
        weight = brain_random.uniform() ** 2 - 0.25
        synapses.append(Synapse(target=int(target), weight=weight))
    return synapses


def generate_neuron(
    size: int,
    index: int,
    config: NetworkConfig,
    shaper: Shaper,
    exact_count: Optional[bool] = None,
    network: Optional["NeuralNetwork"] = None,
) -> Neuron:
    """Create the neuron at ``index`` of a ``size``-neuron network.

    ``exact_count`` defaults to True for strategies that address specific
    ordinals (``layered``), whether passed by name or as the function.
    """
    if exact_count is None:
        exact_count = any(shaper is SHAPES[name] for name in EXACT_COUNT_SHAPES)
    synapses = generate_synapses(size, index, config, shaper, exact_count)
    return Neuron(index, synapses, network)


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------

@dataclass
class Telemetry:
    """Network statistics snapshot.

    Attributes:
        time: Scheduler clock (ms).
        total_neurons: Number of neurons.
        total_synapses: Number of synapses.
        firing_neurons: Neurons currently committed to firing.
        mean_weight: Mean synapse weight.
        std_weight: Standard deviation of synapse weights.
        strength: Fraction of synapses above the fire threshold.
        pending_events: Scheduled callbacks not yet run.
    """

    time: float = 0.0
    total_neurons: int = 0
    total_synapses: int = 0
    firing_neurons: int = 0
    mean_weight: float = 0.0
    std_weight: float = 0.0
    strength: float = 0.0
    pending_events: int = 0


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

ConfigLike = Union[NetworkConfig, Dict[str, Any], None]


class NeuralNetwork:
    """Ordered neurons, their synapses, I/O sites and the learning rule.

    Args:
        size: Number of neurons to generate.
        config: ``NetworkConfig`` or dict of overrides.
        shaper: Topology strategy; defaults to the one named by
            ``config.shape``.
        scheduler: Event queue to run on; a private one is created if omitted.
    """

    def __init__(
        self,
        size: int = 0,
        config: ConfigLike = None,
        shaper: Optional[Shaper] = None,
        scheduler: Optional[EventScheduler] = None,
    ) -> None:
        if isinstance(config, NetworkConfig):
            self.config = config.validate()
        else:
            self.config = load_config(config)
        self.scheduler = scheduler or EventScheduler()
        self.shaper: Shaper = shaper or get_shaper(self.config.shape)

        self.neurons: List[Neuron] = []
        self.inputs: Dict[str, InputSite] = {}
        self.outputs: Dict[str, OutputSite] = {}

        self._event_handlers: Dict[str, List[Callable]] = {}
        self._learning_rule: LearningRule = RecencyLearningRule()
        self.last_trained: Optional[float] = None
        self.last_learning: Optional[LearningResult] = None

        size = max(0, int(size))
        for i in range(size):
            self.neurons.append(generate_neuron(size, i, self.config, self.shaper, network=self))
        if size:
            logger.info(
                "Built network: %d neurons, %d synapses (shape=%s)",
                size,
                sum(len(n.synapses) for n in self.neurons),
                self.config.shape if shaper is None else getattr(shaper, "__name__", "custom"),
            )

    def __repr__(self) -> str:
        return f"NeuralNetwork(size={self.size}, shape={self.config.shape!r})"

    # -----------------------------------------------------------------------
    # Structure
    # -----------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self.neurons)

    @property
    def synapses(self) -> List[Synapse]:
        """Flat view of every synapse, in neuron order."""
        return [syn for neuron in self.neurons for syn in neuron.synapses]

    @property
    def strength(self) -> float:
        """Fraction of synapses whose weight exceeds the fire threshold."""
        synapses = self.synapses
        if not synapses:
            return 0.0
        threshold = self.config.signal_fire_threshold
        return sum(1 for s in synapses if s.weight > threshold) / len(synapses)

    def resolve(self, index: Any) -> Optional[Neuron]:
        """Neuron at ``index``, or ``None`` if there is none."""
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            return None
        if 0 <= index < len(self.neurons):
            return self.neurons[index]
        return None

    # -----------------------------------------------------------------------
    # Firing
    # -----------------------------------------------------------------------

    def fire(self, neuron_id: Any, potential: Any = 1.0) -> bool:
        """Fire one neuron by id; unknown ids are a no-op returning ``False``."""
        neuron = self.resolve(neuron_id)
        if neuron is None:
            return False
        return neuron.fire(potential)

    def advance(self, milliseconds: float) -> int:
        """Run the scheduler forward; returns the number of events executed."""
        return self.scheduler.advance(milliseconds)

    def stop(self) -> int:
        """Cancel this network's pending events.  Neuron state is untouched."""
        cancelled = self.scheduler.cancel(owner=self)
        logger.debug("Stopped network: %d pending events cancelled", cancelled)
        return cancelled

    # -----------------------------------------------------------------------
    # Learning
    # -----------------------------------------------------------------------

    @property
    def learning_period(self) -> float:
        """Recency window (ms): time since the last pass, capped at the config."""
        configured = self.config.learning_period
        if self.last_trained is None:
            return configured
        elapsed = self.scheduler.now - self.last_trained
        if elapsed <= 0 or elapsed > configured:
            return configured
        return elapsed

    def set_learning_rule(self, rule: LearningRule) -> None:
        self._learning_rule = rule

    def learn(self, rate: float = 1.0) -> "NeuralNetwork":
        """Reinforce (``rate > 0``) or weaken (``rate < 0``) recent pathways.

        ``rate`` is clamped to [-1, 1].  Returns the network for chaining;
        the summary is kept on ``last_learning``.
        """
        result = self._learning_rule.apply(self, rate)
        self.last_trained = self.scheduler.now
        self.last_learning = result
        logger.debug(
            "Learning pass rate=%.3f decayed=%.5f potentiated=%.5f corrected=%.5f",
            result.rate,
            result.decayed,
            result.potentiated,
            result.corrected,
        )
        self._emit("learned", result=result)
        return self

    def unlearn(self, rate: float = 1.0) -> "NeuralNetwork":
        return self.learn(-rate)

    # -----------------------------------------------------------------------
    # I/O sites
    # -----------------------------------------------------------------------

    def _site_ids(
        self,
        label: str,
        neurons: Union[int, List[int], None],
        registry: Dict[str, Any],
        from_end: bool,
    ) -> List[int]:
        if isinstance(neurons, (list, tuple)):
            ids = [int(i) for i in neurons]
        else:
            width = 1 if neurons is None else max(1, int(neurons))
            used = sum(len(site.neuron_ids) for name, site in registry.items() if name != label)
            if from_end:
                ids = [self.size - 1 - used - i for i in range(width)]
            else:
                ids = [used + i for i in range(width)]
        bad = [i for i in ids if self.resolve(i) is None]
        if bad:
            raise ValueError(f"Site {label!r} references neurons outside the network: {bad}")
        return ids

    def input(self, label: str, neurons: Union[int, List[int], None] = None) -> InputSite:
        """Register (or fetch) an input site.

        Args:
            label: Site name.
            neurons: Width of a freshly allocated site, or explicit neuron ids.
                ``None`` returns the existing site or allocates one neuron.

        Returns:
            Callable injector: ``site(value)`` fires every member.
        """
        if neurons is None and label in self.inputs:
            return self.inputs[label]
        ids = self._site_ids(label, neurons, self.inputs, from_end=False)
        site = InputSite(self, label, ids)
        self.inputs[label] = site
        return site

    def output(self, label: str, neurons: Union[int, List[int], None] = None) -> OutputSite:
        """Register (or fetch) an output site, allocated from the end."""
        if neurons is None and label in self.outputs:
            return self.outputs[label]
        ids = self._site_ids(label, neurons, self.outputs, from_end=True)
        previous = self.outputs.get(label)
        if previous is not None:
            previous.close()
        site = OutputSite(self, label, ids)
        self.outputs[label] = site
        return site

    # -----------------------------------------------------------------------
    # Composition
    # -----------------------------------------------------------------------

    def join(
        self,
        other: "NeuralNetwork",
        at: float = 0.975,
        overlap: float = 0.05,
    ) -> "NeuralNetwork":
        """Graft ``other`` onto this network and stitch the seam.

        ``other``'s neurons, synapses and sites are appended with indices
        shifted by this network's size (``other`` itself is not modified).
        Then every neuron whose index lies within ``overlap*size/2`` of
        ``at*size`` grows extra synapses into the appended range.  Joining a
        network to itself only adds the extra synapses, aimed anywhere.

        Args:
            other: Network to append.
            at: Seam position as a fraction of this network (clamped [0, 1]).
            overlap: Seam width as a fraction of this network (clamped [0, 1]).

        Returns:
            This network.
        """
        at = clamp(float(at), 0.0, 1.0)
        overlap = clamp(float(overlap), 0.0, 1.0)
        size = self.size

        if other is self:
            added = 0
            shaper = uniform_range(0, size - 1, exclude_self=True)
        else:
            record = other.export()
            added = record["neuronCount"]
            self._append_record(record, offset=size)
            shaper = uniform_range(size, size + added - 1)

        stitched = 0
        if size and (added or other is self):
            from_pos = max(0, math.floor(at * size - overlap * size / 2))
            to_pos = min(size - 1, math.ceil(at * size + overlap * size / 2))
            for i in range(from_pos, to_pos + 1):
                extra = generate_synapses(self.size, i, self.config, shaper)
                self.neurons[i].synapses.extend(extra)
                stitched += len(extra)

        logger.info(
            "Joined %s: %d neurons appended, %d seam synapses (at=%.3f, overlap=%.3f)",
            "self" if other is self else "network",
            added,
            stitched,
            at,
            overlap,
        )
        self._emit("joined", added_neurons=added, stitched_synapses=stitched)
        return self

    def _append_record(self, record: Dict[str, Any], offset: int) -> None:
        """Append the neurons/synapses/sites of a validated record."""
        count = record["neuronCount"]
        for i in range(count):
            self.neurons.append(Neuron(offset + i, network=self))
        for entry in record["synapses"]:
            self.neurons[offset + entry["source"]].synapses.append(
                Synapse(target=offset + entry["target"], weight=entry["weight"])
            )
        for registry, kind, factory in (
            (self.inputs, "inputs", InputSite),
            (self.outputs, "outputs", OutputSite),
        ):
            for label, ids in record.get(kind, {}).items():
                name = label if label not in registry else f"{label} ({offset})"
                registry[name] = factory(self, name, [offset + i for i in ids])

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    def export(self) -> Dict[str, Any]:
        """Plain, reference-free record of topology, weights, config and sites.

        Long-term weights and firing timestamps are runtime state and are not
        included.
        """
        return {
            "neuronCount": self.size,
            "synapses": [
                {"source": neuron.index, "target": syn.target, "weight": syn.weight}
                for neuron in self.neurons
                for syn in neuron.synapses
            ],
            "config": self.config.to_record(),
            "inputs": {label: list(site.neuron_ids) for label, site in self.inputs.items()},
            "outputs": {label: list(site.neuron_ids) for label, site in self.outputs.items()},
        }

    @staticmethod
    def validate_record(record: Any) -> Dict[str, Any]:
        """Normalise an exported record, raising ``CorruptRecordError``.

        Returns:
            A copy with integer ids and float weights.
        """
        if not isinstance(record, dict):
            raise CorruptRecordError(f"Record must be a mapping, got {type(record).__name__}")
        try:
            count = _record_index(record["neuronCount"], "neuronCount")
            synapses = [
                {
                    "source": _record_index(s["source"], "synapse source"),
                    "target": _record_index(s["target"], "synapse target"),
                    "weight": float(s["weight"]),
                }
                for s in record.get("synapses", [])
            ]
            config = NetworkConfig.from_record(record.get("config", {}))
            sites = {
                kind: {
                    str(label): [_record_index(i, f"{kind} site id") for i in ids]
                    for label, ids in record.get(kind, {}).items()
                }
                for kind in ("inputs", "outputs")
            }
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CorruptRecordError(f"Malformed network record: {exc}") from exc

        if count < 0:
            raise CorruptRecordError(f"neuronCount must be >= 0, got {count}")
        for s in synapses:
            if not (0 <= s["source"] < count and 0 <= s["target"] < count):
                raise CorruptRecordError(
                    f"Synapse {s['source']}->{s['target']} references a neuron "
                    f"outside 0..{count - 1}"
                )
        for kind, labels in sites.items():
            for label, ids in labels.items():
                bad = [i for i in ids if not 0 <= i < count]
                if bad:
                    raise CorruptRecordError(f"{kind} site {label!r} references missing neurons {bad}")

        return {
            "neuronCount": count,
            "synapses": synapses,
            "config": config,
            "inputs": sites["inputs"],
            "outputs": sites["outputs"],
        }

    @classmethod
    def from_record(
        cls,
        record: Dict[str, Any],
        scheduler: Optional[EventScheduler] = None,
    ) -> "NeuralNetwork":
        """Rebuild a network from ``export()`` output.

        Raises:
            CorruptRecordError: If the record is malformed or any synapse or
                site references a neuron outside the network.
        """
        data = cls.validate_record(record)
        net = cls(0, data["config"], scheduler=scheduler)
        net._append_record(data, offset=0)
        return net

    def clone(self) -> "NeuralNetwork":
        """Independent copy (own scheduler, fresh runtime state)."""
        return type(self).from_record(self.export())

    def checkpoint(self, path: Optional[str] = None) -> Path:
        """Write ``export()`` to disk.

        Args:
            path: Destination; ``.msgpack`` selects msgpack, anything else
                JSON.  Defaults to ``botbrain_paths.get_checkpoint_path()``.

        Returns:
            The written path.
        """
        target = Path(path).expanduser() if path is not None else get_checkpoint_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        data = {"version": RECORD_VERSION, "network": self.export()}
        if target.suffix == ".msgpack":
            with open(target, "wb") as f:
                msgpack.pack(data, f, use_bin_type=True)
        else:
            with open(target, "w") as f:
                json.dump(data, f, indent=2)
        logger.info("Checkpoint saved to %s (%d neurons)", target, self.size)
        return target

    @classmethod
    def restore(
        cls,
        path: Optional[str] = None,
        scheduler: Optional[EventScheduler] = None,
    ) -> "NeuralNetwork":
        """Load a network written by ``checkpoint()``."""
        source = Path(path).expanduser() if path is not None else get_checkpoint_path()
        if source.suffix == ".msgpack":
            with open(source, "rb") as f:
                data = msgpack.unpack(f, raw=False)
        else:
            with open(source, "r") as f:
                data = json.load(f)
        if not isinstance(data, dict) or "network" not in data:
            raise CorruptRecordError(f"{source} is not a botbrain checkpoint")
        net = cls.from_record(data["network"], scheduler=scheduler)
        logger.info("Checkpoint restored from %s (%d neurons)", source, net.size)
        return net

    # -----------------------------------------------------------------------
    # Telemetry
    # -----------------------------------------------------------------------

    def get_telemetry(self) -> Telemetry:
        weights = [s.weight for s in self.synapses]
        return Telemetry(
            time=self.scheduler.now,
            total_neurons=self.size,
            total_synapses=len(weights),
            firing_neurons=sum(1 for n in self.neurons if n.is_firing),
            mean_weight=float(np.mean(weights)) if weights else 0.0,
            std_weight=float(np.std(weights)) if weights else 0.0,
            strength=self.strength,
            pending_events=self.scheduler.pending(owner=self),
        )

    # -----------------------------------------------------------------------
    # Event System
    # -----------------------------------------------------------------------

    def register_event_handler(self, event_type: str, callback: Callable) -> None:
        """Subscribe to ``fire``, ``ready``, ``learned`` or ``joined``."""
        self._event_handlers.setdefault(event_type, []).append(callback)

    def remove_event_handler(self, event_type: str, callback: Callable) -> None:
        handlers = self._event_handlers.get(event_type, [])
        if callback in handlers:
            handlers.remove(callback)

    def _emit(self, event_type: str, **kwargs: Any) -> None:
        for cb in list(self._event_handlers.get(event_type, [])):
            cb(**kwargs)
