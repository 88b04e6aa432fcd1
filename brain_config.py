"""
Network configuration: one explicit dataclass with defaults.

Every tunable that shapes a network lives on ``NetworkConfig``.  Values can be
layered from a JSON file and a dict of overrides, field by field, or read from
the ``config`` section of an exported network record.

Usage::

    from brain_config import NetworkConfig, load_config

    cfg = load_config()                                   # defaults
    cfg = load_config({"shape": "ring", "signal_speed": 20})
    cfg = load_config(config_path="~/.botbrain/network.json")
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from network_shaper import SHAPES

logger = logging.getLogger("botbrain.config")

# Record (camelCase) key → dataclass field.
_RECORD_KEYS: Dict[str, str] = {
    "shape": "shape",
    "connectionsPerNeuron": "connections_per_neuron",
    "signalSpeed": "signal_speed",
    "signalFireThreshold": "signal_fire_threshold",
    "learningPeriod": "learning_period",
    "learningRate": "learning_rate",
    "retentionRate": "retention_rate",
    "recoveryMultiplier": "recovery_multiplier",
}


@dataclass
class NetworkConfig:
    """Tunables shared by every neuron of a network.

    Attributes:
        shape: Name of the topology strategy (see ``network_shaper.SHAPES``).
        connections_per_neuron: Average outgoing synapses per neuron.
        signal_speed: Signals per second; conduction delay is ``1000/speed`` ms.
        signal_fire_threshold: Potential a neuron must exceed to fire.
        learning_period: Window (ms) in which a fired synapse counts as recent.
        learning_rate: Scale of potentiation and of the decay tendency.
        retention_rate: Fraction by which long-term weight follows weight on
            each learning pass.
        recovery_multiplier: Refractory delay as a multiple of conduction delay.
    """

    shape: str = "tube"
    connections_per_neuron: int = 4
    signal_speed: float = 10.0
    signal_fire_threshold: float = 0.3
    learning_period: int = 60 * 1000
    learning_rate: float = 0.15
    retention_rate: float = 0.05
    recovery_multiplier: float = 10.0

    def validate(self) -> "NetworkConfig":
        """Raise ``ValueError`` for values no network can run with."""
        if self.shape not in SHAPES:
            raise ValueError(
                f"Unknown shape {self.shape!r}; expected one of {sorted(SHAPES)}"
            )
        if int(self.connections_per_neuron) < 1:
            raise ValueError("connections_per_neuron must be >= 1")
        if not self.signal_speed > 0:
            raise ValueError("signal_speed must be > 0")
        if self.learning_period < 0:
            raise ValueError("learning_period must be >= 0")
        if self.recovery_multiplier < 1:
            raise ValueError("recovery_multiplier must be >= 1")
        return self

    # -- Derived timings ---------------------------------------------------

    @property
    def conduction_delay(self) -> float:
        """Milliseconds between committing to fire and propagating."""
        return 1000.0 / self.signal_speed

    @property
    def refractory_delay(self) -> float:
        """Milliseconds between committing to fire and being ready again."""
        return self.conduction_delay * self.recovery_multiplier

    @property
    def stable_weight(self) -> float:
        """Weight level decay relaxes toward, absent long-term memory."""
        return self.signal_fire_threshold / self.connections_per_neuron

    # -- Conversion ----------------------------------------------------------

    def merged(self, overrides: Optional[Dict[str, Any]] = None) -> "NetworkConfig":
        """Return a copy with ``overrides`` applied field by field."""
        cfg = replace(self)
        _apply_overrides(cfg, overrides or {})
        return cfg

    def to_record(self) -> Dict[str, Any]:
        data = asdict(self)
        return {key: data[name] for key, name in _RECORD_KEYS.items()}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "NetworkConfig":
        """Build from the camelCase ``config`` section of an export record.

        Missing keys keep their defaults.
        """
        cfg = cls()
        for key, name in _RECORD_KEYS.items():
            if key in record:
                setattr(cfg, name, record[key])
        cfg.connections_per_neuron = int(cfg.connections_per_neuron)
        cfg.learning_period = int(cfg.learning_period)
        return cfg.validate()


_FIELD_NAMES = {f.name for f in fields(NetworkConfig)}


def _apply_overrides(cfg: NetworkConfig, overrides: Dict[str, Any]) -> None:
    """Apply known keys in place; unknown keys are logged and skipped."""
    for key, value in overrides.items():
        if key in _FIELD_NAMES:
            setattr(cfg, key, value)
        else:
            logger.warning("Ignoring unknown config key %r", key)


def load_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> NetworkConfig:
    """Create a ``NetworkConfig`` with defaults, optionally overridden.

    Override precedence (highest wins):
        1. ``overrides`` dict argument
        2. ``config_path`` JSON file
        3. Built-in defaults

    Args:
        overrides: Dict of field name → value.
        config_path: Path to a JSON object with the same keys.

    Returns:
        Validated ``NetworkConfig``.

    Raises:
        ValueError: If the resulting values are invalid.
    """
    cfg = NetworkConfig()

    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p) as f:
                    file_data = json.load(f)
                _apply_overrides(cfg, file_data)
            except (OSError, ValueError) as exc:
                logger.warning("Failed to load network config from %s: %s", p, exc)

    if overrides is not None:
        _apply_overrides(cfg, overrides)

    return cfg.validate()
