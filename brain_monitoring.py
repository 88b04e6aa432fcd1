"""
Monitoring — health summary and rotating event log for a running network.

Two layers:

1. ``health_context()`` — one-line natural language summary of a network
   (size, synapses, strength, activity).
2. ``EventLogger`` — subscribes to a network's notifications and writes
   JSON-line events to ``events.log`` with size-based rotation.  This is the
   same notification stream a remote visualiser would consume.

Usage::

    from brain_monitoring import EventLogger, health_context

    events = EventLogger(net, log_dir="/tmp/botbrain-logs")
    ...
    print(health_context(net))
    events.detach()
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from botbrain_paths import get_log_dir

logger = logging.getLogger("botbrain.monitoring")

_EVENTS = ("fire", "ready", "learned", "joined")


def health_context(network: Any) -> str:
    """Human-readable status line for a network."""
    try:
        t = network.get_telemetry()
    except (AttributeError, TypeError, ValueError) as exc:
        return f"botbrain: status unavailable ({exc})"
    parts = [
        f"botbrain: {t.total_neurons:,} neurons",
        f"{t.total_synapses:,} synapses",
        f"{t.strength:.0%} strong",
        f"mean weight {t.mean_weight:.3f}",
    ]
    if t.firing_neurons:
        parts.append(f"{t.firing_neurons} firing")
    else:
        parts.append("idle")
    return ", ".join(parts)


class EventLogger:
    """Rotating JSON-lines log of a network's notifications.

    Args:
        network: ``NeuralNetwork`` to observe.
        log_dir: Directory for ``events.log`` (defaults to
            ``botbrain_paths.get_log_dir()``).
        max_bytes: Rotation size.
        backup_count: Rotated files to keep.
        include_fire: Log every ``fire``/``ready`` event (can be chatty).
    """

    def __init__(
        self,
        network: Any,
        log_dir: Optional[str] = None,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        include_fire: bool = True,
    ) -> None:
        self._network = network
        directory = Path(log_dir).expanduser() if log_dir is not None else get_log_dir()
        directory.mkdir(parents=True, exist_ok=True)
        self.path = directory / "events.log"

        self._logger = logging.getLogger(f"botbrain.events.{id(self)}")
        self._logger.propagate = False
        self._logger.setLevel(logging.INFO)
        self._handler = logging.handlers.RotatingFileHandler(
            str(self.path), maxBytes=max_bytes, backupCount=backup_count
        )
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._logger.addHandler(self._handler)

        self._callbacks: Dict[str, Callable[..., None]] = {}
        for event_type in _EVENTS:
            if not include_fire and event_type in ("fire", "ready"):
                continue
            cb = self._make_callback(event_type)
            self._callbacks[event_type] = cb
            network.register_event_handler(event_type, cb)
        logger.info("Event log attached at %s", self.path)

    def _make_callback(self, event_type: str) -> Callable[..., None]:
        def callback(**kwargs: Any) -> None:
            self.log_event(event_type, kwargs)

        return callback

    def log_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """Write one structured event line."""
        result = data.get("result")
        if result is not None and hasattr(result, "__dataclass_fields__"):
            data = {**data, "result": asdict(result)}
        event = {
            "time": self._network.scheduler.now,
            "event": event_type,
            "data": data,
        }
        self._logger.info(json.dumps(event, default=str))

    def detach(self) -> None:
        """Unsubscribe and close the log file."""
        for event_type, cb in self._callbacks.items():
            self._network.remove_event_handler(event_type, cb)
        self._callbacks.clear()
        self._logger.removeHandler(self._handler)
        self._handler.close()
