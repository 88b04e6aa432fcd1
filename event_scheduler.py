"""
Delay-keyed event queue driving firing cascades.

The simulation is single-threaded and cooperative: neurons never sleep, they
schedule callbacks ``delay`` milliseconds ahead on a logical clock and the
scheduler runs them in time order.  Events due at the same instant run in the
order they were scheduled.  Callbacks may schedule further events.

The clock only moves when the owner asks it to (``advance``, ``run_until``,
``run``), which keeps cascades reproducible in tests.  ``run_realtime`` paces
the same queue against wall-clock time for live use.

Usage::

    sched = EventScheduler()
    sched.call_later(100, print, "hello")
    sched.advance(100)        # prints "hello", sched.now == 100
"""

from __future__ import annotations

import heapq
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger("botbrain.scheduler")


class ScheduledEvent:
    """Handle for one pending callback."""

    __slots__ = ("time", "callback", "args", "owner", "cancelled")

    def __init__(
        self,
        time: float,
        callback: Callable[..., Any],
        args: Tuple[Any, ...],
        owner: Any = None,
    ) -> None:
        self.time = time
        self.callback = callback
        self.args = args
        self.owner = owner
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"ScheduledEvent(time={self.time}, {state})"


class EventScheduler:
    """Priority queue of callbacks keyed by logical time in milliseconds.

    Args:
        start: Initial clock value.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self._queue: List[Tuple[float, int, ScheduledEvent]] = []
        self._seq = 0

    @property
    def now(self) -> float:
        """Current logical time (ms)."""
        return self._now

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
        owner: Any = None,
    ) -> ScheduledEvent:
        """Schedule ``callback(*args)`` at ``now + delay``.

        Negative delays are treated as zero.  ``owner`` tags the event so it
        can be cancelled together with its siblings.
        """
        event = ScheduledEvent(self._now + max(0.0, float(delay)), callback, args, owner)
        self._seq += 1
        heapq.heappush(self._queue, (event.time, self._seq, event))
        return event

    def pending(self, owner: Any = None) -> int:
        """Number of live events, optionally only those of ``owner``."""
        return sum(
            1
            for _, _, ev in self._queue
            if not ev.cancelled and (owner is None or ev.owner is owner)
        )

    def next_time(self) -> Optional[float]:
        """Time of the earliest live event, or ``None`` when idle."""
        self._drop_cancelled_head()
        return self._queue[0][0] if self._queue else None

    def cancel(self, owner: Any = None) -> int:
        """Cancel pending events of ``owner`` (all events if ``None``).

        Returns:
            Number of events cancelled.
        """
        count = 0
        kept: List[Tuple[float, int, ScheduledEvent]] = []
        for entry in self._queue:
            ev = entry[2]
            if ev.cancelled:
                continue
            if owner is None or ev.owner is owner:
                ev.cancel()
                count += 1
            else:
                kept.append(entry)
        heapq.heapify(kept)
        self._queue = kept
        return count

    # -- Running -------------------------------------------------------------

    def _drop_cancelled_head(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def _run_one(self) -> None:
        t, _, event = heapq.heappop(self._queue)
        self._now = max(self._now, t)
        event.callback(*event.args)

    def run_until(self, until: float) -> int:
        """Run every event due at or before ``until``, then set the clock there.

        Returns:
            Number of callbacks executed.
        """
        count = 0
        while True:
            self._drop_cancelled_head()
            if not self._queue or self._queue[0][0] > until:
                break
            self._run_one()
            count += 1
        self._now = max(self._now, float(until))
        return count

    def advance(self, delta: float) -> int:
        """Move the clock forward by ``delta`` ms, running due events."""
        return self.run_until(self._now + max(0.0, float(delta)))

    def run(self, max_events: Optional[int] = None) -> int:
        """Drain the queue (or stop after ``max_events`` callbacks)."""
        count = 0
        while max_events is None or count < max_events:
            self._drop_cancelled_head()
            if not self._queue:
                break
            self._run_one()
            count += 1
        return count

    def run_realtime(
        self,
        duration: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Run the queue paced against wall-clock time for ``duration`` seconds.

        One logical millisecond corresponds to one real millisecond.
        """
        started = clock()
        origin = self._now
        end = origin + duration * 1000.0
        count = 0
        while True:
            nxt = self.next_time()
            target = end if nxt is None else min(nxt, end)
            wait = (target - origin) / 1000.0 - (clock() - started)
            if wait > 0:
                sleep(wait)
            count += self.run_until(target)
            if target >= end:
                break
        logger.debug("Realtime run executed %d events over %.3fs", count, duration)
        return count
