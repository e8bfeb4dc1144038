# MIT License
# Copyright (c) 2025 Hashborn

"""
Discrete-Event Scheduler

Single-threaded, simulated-time replacement for timer callbacks.
Callbacks are kept in a heap ordered by (fire_time, sequence); the sequence
number breaks ties so callbacks scheduled for the same instant run in the
order they were scheduled. Each callback runs to completion before the next
one starts.
"""

import heapq
import itertools
import logging
from typing import Any, Callable, List, Optional, Tuple

from ...protocol.types.common import SchedulerError

logger = logging.getLogger(__name__)


class EventScheduler:
    """
    Priority queue of pending callbacks driving a simulated clock.

    The clock only moves forward: `now` is set to each callback's fire time
    just before the callback runs.
    """

    def __init__(self, max_events: int = 1_000_000):
        self.now: float = 0
        self.max_events = max_events
        self.processed = 0
        self._queue: List[Tuple[float, int, Callable[..., Any], tuple]] = []
        self._seq = itertools.count()

    def call_at(self, when: float, callback: Callable[..., Any], *args: Any) -> None:
        """
        Schedule `callback(*args)` at simulated time `when`.

        Raises:
            SchedulerError: if `when` is earlier than the current time
        """
        if when < self.now:
            raise SchedulerError(f"Cannot schedule at {when}, clock is already at {self.now}")
        heapq.heappush(self._queue, (when, next(self._seq), callback, args))

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        if delay < 0:
            raise SchedulerError(f"Delay must be >= 0, got {delay}")
        self.call_at(self.now + delay, callback, *args)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def next_time(self) -> Optional[float]:
        return self._queue[0][0] if self._queue else None

    def step(self) -> bool:
        """Run the earliest pending callback. Returns False when idle."""
        if not self._queue:
            return False
        when, _, callback, args = heapq.heappop(self._queue)
        self.now = when
        self.processed += 1
        callback(*args)
        return True

    def run(self, until: Optional[float] = None) -> int:
        """
        Drain the queue, or stop before the first callback later than `until`.

        When `until` is given the clock is advanced to it even if the queue
        empties earlier, so drivers can sample state "at" that instant.

        Returns:
            Number of callbacks processed by this call
        """
        if until is not None and until < self.now:
            raise SchedulerError(f"Cannot run until {until}, clock is already at {self.now}")

        count = 0
        while self._queue:
            if until is not None and self._queue[0][0] > until:
                break
            if count >= self.max_events:
                raise SchedulerError(f"Event budget of {self.max_events} exhausted at t={self.now}")
            self.step()
            count += 1

        if until is not None:
            self.now = until

        logger.debug(f"Scheduler ran {count} event(s), t={self.now}, pending={self.pending}")
        return count
