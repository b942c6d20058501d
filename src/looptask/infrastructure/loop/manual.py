"""Manually driven event loop for testing and prototyping"""

import heapq
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from looptask.infrastructure.loop.base import EventLoop, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALLBACKS_PER_INSTANT = 1000


class ManualTimerHandle(TimerHandle):
    """Handle for a callback queued on a ManualEventLoop"""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualEventLoop(EventLoop):
    """Virtual-clock event loop that only runs when told to

    Time never moves on its own: ``advance()`` moves the clock forward and runs
    every callback that falls due on the way, in due-time order and FIFO among
    callbacks due at the same instant.
    """

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize manual loop

        Args:
            config: Optional configuration with:
                - start_time: Initial clock value in seconds (default: 0.0)
                - max_callbacks_per_instant: Cap on callbacks run by one
                  ``advance()`` without the clock moving (default: 1000)
        """
        if config is None:
            config = {}
        super().__init__(config)
        self._now = float(config.get("start_time", 0.0))
        self.max_callbacks_per_instant = config.get(
            "max_callbacks_per_instant", DEFAULT_MAX_CALLBACKS_PER_INSTANT
        )
        self._queue: List[Tuple[float, int, ManualTimerHandle]] = []
        self._counter = itertools.count()

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate manual loop configuration"""
        if "start_time" in config and not isinstance(config["start_time"], (int, float)):
            raise ValueError("start_time must be a number")
        cap = config.get("max_callbacks_per_instant", DEFAULT_MAX_CALLBACKS_PER_INSTANT)
        if not isinstance(cap, int) or cap < 1:
            raise ValueError("max_callbacks_per_instant must be a positive integer")

    def call_soon(self, callback: Callable[[], None]) -> TimerHandle:
        return self.call_later(0, callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = ManualTimerHandle(self._now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def time(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of callbacks still armed"""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def next_deadline(self) -> Optional[float]:
        """Due time of the earliest armed callback, or None when idle"""
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def run_once(self) -> int:
        """Run the callbacks due now that were queued before this call

        Callbacks armed while running wait for the next call.

        Returns:
            Number of callbacks run
        """
        ready = []
        while self._queue and self._queue[0][0] <= self._now:
            ready.append(heapq.heappop(self._queue)[2])
        ran = 0
        for handle in ready:
            if handle.cancelled():
                continue
            handle.callback()
            ran += 1
        return ran

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running everything that falls due

        At most ``max_callbacks_per_instant`` callbacks run at any one clock
        value. A job that keeps re-arming itself with ``call_soon`` (an
        unlimited scheduler with a zero interval, say) would otherwise never
        let the clock move. When the cap is hit the rest stays queued, a
        warning is logged and the clock still moves to the target; the next
        ``advance()`` or ``run_once()`` picks the leftovers up.

        Args:
            seconds: How far to move the clock

        Returns:
            Number of callbacks run
        """
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        ran = 0
        ran_at_instant = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            if deadline > self._now:
                self._now = deadline
                ran_at_instant = 0
            elif ran_at_instant >= self.max_callbacks_per_instant:
                logger.warning(
                    f"Ran {ran_at_instant} callbacks at t={self._now:.3f} without the "
                    f"clock moving, leaving the rest queued"
                )
                break
            count = self.run_once()
            ran += count
            ran_at_instant += count
        self._now = target
        return ran

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled():
            heapq.heappop(self._queue)
