"""Repeatable, cancellable task scheduling on a single-threaded event loop.

A RetryScheduler owns one task and at most one armed timer. Each time the
timer fires it starts one attempt of the task; the task reports back through
an AttemptCallback, and the scheduler either arms the next attempt after the
configured interval or ends the run and hands the last result to the
completion callback.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Optional, Union

from looptask.domain.config.scheduler import UNLIMITED, SchedulerConfig
from looptask.domain.task import Task
from looptask.infrastructure.loop.base import EventLoop, TimerHandle
from looptask.infrastructure.loop.factory import EventLoopFactory

logger = logging.getLogger(__name__)

Duration = Union[int, float, timedelta]
CompletionCallback = Callable[[Any], None]


def _to_seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class AttemptCallback:
    """Reports the outcome of one attempt back to its scheduler

    Only the first report counts; later ones are ignored.
    """

    def __init__(self, scheduler: RetryScheduler, attempt: int):
        self._scheduler = scheduler
        self.attempt = attempt
        self._reported = False

    @property
    def reported(self) -> bool:
        """Check if this attempt already reported its outcome"""
        return self._reported

    def process(self, carry_on: bool, result: Any = None) -> None:
        """Report the attempt outcome

        Args:
            carry_on: True to let the scheduler retry while budget remains,
                False to end the run with ``result``
            result: Value passed to the completion callback if the run ends
        """
        if self._reported:
            logger.warning(f"Attempt {self.attempt} reported more than once, ignoring")
            return
        self._reported = True
        self._scheduler._attempt_finished(self, carry_on, result)

    def proceed(self, result: Any = None) -> None:
        """Report a retryable outcome"""
        self.process(True, result)

    def stop(self, result: Any = None) -> None:
        """Report a final outcome, ending the run"""
        self.process(False, result)


class RetryScheduler:
    """Runs a task repeatedly with a fixed delay, interval and retry budget

    Instances are created through ``RetryScheduler.builder()``. All methods
    must be called on the loop's thread.
    """

    def __init__(
        self,
        task: Task,
        config: SchedulerConfig,
        on_complete: Optional[CompletionCallback] = None,
        loop: Optional[EventLoop] = None,
    ):
        self._task = task
        self._config = config
        self._on_complete = on_complete
        self._loop = loop
        # repeat counts retries, so the budget is one more attempt than that
        self._remaining = UNLIMITED if config.is_unlimited else config.repeat + 1
        self._pending: Optional[TimerHandle] = None
        self._in_flight: Optional[AttemptCallback] = None
        self._attempts = 0
        self._destroyed = False

    @classmethod
    def builder(cls) -> RetryScheduler.Builder:
        """Start configuring a new scheduler"""
        return cls.Builder()

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def task(self) -> Task:
        return self._task

    @property
    def remaining(self) -> int:
        """Attempts left, or UNLIMITED"""
        return self._remaining

    @property
    def attempts(self) -> int:
        """Attempts started in the current run"""
        return self._attempts

    @property
    def is_pending(self) -> bool:
        """Check if an attempt is armed on the loop"""
        return self._pending is not None

    @property
    def is_running(self) -> bool:
        """Check if a run is active (attempt armed or in flight)"""
        return self._pending is not None or self._in_flight is not None

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def _has_remaining(self) -> bool:
        return self._remaining > 0 or self._remaining == UNLIMITED

    def start(self) -> None:
        """Start a run: arm the first attempt after the configured delay

        No-op once destroyed, when the retry budget is spent, or while an
        attempt is in flight.
        """
        if self._destroyed:
            logger.debug("Ignoring start() on a destroyed scheduler")
            return
        if not self._has_remaining():
            logger.debug("Ignoring start(): no attempts remaining")
            return
        if self._in_flight is not None:
            logger.debug(f"Ignoring start(): attempt {self._in_flight.attempt} in flight")
            return
        self._attempts = 0
        self._schedule_next(self._config.delay)

    def cancel(self) -> None:
        """Stop future attempts and ask the task to abort in-flight work

        The completion callback is not invoked. A later ``start()`` begins a
        new run with whatever budget is left.
        """
        self._disarm()
        self._in_flight = None
        if self._destroyed:
            return
        logger.debug("Scheduler cancelled")
        self._task.cancel()

    def on_destroy(self) -> None:
        """Stop future attempts and release the task for good"""
        if self._destroyed:
            return
        self._destroyed = True
        self._disarm()
        self._in_flight = None
        logger.info(f"Destroying scheduler for {type(self._task).__name__}")
        self._task.on_destroy()

    def _disarm(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_next(self, after: float) -> None:
        self._disarm()
        if self._loop is None:
            self._loop = EventLoopFactory.create("asyncio")
        if after > 0:
            logger.debug(f"Next attempt in {after:.3f}s")
            self._pending = self._loop.call_later(after, self._run_attempt)
        else:
            self._pending = self._loop.call_soon(self._run_attempt)

    def _run_attempt(self) -> None:
        self._pending = None
        if self._remaining != UNLIMITED:
            self._remaining -= 1
        self._attempts += 1
        callback = AttemptCallback(self, self._attempts)
        self._in_flight = callback
        logger.debug(f"Starting attempt {self._attempts} (remaining={self._remaining})")
        self._task.start(callback)

    def _attempt_finished(self, callback: AttemptCallback, carry_on: bool, result: Any) -> None:
        if callback is not self._in_flight:
            logger.debug(f"Dropping report from abandoned attempt {callback.attempt}")
            return
        self._in_flight = None

        if carry_on and self._has_remaining():
            self._schedule_next(self._config.interval)
            return

        if carry_on:
            logger.debug(f"Retry budget exhausted after {self._attempts} attempts")
        else:
            logger.debug(f"Task stopped the run on attempt {self._attempts}")
        if self._on_complete is not None:
            self._on_complete(result)

    class Builder:
        """Fluent configuration for a RetryScheduler"""

        def __init__(self):
            self._delay: Duration = 0.0
            self._interval: Duration = 0.0
            self._repeat = UNLIMITED
            self._task: Optional[Task] = None
            self._callback: Optional[CompletionCallback] = None
            self._loop: Optional[EventLoop] = None

        def delay(self, delay: Duration) -> RetryScheduler.Builder:
            """Wait before the first attempt (seconds or timedelta)"""
            self._delay = delay
            return self

        def interval(self, interval: Duration) -> RetryScheduler.Builder:
            """Wait between attempts (seconds or timedelta)"""
            self._interval = interval
            return self

        def task(self, task: Task) -> RetryScheduler.Builder:
            self._task = task
            return self

        def repeat(self, repeat: int) -> RetryScheduler.Builder:
            """Automatic retries after the first attempt; -1 for unlimited"""
            self._repeat = repeat
            return self

        def callback(self, callback: CompletionCallback) -> RetryScheduler.Builder:
            self._callback = callback
            return self

        def loop(self, loop: EventLoop) -> RetryScheduler.Builder:
            self._loop = loop
            return self

        def configure(self, config: SchedulerConfig) -> RetryScheduler.Builder:
            """Take delay, interval and repeat from a SchedulerConfig"""
            self._delay = config.delay
            self._interval = config.interval
            self._repeat = config.repeat
            return self

        def build(self) -> RetryScheduler:
            """Create an unarmed scheduler

            Raises:
                ValueError: If no task was set
                pydantic.ValidationError: If a value is out of range
            """
            if self._task is None:
                raise ValueError("A task is required to build a RetryScheduler")
            config = SchedulerConfig(
                delay=_to_seconds(self._delay),
                interval=_to_seconds(self._interval),
                repeat=self._repeat,
            )
            return RetryScheduler(self._task, config, self._callback, self._loop)
