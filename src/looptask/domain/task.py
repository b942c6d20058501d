"""Base task interface"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from looptask.application.retry_scheduler import AttemptCallback


class Task(ABC):
    """Abstract base class for a unit of work driven by a RetryScheduler

    A task runs one attempt per ``start`` call and reports the outcome through
    the callback it was given. It must call the callback exactly once per
    attempt, on the scheduler's loop.
    """

    def __init__(self, support: Optional[Any] = None):
        """Initialize task

        Args:
            support: Optional value the task needs from its owner (an id, a
                context object, ...)
        """
        self._support = support

    @property
    def support(self) -> Optional[Any]:
        """Support value supplied by the owner"""
        return self._support

    @abstractmethod
    def start(self, callback: AttemptCallback) -> None:
        """Begin one attempt

        Args:
            callback: Receives the attempt outcome via ``process(carry_on, result)``
        """
        pass

    def cancel(self) -> None:
        """Abort in-flight work. Must be idempotent."""
        pass

    def on_destroy(self) -> None:
        """Release resources permanently. Must be idempotent."""
        pass
