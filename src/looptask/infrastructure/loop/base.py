"""Base event loop interface"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict


class TimerHandle(ABC):
    """Cancellable reference to a callback armed on an event loop"""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Cancelling twice is a no-op."""
        pass

    @abstractmethod
    def cancelled(self) -> bool:
        """Check if the handle was cancelled"""
        pass


class EventLoop(ABC):
    """Abstract base class for host event loops

    All callbacks run on the loop's own thread, one at a time.
    """

    def __init__(self, config: Dict[str, Any]):
        """Initialize loop with configuration

        Args:
            config: Loop configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        self.config = config
        self._validate_config(config)

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate loop configuration

        Args:
            config: Configuration dictionary

        Raises:
            ValueError: If configuration is invalid
        """
        # Override in subclasses for specific validation
        pass

    @abstractmethod
    def call_soon(self, callback: Callable[[], None]) -> TimerHandle:
        """Run callback on the next loop iteration

        Args:
            callback: Zero-argument callable

        Returns:
            Handle that can cancel the callback
        """
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once ``delay`` seconds have elapsed

        Args:
            delay: Delay in seconds
            callback: Zero-argument callable

        Returns:
            Handle that can cancel the callback
        """
        pass

    @abstractmethod
    def time(self) -> float:
        """Current loop time in seconds"""
        pass
