"""Event loop backed by asyncio"""

import asyncio
import logging
from typing import Any, Callable, Dict

from looptask.infrastructure.loop.base import EventLoop, TimerHandle

logger = logging.getLogger(__name__)


class AsyncioTimerHandle(TimerHandle):
    """Wraps an asyncio.Handle / asyncio.TimerHandle"""

    def __init__(self, handle: asyncio.Handle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioEventLoop(EventLoop):
    """Schedules callbacks on an asyncio event loop"""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize asyncio backend

        Args:
            config: Optional configuration with:
                - loop: asyncio loop to use (default: the running loop)

        Raises:
            RuntimeError: If no loop was given and none is running
        """
        if config is None:
            config = {}
        super().__init__(config)
        loop = config.get("loop")
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise RuntimeError(
                    "asyncio backend needs a running event loop or an explicit 'loop'"
                ) from e
        self.loop: asyncio.AbstractEventLoop = loop

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate asyncio backend configuration"""
        loop = config.get("loop")
        if loop is not None and not isinstance(loop, asyncio.AbstractEventLoop):
            raise ValueError("loop must be an asyncio event loop")

    def call_soon(self, callback: Callable[[], None]) -> TimerHandle:
        return AsyncioTimerHandle(self.loop.call_soon(callback))

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if delay <= 0:
            return self.call_soon(callback)
        logger.debug(f"Arming asyncio timer in {delay:.3f}s")
        return AsyncioTimerHandle(self.loop.call_later(delay, callback))

    def time(self) -> float:
        return self.loop.time()
