"""Event loop backends"""

from looptask.infrastructure.loop.asyncio_loop import AsyncioEventLoop
from looptask.infrastructure.loop.base import EventLoop, TimerHandle
from looptask.infrastructure.loop.factory import EventLoopFactory
from looptask.infrastructure.loop.manual import ManualEventLoop

__all__ = [
    "EventLoop",
    "TimerHandle",
    "AsyncioEventLoop",
    "ManualEventLoop",
    "EventLoopFactory",
]
