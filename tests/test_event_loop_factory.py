import asyncio

import pytest

from looptask.infrastructure.loop.asyncio_loop import AsyncioEventLoop
from looptask.infrastructure.loop.factory import EventLoopFactory
from looptask.infrastructure.loop.manual import ManualEventLoop


def test_factory_supports_backends():
    assert isinstance(EventLoopFactory.create("manual"), ManualEventLoop)
    assert isinstance(EventLoopFactory.create("MANUAL", {"start_time": 3}), ManualEventLoop)

    loop = asyncio.new_event_loop()
    try:
        backend = EventLoopFactory.create("asyncio", {"loop": loop})
        assert isinstance(backend, AsyncioEventLoop)
        assert backend.loop is loop
    finally:
        loop.close()


def test_factory_unknown_backend():
    with pytest.raises(ValueError, match="choose one of: asyncio, manual"):
        EventLoopFactory.create("qt")


def test_asyncio_backend_needs_running_loop():
    with pytest.raises(RuntimeError, match="running event loop"):
        EventLoopFactory.create("asyncio")


def test_asyncio_backend_rejects_non_loop():
    with pytest.raises(ValueError, match="asyncio event loop"):
        AsyncioEventLoop({"loop": object()})
