"""Event loop backend lookup by name"""

import logging
from typing import Any, Dict

from looptask.infrastructure.loop.asyncio_loop import AsyncioEventLoop
from looptask.infrastructure.loop.base import EventLoop
from looptask.infrastructure.loop.manual import ManualEventLoop

logger = logging.getLogger(__name__)


class EventLoopFactory:
    """Maps backend names (as used in ``loop.backend``) to EventLoop classes"""

    BACKENDS = {
        "asyncio": AsyncioEventLoop,
        "manual": ManualEventLoop,
    }

    @classmethod
    def create(cls, backend: str, config: Dict[str, Any] = None) -> EventLoop:
        """Instantiate the backend registered under ``backend``

        Names are matched case-insensitively. The asyncio backend binds to the
        running loop unless ``config`` carries one under ``"loop"``.

        Args:
            backend: Backend name
            config: Backend-specific options, passed through untouched

        Returns:
            Ready-to-use EventLoop

        Raises:
            ValueError: If no backend is registered under that name
        """
        name = backend.lower()
        backend_class = cls.BACKENDS.get(name)
        if backend_class is None:
            raise ValueError(
                f"No event loop backend named {backend!r}; "
                f"choose one of: {', '.join(cls.BACKENDS)}"
            )

        logger.debug(f"Using {name} event loop backend")
        return backend_class(config or {})
