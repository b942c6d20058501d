"""Event loop configuration model."""

from typing import Literal

from pydantic import BaseModel


class LoopConfig(BaseModel):
    """Configuration for the host event loop.

    Attributes:
        backend: Event loop backend (asyncio or manual)
    """

    backend: Literal["asyncio", "manual"] = "asyncio"
