"""Configuration models with Pydantic validation."""

from looptask.domain.config.app import AppConfig
from looptask.domain.config.command import CommandConfig
from looptask.domain.config.loop import LoopConfig
from looptask.domain.config.scheduler import UNLIMITED, SchedulerConfig

__all__ = [
    "AppConfig",
    "SchedulerConfig",
    "LoopConfig",
    "CommandConfig",
    "UNLIMITED",
]
