"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from looptask.domain.config.command import CommandConfig
from looptask.domain.config.loop import LoopConfig
from looptask.domain.config.scheduler import SchedulerConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        scheduler: Delay, interval and retry budget
        loop: Event loop backend configuration
        command: Command task configuration
    """

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    command: CommandConfig = Field(default_factory=CommandConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "scheduler": {
                    "delay": 0.0,
                    "interval": 5.0,
                    "repeat": 3,
                },
                "loop": {
                    "backend": "asyncio",
                },
                "command": {
                    "stop_on": "success",
                    "shell": False,
                },
            }
        },
    )
