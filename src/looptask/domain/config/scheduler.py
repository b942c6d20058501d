"""Scheduler timing configuration model."""

from pydantic import BaseModel, ConfigDict, Field

UNLIMITED = -1


class SchedulerConfig(BaseModel):
    """Timing and retry budget of a scheduled job.

    Attributes:
        delay: Seconds to wait before the first attempt (0 = immediate)
        interval: Seconds to wait between attempts (0 = immediate)
        repeat: Automatic retries after the first attempt (-1 = unlimited)
    """

    delay: float = Field(0.0, ge=0.0)
    interval: float = Field(0.0, ge=0.0)
    repeat: int = Field(UNLIMITED, ge=UNLIMITED)

    model_config = ConfigDict(frozen=True)

    @property
    def is_unlimited(self) -> bool:
        """Check if the retry budget is unbounded"""
        return self.repeat == UNLIMITED
