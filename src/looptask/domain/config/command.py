"""Command task configuration model."""

from typing import Literal

from pydantic import BaseModel


class CommandConfig(BaseModel):
    """Configuration for running a command on every attempt.

    Attributes:
        stop_on: Outcome that ends the run (success, failure, or never)
        shell: Whether the command is run through the shell
    """

    stop_on: Literal["success", "failure", "never"] = "success"
    shell: bool = False
