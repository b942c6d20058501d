"""CommandResult model - represents one run of an external command"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single command attempt"""

    attempt: int
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        """Check if the command exited with status 0"""
        return self.returncode == 0
