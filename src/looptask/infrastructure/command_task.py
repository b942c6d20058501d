"""Task that runs an external command on every attempt"""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import TYPE_CHECKING, Any, Optional, Sequence

from looptask.domain.models.command_result import CommandResult
from looptask.domain.task import Task

if TYPE_CHECKING:
    from looptask.application.retry_scheduler import AttemptCallback

logger = logging.getLogger(__name__)

# Exit status reported when the command cannot be launched at all
LAUNCH_FAILED = 127


class CommandTask(Task):
    """Runs a command as an asyncio subprocess, one run per attempt

    Must be started from inside a running asyncio loop.
    """

    STOP_CONDITIONS = ("success", "failure", "never")

    def __init__(
        self,
        command: Sequence[str],
        stop_on: str = "success",
        shell: bool = False,
        support: Optional[Any] = None,
    ):
        """Initialize command task

        Args:
            command: Program and arguments (joined into one line when ``shell``)
            stop_on: Outcome that ends the run: success (exit 0), failure
                (non-zero exit) or never
            shell: Run the command through the system shell
            support: Optional owner-supplied value

        Raises:
            ValueError: If the command is empty or stop_on is unknown
        """
        super().__init__(support)
        if not command:
            raise ValueError("command must not be empty")
        if stop_on not in self.STOP_CONDITIONS:
            available = ", ".join(self.STOP_CONDITIONS)
            raise ValueError(f"Unknown stop condition: {stop_on}. Available: {available}")
        self.command = list(command)
        self.stop_on = stop_on
        self.shell = shell
        self._attempt = 0
        self._job: Optional[asyncio.Task] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._destroyed = False

    @property
    def display_command(self) -> str:
        if self.shell:
            return " ".join(self.command)
        return shlex.join(self.command)

    def start(self, callback: AttemptCallback) -> None:
        if self._destroyed:
            raise RuntimeError("CommandTask was destroyed")
        self._attempt += 1
        loop = asyncio.get_running_loop()
        self._job = loop.create_task(self._execute(callback, self._attempt))

    def cancel(self) -> None:
        if self._process is not None and self._process.returncode is None:
            logger.debug(f"Killing process {self._process.pid}")
            try:
                self._process.kill()
            except ProcessLookupError:
                pass  # exited between the check and the kill
        if self._job is not None and not self._job.done():
            self._job.cancel()
        self._job = None
        self._process = None

    def on_destroy(self) -> None:
        self.cancel()
        self._destroyed = True

    def should_carry_on(self, result: CommandResult) -> bool:
        """Decide whether a result lets the scheduler keep going"""
        if self.stop_on == "success":
            return not result.succeeded
        if self.stop_on == "failure":
            return result.succeeded
        return True

    async def _execute(self, callback: AttemptCallback, attempt: int) -> None:
        result = await self._run(attempt)
        logger.info(f"Attempt {attempt} exited with status {result.returncode}")
        callback.process(self.should_carry_on(result), result)

    async def _run(self, attempt: int) -> CommandResult:
        logger.info(f"Attempt {attempt}: {self.display_command}")
        try:
            if self.shell:
                process = await asyncio.create_subprocess_shell(
                    self.display_command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            else:
                process = await asyncio.create_subprocess_exec(
                    *self.command,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
        except OSError as e:
            logger.warning(f"Failed to launch {self.command[0]}: {e}")
            return CommandResult(attempt=attempt, returncode=LAUNCH_FAILED, stderr=str(e))

        self._process = process
        stdout, stderr = await process.communicate()
        self._process = None
        return CommandResult(
            attempt=attempt,
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
