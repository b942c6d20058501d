"""CLI interface for looptask"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import click
import yaml
from pydantic import ValidationError

from looptask.application.retry_scheduler import RetryScheduler
from looptask.domain.config import CommandConfig, SchedulerConfig
from looptask.domain.models.command_result import CommandResult
from looptask.infrastructure.command_task import CommandTask
from looptask.infrastructure.config.config_manager import ConfigManager
from looptask.infrastructure.loop.factory import EventLoopFactory

logger = logging.getLogger(__name__)

# Conventional exit status after SIGINT
EXIT_INTERRUPTED = 130


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _scheduler_config(
    config_manager: ConfigManager,
    delay: Optional[float],
    interval: Optional[float],
    repeat: Optional[int],
) -> SchedulerConfig:
    """Merge CLI overrides into the configured scheduler timing

    Raises:
        ValidationError: If an override is out of range
    """
    overrides: Dict[str, Any] = {
        key: value
        for key, value in (("delay", delay), ("interval", interval), ("repeat", repeat))
        if value is not None
    }
    base = config_manager.get_scheduler_config()
    return SchedulerConfig(**{**base.model_dump(), **overrides})


async def run_until_complete(scheduler_config: SchedulerConfig, task: CommandTask) -> CommandResult:
    """Drive a CommandTask with a RetryScheduler until the run ends

    The scheduler is destroyed on the way out, which also kills a command
    still running when the coroutine is cancelled.

    Args:
        scheduler_config: Delay, interval and retry budget
        task: Command to run on every attempt

    Returns:
        Result of the final attempt
    """
    loop = asyncio.get_running_loop()
    done: asyncio.Future = loop.create_future()

    def _on_complete(result: CommandResult) -> None:
        if not done.done():
            done.set_result(result)

    scheduler = (
        RetryScheduler.builder()
        .configure(scheduler_config)
        .task(task)
        .loop(EventLoopFactory.create("asyncio", {"loop": loop}))
        .callback(_on_complete)
        .build()
    )
    scheduler.start()
    try:
        return await done
    finally:
        scheduler.on_destroy()


def exit_status(returncode: int) -> int:
    """Translate a subprocess return code into a process exit status

    asyncio reports a child killed by signal N as -N; shells report 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def _output_run_result(result: CommandResult) -> None:
    """Output the final attempt to console

    Args:
        result: Result of the final attempt
    """
    if result.stdout:
        click.echo(result.stdout, nl=False)
    if result.stderr:
        click.echo(result.stderr, nl=False, err=True)
    click.echo(
        f"Finished after {result.attempt} attempt(s) with exit status {result.returncode}",
        err=True,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .looptask.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """looptask - run a command on a delay/interval/retry schedule"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--delay", type=float, help="Seconds before the first attempt. Overrides config.")
@click.option("--interval", type=float, help="Seconds between attempts. Overrides config.")
@click.option(
    "--repeat",
    type=int,
    help="Retries after the first attempt (-1 = unlimited). Overrides config.",
)
@click.option(
    "--stop-on",
    type=click.Choice(CommandTask.STOP_CONDITIONS, case_sensitive=False),
    help="Outcome that ends the run: success, failure, never. Overrides config.",
)
@click.option(
    "--shell/--no-shell",
    default=None,
    help="Run COMMAND through the shell. Overrides config.",
)
@click.pass_context
def run(
    ctx,
    command: Sequence[str],
    delay: Optional[float],
    interval: Optional[float],
    repeat: Optional[int],
    stop_on: Optional[str],
    shell: Optional[bool],
):
    """Run COMMAND on every attempt until the run ends.

    COMMAND: Program and arguments, usually after "--"
    """
    verbose = ctx.obj.get("verbose", False)

    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
        loop_config = config_manager.get_loop_config()
        if loop_config.backend != "asyncio":
            _die(f"The run command needs the asyncio backend, not {loop_config.backend}")

        try:
            scheduler_config = _scheduler_config(config_manager, delay, interval, repeat)
        except ValidationError as e:
            _die(f"Invalid schedule: {e}", verbose=verbose, exc=e)

        command_config: CommandConfig = config_manager.get_command_config()
        task = CommandTask(
            command,
            stop_on=(stop_on or command_config.stop_on).lower(),
            shell=command_config.shell if shell is None else shell,
        )
        logger.info(
            f"Scheduling {task.display_command} "
            f"(delay={scheduler_config.delay}s, interval={scheduler_config.interval}s, "
            f"repeat={scheduler_config.repeat})"
        )

        try:
            result = asyncio.run(run_until_complete(scheduler_config, task))
        except KeyboardInterrupt:
            click.echo("Interrupted", err=True)
            sys.exit(EXIT_INTERRUPTED)

        _output_run_result(result)
        sys.exit(exit_status(result.returncode))

    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as YAML."""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)
    click.echo(yaml.safe_dump(config_manager.config.model_dump(), sort_keys=False), nl=False)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
