# -*- coding: utf-8 -*-
"""
Entry point for the watchplus command.

Orchestrates: settings, logging, option resolution, container, watch runner.
Exit codes: 0 on quit / signal / change exit, the command's own code on
error exit, 1 on configuration errors and unexpected internal faults.

Run with: watchplus [OPTIONS] COMMAND...  (or python -m watchplus.main)
"""
from __future__ import annotations

import asyncio
from typing import Optional

import structlog
import typer
from dependency_injector import providers

from watchplus import __version__
from watchplus.DI import Container
from watchplus.config import (
    CliFlags,
    Settings,
    WatchOptions,
    get_settings,
    resolve_options,
    validate_email_options,
)
from watchplus.exceptions import ConfigurationError
from watchplus.logging.config import configure_logging

EXIT_INTERNAL_ERROR = 1

app = typer.Typer(
    add_completion=False,
    help="Like watch(1), but emails you when the output changes.",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"watchplus {__version__}")
        raise typer.Exit()


async def run(options: WatchOptions, settings: Settings) -> int:
    """Build the object graph and run the watch loop; return the exit code."""
    container = Container(
        config=providers.Object(settings),
        options=providers.Object(options),
    )
    runner = container.watch_runner()
    return await runner.run()


def run_watch(options: WatchOptions, settings: Settings) -> int:
    """Run the loop, mapping unexpected faults to exit code 1."""
    logger = structlog.get_logger("main")
    try:
        return asyncio.run(run(options, settings))
    except Exception as exc:
        logger.exception(
            "watch_internal_error",
            error_type=type(exc).__name__,
            error_message=str(exc),
        )
        typer.echo(f"watch+: {exc}", err=True)
        return EXIT_INTERNAL_ERROR


@app.command(
    # Everything after the first positional token belongs to the watched command
    context_settings={"allow_interspersed_args": False, "help_option_names": ["-h", "--help"]},
)
def watch(
    command: list[str] = typer.Argument(..., metavar="COMMAND...", help="Command to run repeatedly."),
    interval: Optional[float] = typer.Option(None, "-n", "--interval", help="Seconds to wait between updates."),
    differences: bool = typer.Option(False, "-d", "--differences", help="Highlight changes between updates."),
    permanent: bool = typer.Option(
        False, "-P", "--permanent", help="Keep highlighting every line that has ever changed (implies -d)."
    ),
    errexit: bool = typer.Option(False, "-e", "--errexit", help="Exit if the command has a non-zero exit."),
    chgexit: bool = typer.Option(False, "-g", "--chgexit", help="Exit when output from the command changes."),
    color: bool = typer.Option(False, "--color/--no-color", "-c/-C", help="Pass through or strip ANSI color."),
    no_title: bool = typer.Option(False, "-t", "--no-title", help="Turn off the header."),
    no_wrap: bool = typer.Option(False, "-w", "--no-wrap", help="Truncate long lines instead of wrapping."),
    exec_mode: bool = typer.Option(False, "-x", "--exec", help="Pass the command to exec instead of sh -c."),
    precise: bool = typer.Option(False, "-p", "--precise", help="Attempt to run the command in precise intervals."),
    beep: bool = typer.Option(False, "-b", "--beep", help="Beep when the output changes."),
    email: Optional[str] = typer.Option(None, "--email", help="Email address to notify on change."),
    to: Optional[str] = typer.Option(None, "--to", help="Alias for --email."),
    sender: Optional[str] = typer.Option(None, "--from", help="Sender email address."),
    cooldown: Optional[str] = typer.Option(
        None, "--cooldown", help='Minimum time between emails (e.g. "30s", "5m"). Default 1m.'
    ),
    subject: Optional[str] = typer.Option(None, "--subject", help="Custom email subject."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Resend API key."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """Run COMMAND every few seconds, showing its output full screen."""
    try:
        settings = get_settings()
    except ValueError as exc:
        # pydantic ValidationError or a malformed JSON config file
        typer.echo(f"watch+: invalid configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_INTERNAL_ERROR) from exc
    configure_logging(settings)

    flags = CliFlags(
        interval=interval,
        differences="permanent" if permanent else differences,
        errexit=errexit,
        chgexit=chgexit,
        color=color,
        no_title=no_title,
        no_wrap=no_wrap,
        exec_mode=exec_mode,
        precise=precise,
        beep=beep,
        email=email,
        to=to,
        sender=sender,
        cooldown=cooldown,
        subject=subject,
        api_key=api_key,
    )
    try:
        options = resolve_options(flags, settings, command)
        validate_email_options(options)
    except ConfigurationError as exc:
        typer.echo(f"watch+: {exc}", err=True)
        raise typer.Exit(code=EXIT_INTERNAL_ERROR) from exc

    raise typer.Exit(code=run_watch(options, settings))


def main() -> None:
    app()


__all__ = ["app", "main", "run", "run_watch"]

if __name__ == "__main__":
    main()
