#!/usr/bin/env python3
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from mockserver_launcher.cli.start import start
from mockserver_launcher.cli.status import status
from mockserver_launcher.cli.stop import stop
from mockserver_launcher.config import LauncherConfig
from mockserver_launcher.logging_config import setup_structured_logging

console = Console()


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: WARNING)",
)
@click.option("--log-file", type=click.Path(path_type=Path), help="Write JSON logs to this rotating file")
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_file: Path | None) -> None:
    """
    Start, stop and probe a local MockServer.
    """
    setup_structured_logging(
        log_file_path=log_file,
        log_level=log_level,
        console_output=log_file is None,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = LauncherConfig.from_env()
    ctx.obj["log_level"] = log_level


@cli.command()
def version() -> None:
    """
    Show the version of mockserver-launcher.
    """
    from mockserver_launcher import __version__

    console.print(f"mockserver-launcher version: {__version__}", style="bold blue")


cli.add_command(start)
cli.add_command(stop)
cli.add_command(status)


def main() -> Any:
    return cli()


if __name__ == "__main__":
    main()
