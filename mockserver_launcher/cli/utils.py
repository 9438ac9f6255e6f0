"""CLI utility decorators and helpers."""

import asyncio
import functools
from collections.abc import Callable, Coroutine
from typing import Any

import click
from rich.console import Console

from mockserver_launcher.config import LauncherConfig
from mockserver_launcher.errors import LauncherError
from mockserver_launcher.logging_config import get_logger, log_level_for, set_log_level

log = get_logger(__name__)
console = Console()


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print launcher errors in red and exit 1; anything else is logged with a traceback."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.exceptions.Exit, click.ClickException, click.Abort):
            raise
        except LauncherError as e:
            console.print(f"❌ {type(e).__name__}: {e}", style="bold red")
            raise click.exceptions.Exit(1) from e
        except Exception as e:
            log.exception("Unexpected error", command=func.__name__)
            console.print(f"❌ Unexpected error: {e}", style="bold red")
            raise click.exceptions.Exit(1) from e

    return wrapper


def run_async[R](coro: Coroutine[Any, Any, R]) -> R:
    return asyncio.run(coro)


def get_config(ctx: click.Context) -> LauncherConfig:
    ctx.ensure_object(dict)
    config = ctx.obj.get("config")
    if config is None:
        config = LauncherConfig.from_env()
        ctx.obj["config"] = config
    return config


def apply_verbosity(ctx: click.Context, verbose: bool, trace: bool = False) -> None:
    """Lower the launcher log level for --verbose / --trace, never raise it."""
    ctx.ensure_object(dict)
    if verbose or trace:
        set_log_level(log_level_for(verbose, trace, ctx.obj.get("log_level", "WARNING")))


def port_options[F: Callable[..., Any]](func: F) -> F:
    func = click.option("--proxy-port", type=int, help="MockServer proxy port")(func)
    func = click.option("--server-port", type=int, help="MockServer server port")(func)
    return func
