import click
from rich.console import Console

from mockserver_launcher.cli.utils import (
    apply_verbosity,
    get_config,
    handle_exceptions,
    port_options,
    run_async,
)
from mockserver_launcher.errors import StopTimeoutError
from mockserver_launcher.launcher import MockServerLauncher

console = Console()


@click.command()
@port_options
@click.option("--verbose", is_flag=True, help="Log every stop poll attempt")
@click.pass_context
@handle_exceptions
def stop(ctx: click.Context, server_port: int | None, proxy_port: int | None, verbose: bool) -> None:
    """Send the stop command to MockServer and wait for its port to close."""
    apply_verbosity(ctx, verbose)
    config = get_config(ctx)
    console.print("🛑 Stopping MockServer...", style="blue")

    async def _stop() -> None:
        async with MockServerLauncher(config) as launcher:
            await launcher.stop(server_port=server_port, proxy_port=proxy_port, verbose=verbose)

    try:
        run_async(_stop())
    except StopTimeoutError as e:
        console.print(f"⚠️  MockServer may still be running: {e}", style="yellow")
        ctx.exit(1)

    console.print("✅ MockServer stopped", style="bold green")
