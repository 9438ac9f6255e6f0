import click
import httpx
from rich.console import Console

from mockserver_launcher.cli.utils import get_config, handle_exceptions, port_options, run_async
from mockserver_launcher.errors import OptionsValidationError
from mockserver_launcher.launcher import RESET_PATH, usage_message
from mockserver_launcher.poller import probe
from mockserver_launcher.protocols import Endpoint, PollOutcome, ProbeResponse

console = Console()


@click.command()
@port_options
@click.pass_context
@handle_exceptions
def status(ctx: click.Context, server_port: int | None, proxy_port: int | None) -> None:
    """
    Probe MockServer once and report whether it is reachable.
    """
    port = server_port or proxy_port
    if not port:
        raise OptionsValidationError(usage_message("status"))

    config = get_config(ctx)
    endpoint = Endpoint(config.host, port, RESET_PATH)

    async def _probe() -> PollOutcome:
        async with httpx.AsyncClient() as client:
            return await probe(client, endpoint, config.poll.attempt_timeout.total_seconds())

    outcome = run_async(_probe())
    if isinstance(outcome, ProbeResponse):
        console.print(
            f"✅ MockServer is running on port {port} (HTTP {outcome.response.status_code})",
            style="bold green",
        )
        return

    console.print(f"⛔ MockServer is not reachable on port {port}", style="yellow")
    ctx.exit(3)
