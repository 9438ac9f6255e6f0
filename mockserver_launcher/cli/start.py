from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console

from mockserver_launcher.cli.utils import (
    apply_verbosity,
    get_config,
    handle_exceptions,
    port_options,
    run_async,
)
from mockserver_launcher.config import LaunchOptions
from mockserver_launcher.launcher import MockServerLauncher
from mockserver_launcher.protocols import HealthResponse

console = Console()


@click.command()
@port_options
@click.option("--proxy-remote-port", type=int, help="Port requests are forwarded to by the proxy")
@click.option("--proxy-remote-host", help="Host requests are forwarded to by the proxy")
@click.option("--mockserver-version", "version", help="mockserver-netty version to launch")
@click.option("--artifact-host", help="Repository host serving the mockserver-netty jar")
@click.option("--artifact-path", help="Repository path of the mockserver-netty artifacts")
@click.option(
    "--artifact-dir",
    type=click.Path(path_type=Path, file_okay=False),
    help="Directory the jar is cached in",
)
@click.option("--java-debug-port", type=int, help="Wait for a JDWP debugger on this port")
@click.option("--system-property", "system_properties", multiple=True, help="Extra -D system property")
@click.option("--verbose", is_flag=True, help="Show MockServer output and INFO logging")
@click.option("--trace", is_flag=True, help="Run MockServer with TRACE logging")
@click.pass_context
@handle_exceptions
def start(
    ctx: click.Context,
    server_port: int | None,
    proxy_port: int | None,
    proxy_remote_port: int | None,
    proxy_remote_host: str | None,
    version: str | None,
    artifact_host: str | None,
    artifact_path: str | None,
    artifact_dir: Path | None,
    java_debug_port: int | None,
    system_properties: tuple[str, ...],
    verbose: bool,
    trace: bool,
) -> None:
    """Start MockServer in the background and wait until it answers."""
    apply_verbosity(ctx, verbose, trace)
    config = get_config(ctx)
    if artifact_dir is not None:
        config = replace(config, artifact_dir=artifact_dir)

    options = LaunchOptions(
        server_port=server_port,
        proxy_port=proxy_port,
        proxy_remote_port=proxy_remote_port,
        proxy_remote_host=proxy_remote_host,
        version=version,
        artifact_host=artifact_host,
        artifact_path=artifact_path,
        java_debug_port=java_debug_port,
        system_properties=list(system_properties) or None,
        verbose=verbose,
        trace=trace,
    )

    console.print(f"🚀 Starting MockServer on port {options.control_port}...", style="blue")

    async def _start() -> HealthResponse:
        async with MockServerLauncher(config) as launcher:
            return await launcher.start(options)

    response = run_async(_start())
    console.print(
        f"✅ MockServer is ready on port {options.control_port} (HTTP {response.status_code})",
        style="bold green",
    )
