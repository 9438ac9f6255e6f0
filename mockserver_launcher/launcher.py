from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from mockserver_launcher.artifacts import ensure_jar
from mockserver_launcher.command import build_command
from mockserver_launcher.config import LauncherConfig, LaunchOptions
from mockserver_launcher.deferred import Deferred
from mockserver_launcher.errors import (
    ArtifactAcquisitionError,
    OptionsValidationError,
    ShutdownCommandError,
    StartupTimeoutError,
    StopTimeoutError,
)
from mockserver_launcher.logging_config import get_logger, mockserver_context
from mockserver_launcher.poller import become_reachable, become_unreachable, poll
from mockserver_launcher.process import Process
from mockserver_launcher.protocols import (
    Endpoint,
    HealthResponse,
    LifecycleState,
    PollOutcome,
    ProbeResponse,
    ProcessHandle,
)

log = get_logger(__name__)

type Spawner = Callable[[list[str], bool], ProcessHandle]
type ArtifactResolver = Callable[[httpx.AsyncClient, LaunchOptions], Awaitable[Path]]

RESET_PATH = "/reset"
STOP_PATH = "/stop"
REJECTED_STOP_STATUSES = frozenset({400, 404})


def usage_message(operation: str) -> str:
    return (
        'Please specify "server_port" or "proxy_port" or both, for example: '
        f'"{operation}(server_port=1080, proxy_port=1090)"'
    )


def _health_response(outcome: PollOutcome) -> HealthResponse:
    assert isinstance(outcome, ProbeResponse)
    return outcome.response


def _no_result(_outcome: PollOutcome) -> None:
    return None


class MockServerLauncher:
    """
    Starts and stops one MockServer instance.

    Each launcher owns at most one spawned process; use one launcher per
    managed server. `start` and `stop` must be called from a running event
    loop and return futures that settle once the server is reachable or
    has released its port.
    """

    def __init__(
        self,
        config: LauncherConfig | None = None,
        client: httpx.AsyncClient | None = None,
        spawn: Spawner = Process.start_in_background,
        resolve_artifact: ArtifactResolver | None = None,
    ):
        self.config = config if config is not None else LauncherConfig()

        self._client = client
        self._owns_client = client is None
        self._spawn = spawn
        self._resolve_artifact = resolve_artifact if resolve_artifact is not None else self._ensure_jar

        self._process: ProcessHandle | None = None
        self._state = LifecycleState.NOT_STARTED
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------
    # -- Public --
    # ------------
    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def process(self) -> ProcessHandle | None:
        return self._process

    def start(
        self,
        options: LaunchOptions | Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> asyncio.Future[HealthResponse]:
        try:
            opts = self._validate(options, kwargs, "start_mockserver")
        except OptionsValidationError as e:
            return Deferred.rejected(e).future

        deferred = Deferred[HealthResponse]()
        self._schedule(self._start(opts, deferred), deferred)
        return deferred.future

    def stop(
        self,
        options: LaunchOptions | Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> asyncio.Future[None]:
        try:
            opts = self._validate(options, kwargs, "stop_mockserver")
        except OptionsValidationError as e:
            return Deferred.rejected(e).future

        deferred = Deferred[None]()
        self._schedule(self._stop(opts, deferred), deferred)
        return deferred.future

    async def aclose(self) -> None:
        """
        Cancel in-flight start/stop sequences and release the HTTP client.

        The process handle is kept, so a closed launcher can still `stop`
        the server it started; a new client is created on next use.
        """
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> MockServerLauncher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -------------------
    # -- Orchestration --
    # -------------------
    async def _start(self, options: LaunchOptions, deferred: Deferred[HealthResponse]) -> None:
        with mockserver_context(options.control_port, options.version or self.config.version):
            await self._run_start(options, deferred)

    async def _run_start(self, options: LaunchOptions, deferred: Deferred[HealthResponse]) -> None:
        port = options.control_port
        assert port is not None
        self._state = LifecycleState.STARTING
        client = self._get_client()

        try:
            jar = await self._resolve_artifact(client, options)
        except Exception as e:
            log.error("MockServer artifact unavailable", error=str(e))
            self._state = LifecycleState.NOT_STARTED
            error = e
            if not isinstance(e, ArtifactAcquisitionError):
                error = ArtifactAcquisitionError(str(e))
                error.__cause__ = e
            deferred.reject(error)
            return

        self._launch(build_command(options, jar, self.config.java), options.verbose)

        policy = self.config.poll
        retries = policy.retries
        if options.java_debug_port:
            retries *= policy.debug_retry_multiplier

        def startup_timeout(_outcome: PollOutcome, attempts: int) -> StartupTimeoutError:
            return StartupTimeoutError(
                f"MockServer failed to start on port {port} after {attempts} attempts",
                attempts,
            )

        try:
            started = await poll(
                client,
                Endpoint(self.config.host, port, RESET_PATH),
                retries=retries,
                predicate=become_reachable,
                deferred=deferred,
                result=_health_response,
                policy=policy,
                on_exhausted=startup_timeout,
                waiting_message="Waiting for MockServer to start",
                verbose=options.verbose,
            )
        except asyncio.CancelledError:
            self._state = LifecycleState.NOT_STARTED
            raise

        if started:
            self._state = LifecycleState.RUNNING
            log.info("MockServer started", pid=self._pid())
        else:
            self._state = LifecycleState.NOT_STARTED
            log.warning("MockServer failed to start", pid=self._pid())

    async def _stop(self, options: LaunchOptions, deferred: Deferred[None]) -> None:
        with mockserver_context(options.control_port):
            await self._run_stop(options, deferred)

    async def _run_stop(self, options: LaunchOptions, deferred: Deferred[None]) -> None:
        port = options.control_port
        assert port is not None
        previous_state = self._state
        self._state = LifecycleState.STOPPING
        client = self._get_client()

        log_verbose = log.info if options.verbose else log.debug
        log_verbose("Using port to stop MockServer and MockServer Proxy")

        try:
            await self._send_shutdown(client, Endpoint(self.config.host, port, STOP_PATH))
        except ShutdownCommandError as e:
            log.error("MockServer shutdown command failed", error=str(e))
            self._state = previous_state
            deferred.reject(e)
            return

        kill_sent = self._kill()

        def stop_timeout(_outcome: PollOutcome, attempts: int) -> StopTimeoutError:
            return StopTimeoutError(
                f"MockServer still answering on port {port} after {attempts} attempts",
                attempts,
                kill_sent=kill_sent,
            )

        stopped = await poll(
            client,
            Endpoint(self.config.host, port, RESET_PATH),
            retries=self.config.poll.retries,
            predicate=become_unreachable,
            deferred=deferred,
            result=_no_result,
            policy=self.config.poll,
            on_exhausted=stop_timeout,
            waiting_message="Waiting for MockServer to stop",
            verbose=options.verbose,
        )

        self._state = LifecycleState.STOPPED
        if stopped:
            log.info("MockServer stopped")
        else:
            log.warning("MockServer failed to stop", kill_sent=kill_sent)

    async def _send_shutdown(self, client: httpx.AsyncClient, endpoint: Endpoint) -> None:
        try:
            response = await client.request(
                endpoint.method,
                endpoint.url,
                timeout=self.config.shutdown_timeout.total_seconds(),
            )
        except httpx.TransportError as e:
            raise ShutdownCommandError(f"Could not send stop command to {endpoint.url}: {e}") from e

        if response.status_code in REJECTED_STOP_STATUSES:
            raise ShutdownCommandError(
                f"Stop command to {endpoint.url} rejected with HTTP {response.status_code}",
                status_code=response.status_code,
            )

    # -------------
    # -- Process --
    # -------------
    def _launch(self, args: list[str], verbose: bool) -> None:
        if self._process is not None and self._process.is_running():
            log.warning("Replacing handle of a MockServer that is still running", pid=self._process.pid)

        log_verbose = log.info if verbose else log.debug
        log_verbose("Running MockServer", command=" ".join(args))

        try:
            process = self._spawn(args, verbose)
        except OSError:
            # reported again as connection refused while polling;
            # a previous handle stays so stop can still kill it
            log.exception("Failed to spawn MockServer", executable=args[0])
            return

        self._process = process
        log.info("MockServer process spawned", pid=process.pid)

    def _kill(self) -> bool:
        if self._process is None:
            log.debug("No MockServer process handle held, skipping kill")
            return False

        process, self._process = self._process, None
        log.info("Killing MockServer process", pid=process.pid)
        process.kill()
        return True

    def _pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    # -------------
    # -- Helpers --
    # -------------
    def _validate(
        self,
        options: LaunchOptions | Mapping[str, Any] | None,
        kwargs: dict[str, Any],
        operation: str,
    ) -> LaunchOptions:
        try:
            opts = LaunchOptions.from_mapping(options, **kwargs)
        except ValidationError as e:
            raise OptionsValidationError(f"{usage_message(operation)}\n{e}") from e

        if not opts.has_port():
            raise OptionsValidationError(usage_message(operation))

        return opts

    def _schedule(self, coro: Coroutine[Any, Any, None], deferred: Deferred[Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)

        def settle(t: asyncio.Task[None]) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                deferred.future.cancel()
            elif (exc := t.exception()) is not None:
                deferred.reject(exc)

        task.add_done_callback(settle)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def _ensure_jar(self, client: httpx.AsyncClient, options: LaunchOptions) -> Path:
        return await ensure_jar(
            client,
            version=options.version or self.config.version,
            artifact_host=options.artifact_host or self.config.artifact_host,
            artifact_path=options.artifact_path or self.config.artifact_path,
            dest_dir=self.config.artifact_dir,
        )


# ----------------------
# -- Module functions --
# ----------------------
_default_launcher: MockServerLauncher | None = None


def default_launcher() -> MockServerLauncher:
    """
    Launcher shared by `start_mockserver` and `stop_mockserver`.

    Built on first use from the MOCKSERVER_* environment. It keeps the handle
    of the process `start_mockserver` spawned, so `stop_mockserver` can kill
    it even after a failed start.
    """
    global _default_launcher
    if _default_launcher is None:
        _default_launcher = MockServerLauncher(LauncherConfig.from_env())
    return _default_launcher


async def start_mockserver(
    options: LaunchOptions | Mapping[str, Any] | None = None,
    /,
    *,
    launcher: MockServerLauncher | None = None,
    **kwargs: Any,
) -> HealthResponse:
    """Start MockServer and wait until `/reset` answers."""
    if launcher is not None:
        return await launcher.start(options, **kwargs)

    shared = default_launcher()
    try:
        return await shared.start(options, **kwargs)
    finally:
        # the client is bound to this event loop, the process handle is not
        await shared.aclose()


async def stop_mockserver(
    options: LaunchOptions | Mapping[str, Any] | None = None,
    /,
    *,
    launcher: MockServerLauncher | None = None,
    **kwargs: Any,
) -> None:
    """Stop MockServer and wait until its port stops answering."""
    if launcher is not None:
        return await launcher.stop(options, **kwargs)

    shared = default_launcher()
    try:
        return await shared.stop(options, **kwargs)
    finally:
        await shared.aclose()
