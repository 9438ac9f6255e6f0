from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mockserver_launcher.logging_config import get_logger

log = get_logger(__name__)

DEFAULT_VERSION = "3.10.8"
DEFAULT_ARTIFACT_HOST = "oss.sonatype.org"
DEFAULT_ARTIFACT_PATH = "/content/repositories/releases/org/mock-server/mockserver-netty/"


@dataclass(frozen=True)
class PollPolicy:
    attempt_timeout: timedelta = timedelta(seconds=2)
    delay: timedelta = timedelta(milliseconds=100)
    retries: int = 100  # ~10 seconds at the default delay
    # the jvm blocks until a debugger attaches when jdwp suspend=y
    debug_retry_multiplier: int = 5


@dataclass(frozen=True)
class LauncherConfig:
    host: str = "localhost"
    java: str = "java"
    version: str = DEFAULT_VERSION
    artifact_host: str = DEFAULT_ARTIFACT_HOST
    artifact_path: str = DEFAULT_ARTIFACT_PATH
    artifact_dir: Path = field(default_factory=Path.cwd)
    shutdown_timeout: timedelta = timedelta(seconds=10)
    poll: PollPolicy = field(default_factory=PollPolicy)

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> LauncherConfig:
        """
        Build a config from MOCKSERVER_* environment variables, falling back
        to the defaults for anything unset.
        """
        env = os.environ if environ is None else environ
        base = LauncherConfig()

        poll = replace(
            base.poll,
            attempt_timeout=_env_millis(env, "MOCKSERVER_POLL_TIMEOUT_MS", base.poll.attempt_timeout),
            delay=_env_millis(env, "MOCKSERVER_POLL_DELAY_MS", base.poll.delay),
            retries=_env_int(env, "MOCKSERVER_POLL_RETRIES", base.poll.retries),
        )

        return replace(
            base,
            host=env.get("MOCKSERVER_HOST", base.host),
            java=env.get("MOCKSERVER_JAVA", base.java),
            version=env.get("MOCKSERVER_VERSION", base.version),
            artifact_host=env.get("MOCKSERVER_ARTIFACT_HOST", base.artifact_host),
            artifact_path=env.get("MOCKSERVER_ARTIFACT_PATH", base.artifact_path),
            artifact_dir=Path(env.get("MOCKSERVER_ARTIFACT_DIR", str(base.artifact_dir))),
            poll=poll,
        )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_millis(env: Mapping[str, str], name: str, default: timedelta) -> timedelta:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return timedelta(milliseconds=float(raw))
    except ValueError:
        return default


class LaunchOptions(BaseModel):
    """
    Options accepted by start/stop.

    Field names are snake_case; the camelCase names used by the original
    javascript launcher (serverPort, proxyPort, ...) are accepted as aliases.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    server_port: int | None = Field(default=None, alias="serverPort")
    proxy_port: int | None = Field(default=None, alias="proxyPort")
    proxy_remote_port: int | None = Field(default=None, alias="proxyRemotePort")
    proxy_remote_host: str | None = Field(default=None, alias="proxyRemoteHost")

    artifact_host: str | None = Field(default=None, alias="artifactoryHost")
    artifact_path: str | None = Field(default=None, alias="artifactoryPath")
    version: str | None = None

    verbose: bool = False
    trace: bool = False
    java_debug_port: int | None = Field(default=None, alias="javaDebugPort")
    system_properties: str | list[str] | None = Field(default=None, alias="systemProperties")

    @classmethod
    def from_mapping(cls, options: LaunchOptions | Mapping[str, Any] | None = None, **kwargs: Any) -> LaunchOptions:
        if isinstance(options, LaunchOptions):
            if not kwargs:
                return options
            data = options.model_dump(exclude_unset=True)
        else:
            data = cls._by_field_name(options or {})

        # kwargs win over the base options, whichever spelling either side uses
        data.update(cls._by_field_name(kwargs))

        ignored = sorted(key for key in data if key not in cls.model_fields)
        if ignored:
            log.debug("Ignoring unknown MockServer options", options=ignored)

        return cls.model_validate(data)

    @classmethod
    def _by_field_name(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        aliases = {info.alias: name for name, info in cls.model_fields.items() if info.alias}
        return {aliases.get(key, key): value for key, value in data.items()}

    def has_port(self) -> bool:
        return bool(self.server_port or self.proxy_port)

    @property
    def control_port(self) -> int | None:
        """Port used to probe and command the server; server port wins."""
        return self.server_port or self.proxy_port
