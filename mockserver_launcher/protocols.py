from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol


class LifecycleState(StrEnum):
    """Observed lifecycle of a managed MockServer instance."""
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class Endpoint:
    host: str
    port: int
    path: str
    method: str = "PUT"

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"


@dataclass(frozen=True, slots=True)
class HealthResponse:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


# ------------------
# -- Poll outcomes --
# ------------------
@dataclass(frozen=True, slots=True)
class ProbeResponse:
    response: HealthResponse

    def response_or_none(self) -> HealthResponse | None:
        return self.response


@dataclass(frozen=True, slots=True)
class ConnectionRefused:
    error: Exception

    def response_or_none(self) -> HealthResponse | None:
        return None


@dataclass(frozen=True, slots=True)
class ProbeTimeout:
    error: Exception

    def response_or_none(self) -> HealthResponse | None:
        return None


type PollOutcome = ProbeResponse | ConnectionRefused | ProbeTimeout


class ProcessHandle(Protocol):
    """Minimal contract the launcher needs from a spawned process."""

    @property
    def pid(self) -> int:
        ...

    def kill(self) -> object:
        ...

    def is_running(self) -> bool:
        ...
