from mockserver_launcher.config import LauncherConfig, LaunchOptions, PollPolicy
from mockserver_launcher.deferred import Deferred
from mockserver_launcher.errors import (
    ArtifactAcquisitionError,
    LauncherError,
    OptionsValidationError,
    RetryBudgetExhaustedError,
    ShutdownCommandError,
    StartupTimeoutError,
    StopTimeoutError,
)
from mockserver_launcher.launcher import MockServerLauncher, start_mockserver, stop_mockserver
from mockserver_launcher.protocols import Endpoint, HealthResponse, LifecycleState

__version__ = "0.1.0"

__all__ = [
    "ArtifactAcquisitionError",
    "Deferred",
    "Endpoint",
    "HealthResponse",
    "LaunchOptions",
    "LauncherConfig",
    "LauncherError",
    "LifecycleState",
    "MockServerLauncher",
    "OptionsValidationError",
    "PollPolicy",
    "RetryBudgetExhaustedError",
    "ShutdownCommandError",
    "StartupTimeoutError",
    "StopTimeoutError",
    "start_mockserver",
    "stop_mockserver",
]
