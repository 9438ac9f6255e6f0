from __future__ import annotations


class LauncherError(Exception):
    """Base class for every failure surfaced by the launcher."""


class OptionsValidationError(LauncherError, ValueError):
    pass


class ArtifactAcquisitionError(LauncherError):
    pass


class RetryBudgetExhaustedError(LauncherError):
    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class StartupTimeoutError(RetryBudgetExhaustedError):
    pass


class StopTimeoutError(RetryBudgetExhaustedError):
    """
    The port was still answering after the stop budget ran out.

    The kill signal has usually been sent by then, so callers may treat
    `kill_sent=True` as a partial success.
    """

    def __init__(self, message: str, attempts: int, kill_sent: bool = False):
        super().__init__(message, attempts)
        self.kill_sent = kill_sent


class ShutdownCommandError(LauncherError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
