from __future__ import annotations

import subprocess
import sys
from subprocess import DEVNULL, Popen
from typing import Any

import psutil

from mockserver_launcher.logging_config import get_logger

IS_WINDOWS = sys.platform.startswith("win")

log = get_logger(__name__)


class Process:
    # ============================================================================
    # Initialization
    # ============================================================================

    def __init__(self, proc: psutil.Process, popen: Popen[bytes] | None = None):
        self._proc = proc
        # keep the Popen alive so the child is reaped instead of left a zombie
        self._popen = popen

    @staticmethod
    def start_in_background(args: list[str], show_output: bool = False) -> Process:
        """
        Spawn `args` detached from the caller's session.

        stdout is forwarded to ours only when `show_output` is set; stderr is
        always inherited so JVM startup failures stay visible.
        """
        popen_kwargs: dict[str, Any] = {
            "stdin": DEVNULL,
            "stdout": None if show_output else DEVNULL,
            "stderr": None,
        }

        if IS_WINDOWS:
            create_new_process_group = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
            popen_kwargs["creationflags"] = create_new_process_group
        else:
            popen_kwargs["start_new_session"] = True

        popen = Popen(args, **popen_kwargs)
        return Process(psutil.Process(popen.pid), popen)

    # ============================================================================
    # Properties
    # ============================================================================

    @property
    def pid(self) -> int:
        return self._proc.pid

    # ============================================================================
    # Status Checks
    # ============================================================================

    def is_running(self) -> bool:
        try:
            return self._proc.is_running() and self._proc.status() != psutil.STATUS_ZOMBIE
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return False

    # ============================================================================
    # Lifecycle Management
    # ============================================================================

    def kill(self) -> bool:
        """SIGKILL; True if sent or the process was already gone."""
        try:
            self._proc.kill()
        except psutil.NoSuchProcess:
            return True
        except psutil.AccessDenied:
            log.warning("Access denied killing process", pid=self._proc.pid)
            return False

        if self._popen is not None:
            try:
                self._popen.wait(timeout=0)
            except subprocess.TimeoutExpired:
                pass
        return True

