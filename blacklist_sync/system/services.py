"""Service lifecycle capability used after exclusion lists change."""
from __future__ import annotations

import os
import subprocess
from typing import List, Protocol

import structlog

LOGGER = structlog.get_logger(__name__)

# ``sc query`` exit code for "The specified service does not exist".
ERROR_SERVICE_DOES_NOT_EXIST = 1060


class ServiceRestartError(RuntimeError):
    """Raised when an installed service could not be restarted."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason


class ServiceController(Protocol):
    def exists(self, name: str) -> bool:
        ...

    def restart(self, name: str) -> None:
        ...


def _run(command: List[str], *, timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(command, capture_output=True, text=True, check=False, timeout=timeout)


class WindowsServiceController:
    """Queries and restarts services through ``sc`` and PowerShell."""

    def __init__(self, *, timeout: float = 60.0) -> None:
        self._timeout = timeout

    def exists(self, name: str) -> bool:
        if os.name != "nt":
            return False
        try:
            cp = _run(["sc", "query", name], timeout=self._timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            LOGGER.warning("service_query_failed", service=name, reason=str(exc))
            return False
        if cp.returncode == ERROR_SERVICE_DOES_NOT_EXIST:
            return False
        return cp.returncode == 0

    def restart(self, name: str) -> None:
        command = [
            "powershell",
            "-NoLogo",
            "-NoProfile",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            f"Restart-Service -Name '{name}' -Force -ErrorAction Stop",
        ]
        try:
            cp = _run(command, timeout=self._timeout)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise ServiceRestartError(name, str(exc)) from exc
        if cp.returncode != 0:
            reason = (cp.stderr or "").strip() or (cp.stdout or "").strip()
            raise ServiceRestartError(name, reason or f"Restart-Service exited with code {cp.returncode}")


def default_controller() -> ServiceController:
    return WindowsServiceController()
