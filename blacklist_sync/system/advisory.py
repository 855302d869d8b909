"""Informational checks for driver versions known to misbehave."""
from __future__ import annotations

import os
import subprocess
from typing import Iterable, List, Optional, Protocol, Tuple

import structlog

LOGGER = structlog.get_logger(__name__)


class DriverProbe(Protocol):
    def installed_versions(self) -> List[str]:
        ...


class WindowsDriverProbe:
    """Reads signed driver versions for devices matching ``device_name``."""

    def __init__(self, device_name: str, *, timeout: float = 30.0) -> None:
        self._device_name = device_name
        self._timeout = timeout

    def installed_versions(self) -> List[str]:
        if os.name != "nt" or not self._device_name:
            return []
        query = (
            "Get-CimInstance Win32_PnPSignedDriver | "
            f"Where-Object {{ $_.DeviceName -like '*{self._device_name}*' }} | "
            "Select-Object -ExpandProperty DriverVersion"
        )
        try:
            cp = subprocess.run(
                ["powershell", "-NoLogo", "-NoProfile", "-Command", query],
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            LOGGER.debug("driver_probe_failed", reason=str(exc))
            return []
        if cp.returncode != 0:
            LOGGER.debug("driver_probe_failed", reason=(cp.stderr or "").strip())
            return []
        return [line.strip() for line in cp.stdout.splitlines() if line.strip()]


def parse_version(value: str) -> Optional[Tuple[int, ...]]:
    """Parse a dotted numeric version, returning None when it is not one."""
    try:
        return tuple(int(part) for part in value.strip().split("."))
    except ValueError:
        return None


def check_driver_versions(installed: Iterable[str], broken: Iterable[str]) -> List[str]:
    """Return a warning for each installed version listed as broken."""
    known = {}
    for value in broken:
        parsed = parse_version(value)
        if parsed is not None:
            known[parsed] = value
    warnings: List[str] = []
    for value in installed:
        parsed = parse_version(value)
        if parsed is None:
            LOGGER.debug("driver_version_unparsed", version=value)
            continue
        if parsed in known:
            warnings.append(
                f"Installed driver version {value} is known to ignore the exclusion list; "
                "update or roll back the driver."
            )
    return warnings


def run_advisory(probe: DriverProbe, broken: Iterable[str]) -> List[str]:
    warnings = check_driver_versions(probe.installed_versions(), broken)
    for message in warnings:
        LOGGER.warning("driver_advisory", message=message)
    return warnings
