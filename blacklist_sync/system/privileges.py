"""Elevation check for the current process."""
from __future__ import annotations

import ctypes
import os


def is_elevated() -> bool:
    """Return True when running as administrator (Windows) or root (POSIX)."""
    if os.name == "nt":
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0
