"""Recursive lookup of exclusion list files under a root directory."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import structlog

LOGGER = structlog.get_logger(__name__)


def _log_walk_error(error: OSError) -> None:
    LOGGER.debug("discovery_skip", path=getattr(error, "filename", None), reason=str(error))


def find_targets(root: Path, filename: str) -> Iterator[Path]:
    """Yield files named ``filename`` (case-insensitively) anywhere below ``root``.

    Unreadable directories are skipped; a missing root yields nothing.
    """
    wanted = filename.casefold()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            if name.casefold() == wanted:
                yield Path(dirpath) / name
