"""Assemble the ordered list of files a run should process."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, TextIO

import structlog

from blacklist_sync.discovery.finder import find_targets

LOGGER = structlog.get_logger(__name__)


def _clean_line(line: str) -> str:
    return line.strip().strip('"').strip("'").strip()


def read_stream(stream: TextIO) -> List[Path]:
    """Read one path per non-blank line from piped input."""
    return [Path(value) for value in (_clean_line(line) for line in stream) if value]


def _unique(paths: Iterable[Path]) -> List[Path]:
    seen = set()
    ordered: List[Path] = []
    for path in paths:
        key = str(path)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(path)
    return ordered


def resolve_targets(
    *,
    explicit: Iterable[str | Path],
    stream: Optional[TextIO],
    root: Path,
    filename: str,
) -> List[Path]:
    """Return target paths from arguments, then piped input, then discovery."""
    paths = [Path(item) for item in explicit]
    if paths:
        source = "arguments"
    else:
        paths = read_stream(stream) if stream is not None else []
        source = "stream"
    if not paths:
        paths = list(find_targets(root, filename))
        source = "discovery"
    targets = _unique(paths)
    LOGGER.info("targets_resolved", source=source, count=len(targets))
    return targets
