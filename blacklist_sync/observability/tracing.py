"""Log context helpers for per-target processing."""
from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Iterator

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

LOGGER = structlog.get_logger("blacklist_sync.trace")


def set_context(*, run_id: str, path: Path) -> None:
    bind_contextvars(run_id=run_id, path=str(path))
    LOGGER.debug("trace_context", run_id=run_id, path=str(path))


def clear_context() -> None:
    clear_contextvars()


@contextlib.contextmanager
def target_context(*, run_id: str, path: Path) -> Iterator[None]:
    """Bind the target path to every log line emitted inside the block."""
    set_context(run_id=run_id, path=path)
    try:
        yield
    finally:
        clear_context()
