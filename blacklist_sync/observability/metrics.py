"""Per-run counters included in the batch report."""
from __future__ import annotations

import contextlib
import time
from dataclasses import asdict, dataclass
from typing import Dict, Iterator

import structlog

LOGGER = structlog.get_logger(__name__)


@dataclass
class RunCounters:
    files_scanned: int = 0
    files_modified: int = 0
    files_missing: int = 0
    io_failures: int = 0
    entries_added: int = 0
    services_restarted: int = 0
    services_unavailable: int = 0
    restart_failures: int = 0
    run_duration_ms: int = 0

    def incr(self, name: str, value: int = 1) -> None:
        """Add ``value`` to a named counter; unknown names raise AttributeError."""
        setattr(self, name, getattr(self, name) + value)

    def snapshot(self) -> Dict[str, int]:
        return asdict(self)

    @contextlib.contextmanager
    def timed(self) -> Iterator[None]:
        """Record the block's wall time in ``run_duration_ms``."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.run_duration_ms += int((time.perf_counter() - start) * 1000)
            LOGGER.info("run_timed", duration_ms=self.run_duration_ms)
