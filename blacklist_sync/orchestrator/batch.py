"""Run the merge over every target and restart dependent services on change."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import structlog

from blacklist_sync.config.settings import Settings
from blacklist_sync.merge.list_merger import ListMerger, ListMissingError
from blacklist_sync.observability.metrics import RunCounters
from blacklist_sync.observability.tracing import target_context
from blacklist_sync.system.services import ServiceController, ServiceRestartError

LOGGER = structlog.get_logger(__name__)


@dataclass(slots=True)
class FileOutcome:
    path: str
    status: str
    added: List[str] = field(default_factory=list)
    detail: str = ""


@dataclass(slots=True)
class ServiceOutcome:
    name: str
    status: str
    detail: str = ""


@dataclass
class BatchReport:
    """Aggregated result of one run, serialisable for the CLI."""

    dry_run: bool
    modified: bool = False
    files: List[FileOutcome] = field(default_factory=list)
    services: List[ServiceOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def merge_file(merger: ListMerger, path: Path, candidates: List[str], metrics: RunCounters) -> FileOutcome:
    """Merge one file, converting per-file failures into an outcome."""
    metrics.incr("files_scanned")
    try:
        result = merger.merge(path, candidates)
    except ListMissingError as exc:
        metrics.incr("files_missing")
        LOGGER.warning("target_missing", reason=str(exc))
        return FileOutcome(path=str(path), status="not_found", detail=str(exc))
    except (OSError, UnicodeError) as exc:
        metrics.incr("io_failures")
        LOGGER.warning("target_io_error", reason=str(exc))
        return FileOutcome(path=str(path), status="io_error", detail=str(exc))
    if not result.modified:
        return FileOutcome(path=str(path), status="unchanged")
    metrics.incr("files_modified")
    metrics.incr("entries_added", len(result.added))
    return FileOutcome(path=str(path), status="modified", added=list(result.added))


def restart_services(
    controller: ServiceController,
    names: Iterable[str],
    metrics: RunCounters,
) -> List[ServiceOutcome]:
    """Restart each installed service; absent services are skipped, failures reported."""
    outcomes: List[ServiceOutcome] = []
    for name in names:
        if not controller.exists(name):
            metrics.incr("services_unavailable")
            LOGGER.info("service_unavailable", service=name)
            outcomes.append(ServiceOutcome(name=name, status="unavailable"))
            continue
        try:
            controller.restart(name)
        except ServiceRestartError as exc:
            metrics.incr("restart_failures")
            LOGGER.warning("service_restart_failed", service=name, reason=exc.reason)
            outcomes.append(ServiceOutcome(name=name, status="failed", detail=exc.reason))
            continue
        metrics.incr("services_restarted")
        LOGGER.info("service_restarted", service=name)
        outcomes.append(ServiceOutcome(name=name, status="restarted"))
    return outcomes


def _file_warning(outcome: FileOutcome) -> Optional[str]:
    if outcome.status == "not_found":
        return f"Skipped {outcome.path}: file not found"
    if outcome.status == "io_error":
        return f"Skipped {outcome.path}: {outcome.detail}"
    return None


def run_batch(
    paths: Iterable[Path],
    settings: Settings,
    *,
    merger: ListMerger,
    controller: ServiceController,
    metrics: Optional[RunCounters] = None,
    run_id: Optional[str] = None,
) -> BatchReport:
    """Merge the configured candidates into every path, left to right."""
    metrics = metrics or RunCounters()
    run_id = run_id or datetime.utcnow().strftime("%Y%m%dT%H%M%S")
    report = BatchReport(dry_run=merger.dry_run)
    candidates = list(settings.merge.candidates)

    with metrics.timed():
        for path in paths:
            with target_context(run_id=run_id, path=Path(path)):
                outcome = merge_file(merger, Path(path), candidates, metrics)
            report.files.append(outcome)
            report.modified = report.modified or outcome.status == "modified"
            warning = _file_warning(outcome)
            if warning:
                report.warnings.append(warning)

        if report.modified and merger.dry_run:
            report.services = [
                ServiceOutcome(name=name, status="skipped", detail="dry run")
                for name in settings.services.names
            ]
        elif report.modified:
            report.services = restart_services(controller, settings.services.names, metrics)
            for outcome in report.services:
                if outcome.status == "failed":
                    report.warnings.append(
                        f"Could not restart service {outcome.name} ({outcome.detail}); "
                        "restart it manually or reboot for the changes to take effect."
                    )

    report.metrics = metrics.snapshot()
    LOGGER.info("batch_complete", run_id=run_id, modified=report.modified, files=len(report.files))
    return report
