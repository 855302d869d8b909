"""Command-line entrypoint for blacklist-sync."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import structlog
from dotenv import load_dotenv

from blacklist_sync.config.settings import Settings, load_settings
from blacklist_sync.discovery.targets import resolve_targets
from blacklist_sync.merge.list_merger import ListMerger
from blacklist_sync.observability.log import configure_logging
from blacklist_sync.observability.metrics import RunCounters
from blacklist_sync.orchestrator.batch import BatchReport, run_batch
from blacklist_sync.system.advisory import WindowsDriverProbe, run_advisory
from blacklist_sync.system.privileges import is_elevated
from blacklist_sync.system.services import default_controller

LOGGER = structlog.get_logger(__name__)

DEFAULT_SETTINGS = Path("config/settings.toml")
DEFAULT_LOGGING = Path("config/logging.yaml")


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="blacklist-sync",
        description="Add supported applications to exclusion list files and restart dependent services",
    )
    parser.add_argument("paths", nargs="*", help="Exclusion list files (default: piped paths or discovery)")
    parser.add_argument("--dry-run", action="store_true", help="Report intended changes without writing or restarting")
    parser.add_argument("--settings", type=Path, default=DEFAULT_SETTINGS, help="Path to settings TOML")
    return parser


def _piped_input() -> Optional[TextIO]:
    stdin = sys.stdin
    if stdin is None or stdin.isatty():
        return None
    return stdin


def run(args: argparse.Namespace, settings: Settings, *, stream: Optional[TextIO] = None) -> BatchReport:
    """Execute discovery, merge and restart for the parsed arguments."""
    warnings: List[str] = []
    if not is_elevated():
        message = "Not running with administrator rights; writes and service restarts may fail."
        LOGGER.warning("not_elevated")
        if not args.dry_run:
            warnings.append(message)

    probe = WindowsDriverProbe(settings.advisory.device_name)
    warnings.extend(run_advisory(probe, settings.advisory.broken_versions))

    targets = resolve_targets(
        explicit=args.paths,
        stream=stream,
        root=settings.merge.discovery_root,
        filename=settings.merge.target_filename,
    )
    if not targets:
        warnings.append(f"No {settings.merge.target_filename} files found under {settings.merge.discovery_root}")

    merger = ListMerger(
        encoding=settings.merge.encoding,
        newline=settings.merge.newline,
        dry_run=args.dry_run,
    )
    report = run_batch(
        targets,
        settings,
        merger=merger,
        controller=default_controller(),
        metrics=RunCounters(),
    )
    report.warnings = warnings + report.warnings
    return report


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI."""
    load_dotenv()
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(DEFAULT_LOGGING)

    try:
        settings = load_settings(args.settings)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Failed to load settings: {exc}")

    stream = None if args.paths else _piped_input()
    report = run(args, settings, stream=stream)
    print(json.dumps(report.to_dict(), indent=2))


if __name__ == "__main__":
    main()
