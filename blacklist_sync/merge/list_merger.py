"""Idempotent merge of candidate entries into a flat exclusion list file."""
from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

import structlog

from blacklist_sync.merge.keys import entry_key, key_set

LOGGER = structlog.get_logger(__name__)


class ListMissingError(FileNotFoundError):
    """Raised when the exclusion list does not exist before merging starts."""


@dataclass(slots=True)
class MergeResult:
    """Outcome of merging candidates into a single file."""

    path: Path
    modified: bool
    added: List[str] = field(default_factory=list)
    written: bool = False


def read_entries(path: Path, *, encoding: str) -> List[str]:
    """Read the file's entries in order, dropping trailing blank lines.

    Only CR, LF and CRLF end a line; other control characters stay inside
    the entry.
    """
    with path.open("r", encoding=encoding, newline=None) as handle:
        lines = [line.rstrip("\n") for line in handle]
    while lines and not lines[-1].strip(" \t"):
        lines.pop()
    return lines


def plan_additions(existing: Iterable[str], candidates: Iterable[str]) -> List[str]:
    """Return the candidates missing from ``existing`` in candidate order."""
    seen = key_set(existing)
    additions: List[str] = []
    for candidate in candidates:
        value = candidate.strip()
        if not value:
            continue
        key = entry_key(value)
        if key in seen:
            continue
        seen.add(key)
        additions.append(value)
    return additions


def render_entries(entries: Iterable[str], *, encoding: str, newline: str) -> bytes:
    """Join entries with ``newline`` and a single trailing terminator."""
    return "".join(f"{entry}{newline}" for entry in entries).encode(encoding)


def write_entries(path: Path, entries: List[str], *, encoding: str, newline: str) -> None:
    """Replace the file's contents with ``entries`` via a sibling temporary file."""
    payload = render_entries(entries, encoding=encoding, newline=newline)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class ListMerger:
    """Appends missing candidates to list files, writing only when something changed.

    ``dry_run`` only suppresses the final write; reading and planning run the
    same way in both modes so a preview reports exactly what a real run does.
    """

    def __init__(self, *, encoding: str = "latin-1", newline: str = "\r\n", dry_run: bool = False) -> None:
        self.encoding = encoding
        self.newline = newline
        self.dry_run = dry_run

    def merge(self, path: Path, candidates: Iterable[str]) -> MergeResult:
        """Merge ``candidates`` into the file at ``path``.

        Raises ``ListMissingError`` when the file does not exist and
        ``OSError``/``UnicodeError`` when it cannot be read or written.
        """
        path = Path(path)
        if not path.is_file():
            raise ListMissingError(f"Exclusion list not found: {path}")

        existing = read_entries(path, encoding=self.encoding)
        additions = plan_additions(existing, candidates)
        if not additions:
            LOGGER.info("merge_unchanged", path=str(path), entries=len(existing))
            return MergeResult(path=path, modified=False)

        if self.dry_run:
            LOGGER.info("merge_preview", path=str(path), added=additions)
            return MergeResult(path=path, modified=True, added=additions)

        write_entries(path, existing + additions, encoding=self.encoding, newline=self.newline)
        LOGGER.info("merge_written", path=str(path), added=additions, entries=len(existing) + len(additions))
        return MergeResult(path=path, modified=True, added=additions, written=True)
