"""Append-only text reports of (path, size) entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from evsearch.errors import ReportWriteFailed
from evsearch.models import FileEntry

LOGGER = logging.getLogger(__name__)

ALL_FILES_REPORT = "allFiles.txt"
DUPLICATES_REPORT = "duplicates.txt"
UNIQUE_REPORT = "unique.txt"
DELETED_REPORT = "deleted.txt"


@dataclass(frozen=True, slots=True)
class ReportPaths:
    all_files: Path
    duplicates: Path
    unique: Path
    deleted: Path

    @classmethod
    def in_directory(cls, directory: Path) -> "ReportPaths":
        directory = Path(directory)
        return cls(
            all_files=directory / ALL_FILES_REPORT,
            duplicates=directory / DUPLICATES_REPORT,
            unique=directory / UNIQUE_REPORT,
            deleted=directory / DELETED_REPORT,
        )


def _write_lines(path: Path, entries: Iterable[FileEntry]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            for entry in entries:
                handle.write(entry.to_line() + "\n")
    except OSError as exc:
        raise ReportWriteFailed(str(path), exc) from exc


def append_report(path: Path, entries: Iterable[FileEntry]) -> bool:
    """Append one ``"<path> <size>"`` line per entry.

    The parent directory is created when missing. Failures are logged and
    reported through the return value only, so a broken report never stops
    a scan.
    """
    try:
        _write_lines(Path(path), entries)
    except ReportWriteFailed as exc:
        LOGGER.error(str(exc))
        return False
    LOGGER.debug("Results appended to %s", path)
    return True


def read_report(path: Path) -> List[FileEntry]:
    """Parse a report back into entries, skipping blank lines."""
    with Path(path).open(encoding="utf-8") as handle:
        return [FileEntry.from_line(line) for line in handle if line.strip()]
