"""Core evsearch data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePath


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One record of a search batch, as returned by the service."""

    highlighted_path: str
    highlighted_file_name: str
    full_path: str
    is_file: bool
    size: int | None = None
    date_modified: datetime | None = None


@dataclass(frozen=True, slots=True)
class FileEntry:
    """A file path paired with its size, the unit of every report line."""

    path: str
    size: int

    @property
    def name(self) -> str:
        return _file_name(self.path)

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix

    def to_line(self) -> str:
        return f"{self.path} {self.size}"

    @classmethod
    def from_line(cls, line: str) -> "FileEntry":
        path, _, size = line.rstrip("\r\n").rpartition(" ")
        if not path:
            raise ValueError(f"Malformed report line: {line!r}")
        return cls(path=path, size=int(size))


def _file_name(path: str) -> str:
    # Index paths may use either separator regardless of the host platform.
    return path.replace("\\", "/").rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class DuplicateReview:
    """An inspected file and the candidates found for it."""

    entry: FileEntry
    same_name: list[FileEntry] = field(default_factory=list)
    different_name: list[FileEntry] = field(default_factory=list)

    @classmethod
    def split(cls, entry: FileEntry, candidates: list[FileEntry]) -> "DuplicateReview":
        same = [c for c in candidates if c.name == entry.name]
        different = [c for c in candidates if c.name != entry.name]
        return cls(entry=entry, same_name=same, different_name=different)


@dataclass(slots=True)
class ScanSummary:
    """Running partitions of a duplicate scan."""

    root: str
    all_files: list[FileEntry] = field(default_factory=list)
    duplicates: list[FileEntry] = field(default_factory=list)
    uniques: list[FileEntry] = field(default_factory=list)
    deleted: list[FileEntry] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.duplicates) + len(self.uniques) + len(self.deleted)
