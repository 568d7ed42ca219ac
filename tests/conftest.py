"""Shared fixtures: an in-memory stand-in for the Everything SDK."""

from __future__ import annotations

import os
import re
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import List

import pytest

_TOKEN = re.compile(r'!?"[^"]*"|\S+')


@dataclass
class FakeRecord:
    path: str
    size: int = 0
    is_file: bool = True
    date_modified: datetime | None = None

    @property
    def name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]


def _matches(search: str, record: FakeRecord) -> bool:
    for token in _TOKEN.findall(search):
        if token.startswith('!"'):
            if record.path == token[2:-1]:
                return False
        elif token.startswith('"'):
            if token[1:-1] not in record.path:
                return False
        elif token.startswith("size:"):
            if record.size != int(token[5:]):
                return False
        elif token == "file:":
            if not record.is_file:
                return False
        elif token == "folder:":
            if record.is_file:
                return False
        elif token.startswith("ext:"):
            extensions = token[4:].lower().split(";")
            if PurePosixPath(record.name).suffix.lstrip(".").lower() not in extensions:
                return False
        elif token.lower() not in record.name.lower():
            return False
    return True


class FakeEverythingClient:
    """Answers queries from a fixed record list or from a live directory tree.

    With ``root`` set, every query walks the directory again so deleted files
    disappear from later results, as they do from the real index.
    """

    def __init__(
        self,
        records: List[FakeRecord] | None = None,
        *,
        root: Path | None = None,
        version: tuple[int, int, int] = (1, 4, 1),
    ) -> None:
        self.lock = threading.RLock()
        self.records = list(records or [])
        self.root = root
        self.version = version
        self.last_error = 0
        self.fail_with: int | None = None
        self.fail_when: str | None = None
        self.query_gate: threading.Event | None = None
        self.query_started = threading.Event()
        self.queries: List[dict] = []
        self.run_counts: Counter = Counter()
        self.instance_name: str | None = None
        self.params: dict = {
            "search": "",
            "flags": 0,
            "sort": 1,
            "match_case": False,
            "match_path": False,
            "match_whole_word": False,
            "regex": False,
            "max": 0xFFFFFFFF,
            "offset": 0,
        }
        self._page: List[FakeRecord] = []
        self._total = 0

    def _records(self) -> List[FakeRecord]:
        if self.root is None:
            return self.records
        live = []
        for dirpath, _, filenames in os.walk(self.root):
            for name in filenames:
                path = os.path.join(dirpath, name)
                live.append(FakeRecord(path=path, size=os.path.getsize(path)))
        return sorted(live, key=lambda record: record.path)

    def set_search(self, text: str) -> None:
        self.params["search"] = text

    def set_request_flags(self, flags: int) -> None:
        self.params["flags"] = flags

    def set_sort(self, key: int) -> None:
        self.params["sort"] = key

    def set_match_case(self, enabled: bool) -> None:
        self.params["match_case"] = enabled

    def set_match_path(self, enabled: bool) -> None:
        self.params["match_path"] = enabled

    def set_match_whole_word(self, enabled: bool) -> None:
        self.params["match_whole_word"] = enabled

    def set_regex(self, enabled: bool) -> None:
        self.params["regex"] = enabled

    def set_max(self, count: int) -> None:
        self.params["max"] = count

    def set_offset(self, count: int) -> None:
        self.params["offset"] = count

    def query(self, wait: bool = True) -> bool:
        self.queries.append(dict(self.params))
        self.query_started.set()
        if self.query_gate is not None:
            self.query_gate.wait(5)

        search = self.params["search"]
        if self.fail_with is not None and (self.fail_when is None or self.fail_when in search):
            self.last_error = self.fail_with
            return False

        matches = [record for record in self._records() if _matches(search, record)]
        offset, limit = self.params["offset"], self.params["max"]
        self._total = len(matches)
        self._page = matches[offset : offset + limit]
        self.last_error = 0
        return True

    def get_num_results(self) -> int:
        return len(self._page)

    def get_total_results(self) -> int:
        return self._total

    def get_result_full_path(self, index: int) -> str:
        return self._page[index].path

    def get_result_highlighted_path(self, index: int) -> str:
        return self._page[index].path.rpartition("/")[0]

    def get_result_highlighted_file_name(self, index: int) -> str:
        return self._page[index].name

    def is_file_result(self, index: int) -> bool:
        return self._page[index].is_file

    def get_result_size(self, index: int) -> int | None:
        return self._page[index].size

    def get_result_date_modified(self, index: int) -> datetime | None:
        return self._page[index].date_modified

    def get_last_error(self) -> int:
        return self.last_error

    def get_major_version(self) -> int:
        return self.version[0]

    def get_minor_version(self) -> int:
        return self.version[1]

    def get_revision(self) -> int:
        return self.version[2]

    def increment_run_count(self, path: str) -> None:
        self.run_counts[path] += 1

    def is_fast_sort(self, key: int) -> bool:
        return key in (1, 2)

    def set_instance_name(self, name: str) -> None:
        self.instance_name = name


@pytest.fixture
def make_client():
    """Factory building fake clients from ``(path, size)`` pairs."""

    def _make(
        *entries: tuple[str, int], folders: tuple[str, ...] = (), **kwargs
    ) -> FakeEverythingClient:
        records = [FakeRecord(path=path, size=size) for path, size in entries]
        records += [FakeRecord(path=path, is_file=False) for path in folders]
        return FakeEverythingClient(records, **kwargs)

    return _make


@pytest.fixture
def numbered_client() -> FakeEverythingClient:
    """450 files named alpha-000.txt ... alpha-449.txt plus a few others."""
    records = [FakeRecord(f"/data/alpha-{index:03d}.txt", size=index) for index in range(450)]
    records += [
        FakeRecord("/data/beta-1.txt", size=1),
        FakeRecord("/data/beta-2.txt", size=2),
        FakeRecord("/data/music", is_file=False),
    ]
    return FakeEverythingClient(records)


@pytest.fixture
def tree_client():
    """Factory building fake clients that index a live directory."""

    def _make(root: Path) -> FakeEverythingClient:
        return FakeEverythingClient(root=root)

    return _make
