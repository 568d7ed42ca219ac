"""Query requests and the client contract shared by sessions and scanners."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import IntFlag
from typing import NamedTuple, Protocol

from evsearch.config import BATCH_SIZE, DEFAULT_SORT
from evsearch.errors import (
    ErrorCode,
    QueryFailed,
    ServiceUnavailable,
    ServiceVersionUnsupported,
    describe_error,
)
from evsearch.models import FileEntry, SearchResult

LOGGER = logging.getLogger(__name__)


class RequestFlag(IntFlag):
    FILE_NAME = 0x00000001
    PATH = 0x00000002
    FULL_PATH_AND_FILE_NAME = 0x00000004
    EXTENSION = 0x00000008
    SIZE = 0x00000010
    DATE_MODIFIED = 0x00000040
    HIGHLIGHTED_FILE_NAME = 0x00002000
    HIGHLIGHTED_PATH = 0x00004000


RESULT_FLAGS = (
    RequestFlag.FULL_PATH_AND_FILE_NAME
    | RequestFlag.HIGHLIGHTED_PATH
    | RequestFlag.HIGHLIGHTED_FILE_NAME
    | RequestFlag.SIZE
    | RequestFlag.DATE_MODIFIED
)


class QueryClient(Protocol):
    """Operations evsearch needs from the Everything SDK.

    The SDK keeps one pending query per process, so callers hold ``lock``
    from configuration until the last result has been read.
    """

    lock: threading.RLock

    def set_search(self, text: str) -> None: ...
    def set_request_flags(self, flags: int) -> None: ...
    def set_sort(self, key: int) -> None: ...
    def set_match_case(self, enabled: bool) -> None: ...
    def set_match_path(self, enabled: bool) -> None: ...
    def set_match_whole_word(self, enabled: bool) -> None: ...
    def set_regex(self, enabled: bool) -> None: ...
    def set_max(self, count: int) -> None: ...
    def set_offset(self, count: int) -> None: ...
    def query(self, wait: bool = True) -> bool: ...
    def get_num_results(self) -> int: ...
    def get_total_results(self) -> int: ...
    def get_result_full_path(self, index: int) -> str: ...
    def get_result_highlighted_path(self, index: int) -> str: ...
    def get_result_highlighted_file_name(self, index: int) -> str: ...
    def is_file_result(self, index: int) -> bool: ...
    def get_result_size(self, index: int) -> int | None: ...
    def get_result_date_modified(self, index: int) -> datetime | None: ...
    def get_last_error(self) -> int: ...
    def get_major_version(self) -> int: ...
    def get_minor_version(self) -> int: ...
    def get_revision(self) -> int: ...
    def increment_run_count(self, path: str) -> None: ...
    def is_fast_sort(self, key: int) -> bool: ...
    def set_instance_name(self, name: str) -> None: ...


@dataclass(slots=True)
class QueryRequest:
    search: str
    flags: int = RESULT_FLAGS
    sort: int = DEFAULT_SORT
    match_case: bool = False
    match_path: bool = False
    match_whole_word: bool = False
    regex: bool = False
    max_results: int = BATCH_SIZE
    offset: int = 0


def configure(client: QueryClient, request: QueryRequest) -> None:
    """Push every query parameter of ``request`` to the client."""
    LOGGER.debug("Searching: %s", request.search)
    client.set_search(request.search)
    client.set_request_flags(int(request.flags))
    client.set_sort(request.sort)
    client.set_match_case(request.match_case)
    client.set_match_path(request.match_path)
    client.set_match_whole_word(request.match_whole_word and not request.regex)
    client.set_regex(request.regex)
    client.set_max(request.max_results)
    client.set_offset(request.offset)


def last_error(client: QueryClient) -> int:
    code = client.get_last_error()
    try:
        return ErrorCode(code)
    except ValueError:
        return code


def log_error(code: int) -> None:
    if code == ErrorCode.OK:
        return
    LOGGER.error(describe_error(code))


def read_result(client: QueryClient, index: int) -> SearchResult:
    return SearchResult(
        highlighted_path=client.get_result_highlighted_path(index) or "",
        highlighted_file_name=client.get_result_highlighted_file_name(index) or "",
        full_path=client.get_result_full_path(index),
        is_file=client.is_file_result(index),
        size=client.get_result_size(index),
        date_modified=client.get_result_date_modified(index),
    )


def fetch_file_entries(client: QueryClient, request: QueryRequest) -> list[FileEntry]:
    """Run ``request`` and return the (path, size) of every file result.

    Folder results are skipped. A failed query is logged and raised as
    :class:`QueryFailed`.
    """
    with client.lock:
        configure(client, request)
        if not client.query(True):
            code = last_error(client)
            log_error(code)
            raise QueryFailed(code, request.search)

        entries = []
        for index in range(client.get_num_results()):
            if not client.is_file_result(index):
                LOGGER.debug("Skipping folder result %s", client.get_result_full_path(index))
                continue
            size = client.get_result_size(index)
            entries.append(FileEntry(path=client.get_result_full_path(index), size=size or 0))
        return entries


class ServiceVersion(NamedTuple):
    major: int
    minor: int
    revision: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.revision}"

    @property
    def is_supported(self) -> bool:
        return self >= MINIMUM_VERSION


MINIMUM_VERSION = ServiceVersion(1, 4, 1)


def check_service_version(client: QueryClient) -> ServiceVersion:
    """Return the running service version or raise if it cannot be used."""
    version = ServiceVersion(
        client.get_major_version(), client.get_minor_version(), client.get_revision()
    )
    if version.is_supported:
        return version

    if version == (0, 0, 0) and last_error(client) == ErrorCode.IPC:
        raise ServiceUnavailable(describe_error(ErrorCode.IPC))
    raise ServiceVersionUnsupported(tuple(version))
