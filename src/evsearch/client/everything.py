"""ctypes binding of the Everything SDK library."""

from __future__ import annotations

import ctypes
import logging
import threading
from datetime import datetime, timedelta, timezone

from evsearch.errors import ServiceUnavailable

LOGGER = logging.getLogger(__name__)

MAX_PATH_CHARS = 4096

_FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
_FILETIME_UNKNOWN = 0xFFFFFFFFFFFFFFFF

_c_bool = ctypes.c_int
_c_uint = ctypes.c_uint32

# name: (restype, argtypes)
_SIGNATURES = {
    "Everything_SetSearchW": (None, [ctypes.c_wchar_p]),
    "Everything_SetInstanceName": (None, [ctypes.c_wchar_p]),
    "Everything_SetRequestFlags": (None, [_c_uint]),
    "Everything_SetSort": (None, [_c_uint]),
    "Everything_SetMatchCase": (None, [_c_bool]),
    "Everything_SetMatchPath": (None, [_c_bool]),
    "Everything_SetMatchWholeWord": (None, [_c_bool]),
    "Everything_SetRegex": (None, [_c_bool]),
    "Everything_SetMax": (None, [_c_uint]),
    "Everything_SetOffset": (None, [_c_uint]),
    "Everything_QueryW": (_c_bool, [_c_bool]),
    "Everything_GetNumResults": (_c_uint, []),
    "Everything_GetTotResults": (_c_uint, []),
    "Everything_GetResultFullPathNameW": (_c_uint, [_c_uint, ctypes.c_wchar_p, _c_uint]),
    "Everything_GetResultHighlightedPathW": (ctypes.c_wchar_p, [_c_uint]),
    "Everything_GetResultHighlightedFileNameW": (ctypes.c_wchar_p, [_c_uint]),
    "Everything_IsFileResult": (_c_bool, [_c_uint]),
    "Everything_GetResultSize": (_c_bool, [_c_uint, ctypes.POINTER(ctypes.c_longlong)]),
    "Everything_GetResultDateModified": (_c_bool, [_c_uint, ctypes.POINTER(ctypes.c_ulonglong)]),
    "Everything_GetLastError": (_c_uint, []),
    "Everything_GetMajorVersion": (_c_uint, []),
    "Everything_GetMinorVersion": (_c_uint, []),
    "Everything_GetRevision": (_c_uint, []),
    "Everything_IncRunCountFromFileNameW": (_c_uint, [ctypes.c_wchar_p]),
    "Everything_IsFastSort": (_c_bool, [_c_uint]),
}


def filetime_to_datetime(value: int) -> datetime | None:
    """Convert a FILETIME (100ns ticks since 1601) to an aware datetime."""
    if value in (0, _FILETIME_UNKNOWN):
        return None
    return _FILETIME_EPOCH + timedelta(microseconds=value // 10)


def _load_library(path: str) -> ctypes.CDLL:
    loader = getattr(ctypes, "WinDLL", ctypes.CDLL)
    return loader(path)


class EverythingClient:
    """Thin wrapper exposing the SDK calls with Python types.

    The SDK holds its query state globally per process, hence the class-wide lock.
    """

    lock = threading.RLock()

    def __init__(self, dll_path: str) -> None:
        self.dll_path = dll_path
        try:
            self._dll = _load_library(dll_path)
        except OSError as exc:
            raise ServiceUnavailable(f"Unable to load the Everything SDK from {dll_path}: {exc}") from exc
        self._bind()
        LOGGER.debug("Loaded Everything SDK from %s", dll_path)

    def _bind(self) -> None:
        for name, (restype, argtypes) in _SIGNATURES.items():
            try:
                function = getattr(self._dll, name)
            except AttributeError as exc:
                raise ServiceUnavailable(f"{self.dll_path} does not export {name}") from exc
            function.restype = restype
            function.argtypes = argtypes

    def set_search(self, text: str) -> None:
        self._dll.Everything_SetSearchW(text)

    def set_instance_name(self, name: str) -> None:
        self._dll.Everything_SetInstanceName(name)

    def set_request_flags(self, flags: int) -> None:
        self._dll.Everything_SetRequestFlags(flags)

    def set_sort(self, key: int) -> None:
        self._dll.Everything_SetSort(key)

    def set_match_case(self, enabled: bool) -> None:
        self._dll.Everything_SetMatchCase(int(enabled))

    def set_match_path(self, enabled: bool) -> None:
        self._dll.Everything_SetMatchPath(int(enabled))

    def set_match_whole_word(self, enabled: bool) -> None:
        self._dll.Everything_SetMatchWholeWord(int(enabled))

    def set_regex(self, enabled: bool) -> None:
        self._dll.Everything_SetRegex(int(enabled))

    def set_max(self, count: int) -> None:
        self._dll.Everything_SetMax(count)

    def set_offset(self, count: int) -> None:
        self._dll.Everything_SetOffset(count)

    def query(self, wait: bool = True) -> bool:
        return bool(self._dll.Everything_QueryW(int(wait)))

    def get_num_results(self) -> int:
        return self._dll.Everything_GetNumResults()

    def get_total_results(self) -> int:
        return self._dll.Everything_GetTotResults()

    def get_result_full_path(self, index: int) -> str:
        buffer = ctypes.create_unicode_buffer(MAX_PATH_CHARS)
        self._dll.Everything_GetResultFullPathNameW(index, buffer, MAX_PATH_CHARS)
        return buffer.value

    def get_result_highlighted_path(self, index: int) -> str:
        return self._dll.Everything_GetResultHighlightedPathW(index) or ""

    def get_result_highlighted_file_name(self, index: int) -> str:
        return self._dll.Everything_GetResultHighlightedFileNameW(index) or ""

    def is_file_result(self, index: int) -> bool:
        return bool(self._dll.Everything_IsFileResult(index))

    def get_result_size(self, index: int) -> int | None:
        size = ctypes.c_longlong()
        if not self._dll.Everything_GetResultSize(index, ctypes.byref(size)):
            return None
        return size.value

    def get_result_date_modified(self, index: int) -> datetime | None:
        filetime = ctypes.c_ulonglong()
        if not self._dll.Everything_GetResultDateModified(index, ctypes.byref(filetime)):
            return None
        return filetime_to_datetime(filetime.value)

    def get_last_error(self) -> int:
        return self._dll.Everything_GetLastError()

    def get_major_version(self) -> int:
        return self._dll.Everything_GetMajorVersion()

    def get_minor_version(self) -> int:
        return self._dll.Everything_GetMinorVersion()

    def get_revision(self) -> int:
        return self._dll.Everything_GetRevision()

    def increment_run_count(self, path: str) -> None:
        self._dll.Everything_IncRunCountFromFileNameW(path)

    def is_fast_sort(self, key: int) -> bool:
        return bool(self._dll.Everything_IsFastSort(key))
