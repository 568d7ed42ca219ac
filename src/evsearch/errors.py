"""Error codes reported by the Everything service and the package exceptions."""

from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Values returned by ``Everything_GetLastError``."""

    OK = 0
    MEMORY = 1
    IPC = 2
    REGISTER_CLASS_EX = 3
    CREATE_WINDOW = 4
    CREATE_THREAD = 5
    INVALID_INDEX = 6
    INVALID_CALL = 7


ERROR_MESSAGES = {
    ErrorCode.OK: "",
    ErrorCode.MEMORY: "Failed to allocate memory for the search query.",
    ErrorCode.IPC: "IPC is not available.",
    ErrorCode.REGISTER_CLASS_EX: "Failed to register the search query window class.",
    ErrorCode.CREATE_WINDOW: "Failed to create the search query window.",
    ErrorCode.CREATE_THREAD: "Failed to create the search query thread.",
    ErrorCode.INVALID_INDEX: "Invalid index.",
    ErrorCode.INVALID_CALL: "Invalid call.",
}


def describe_error(code: int) -> str:
    """Return the log message for a raw error code."""
    try:
        return ERROR_MESSAGES[ErrorCode(code)]
    except ValueError:
        return f"Unknown error code {code}."


class EverythingError(Exception):
    """Base class for errors raised by evsearch."""


class ServiceUnavailable(EverythingError):
    """The SDK library could not be loaded or the service does not answer."""


class ServiceVersionUnsupported(EverythingError):
    def __init__(self, version: tuple[int, int, int]) -> None:
        self.version = version
        super().__init__("Everything version %d.%d.%d is not supported." % version)


class QueryFailed(EverythingError):
    def __init__(self, code: int, query: str = "") -> None:
        self.code = code
        self.query = query
        message = describe_error(code)
        if query:
            message = f"{message} (query: {query})"
        super().__init__(message)


class FileDeletionFailed(EverythingError):
    def __init__(self, path: str, reason: Exception) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to delete {path}: {reason}")


class ReportWriteFailed(EverythingError):
    def __init__(self, path: str, reason: Exception) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to append results to {path}: {reason}")


class UnknownSortKey(EverythingError, ValueError):
    def __init__(self, key: int) -> None:
        self.key = key
        super().__init__(f"No sort column is mapped to sort key {key}")


class OperationCancelled(Exception):
    """Raised inside a worker when its cancellation token has been triggered."""
