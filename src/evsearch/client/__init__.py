"""Access to the Everything query service."""

from evsearch.client.query import (
    RESULT_FLAGS,
    QueryClient,
    QueryRequest,
    RequestFlag,
    ServiceVersion,
    check_service_version,
    configure,
    fetch_file_entries,
)

__all__ = [
    "RESULT_FLAGS",
    "QueryClient",
    "QueryRequest",
    "RequestFlag",
    "ServiceVersion",
    "check_service_version",
    "configure",
    "fetch_file_entries",
]
