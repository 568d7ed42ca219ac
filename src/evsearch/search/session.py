"""Search session: current search parameters and the single outstanding fetch."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List

from evsearch.client.query import (
    QueryClient,
    QueryRequest,
    check_service_version,
    configure,
    last_error,
    log_error,
    read_result,
)
from evsearch.client.sorting import sort_key
from evsearch.config import BATCH_SIZE, SearchSettings
from evsearch.errors import OperationCancelled, ServiceUnavailable, ServiceVersionUnsupported
from evsearch.search.buffer import ResultBuffer
from evsearch.search.cancellation import CancellationToken
from evsearch.search.filters import Filter, FilterProvider, expand_macros
from evsearch.search.history import HistoryProvider

LOGGER = logging.getLogger(__name__)

REQUERY_SETTINGS = frozenset(
    {
        "match_case",
        "regex_enabled",
        "match_path",
        "match_whole_word",
        "hide_empty_results",
        "sort_by",
    }
)

PropertyListener = Callable[[str], None]


class BatchOutcome(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class BatchResult:
    outcome: BatchOutcome
    added: int = 0
    total: int | None = None
    error_code: int | None = None


def _resolved(result: BatchResult) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


class SearchSession:
    """Coordinates search parameters with batched, cancellable queries.

    Every parameter change cancels the fetch in progress and schedules a new
    batch on the session's single worker thread. The worker writes into
    :attr:`results` under the session lock and checks its cancellation token
    before each record, so a superseded batch never writes after a newer one
    has started.
    """

    def __init__(
        self,
        client: QueryClient,
        filters: FilterProvider,
        settings: SearchSettings | None = None,
        *,
        history: HistoryProvider | None = None,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        self.client = client
        self.filters = filters
        self.settings = settings or SearchSettings()
        self.history = history
        self.batch_size = batch_size

        self._lock = threading.RLock()
        self.results = ResultBuffer(self._lock)
        self._search_term = ""
        self._current_filter = self._initial_filter()
        self._total_results: int | None = None
        self._token: CancellationToken | None = None
        self._listeners: List[PropertyListener] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="evsearch-query")

    def _initial_filter(self) -> Filter:
        last = self.filters.last_filter
        if self.settings.remember_filter and last is not None:
            return last
        return self.filters.default_filters[0]

    def __enter__(self) -> "SearchSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._token is not None:
                self._token.cancel()
        self._executor.shutdown(wait=True)

    # -- properties -------------------------------------------------------

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def current_filter(self) -> Filter:
        return self._current_filter

    @property
    def total_results(self) -> int | None:
        with self._lock:
            return self._total_results

    def subscribe(self, listener: PropertyListener) -> None:
        self._listeners.append(listener)

    def _notify_property(self, name: str) -> None:
        for listener in list(self._listeners):
            listener(name)

    def _set_total_results(self, value: int | None) -> None:
        self._total_results = value
        self._notify_property("total_results")

    # -- service ----------------------------------------------------------

    def initialize(self) -> bool:
        """Select the service instance and check that its version is supported."""
        name = self.settings.instance_name
        if name:
            LOGGER.info("Setting Everything instance name: %s", name)
        self.client.set_instance_name(name)

        try:
            version = check_service_version(self.client)
        except ServiceUnavailable as exc:
            LOGGER.error(str(exc))
            LOGGER.error("Failed to get Everything version number. Is Everything running?")
            return False
        except ServiceVersionUnsupported as exc:
            LOGGER.error(str(exc))
            return False

        LOGGER.info("Everything version: %s", version)
        return True

    def increment_run_count(self, path: str) -> None:
        with self.client.lock:
            self.client.increment_run_count(path)

    def is_fast_sort(self, key: int) -> bool:
        with self.client.lock:
            return self.client.is_fast_sort(key)

    # -- parameters -------------------------------------------------------

    def set_search_term(self, text: str) -> Future | None:
        if text == self._search_term:
            return None
        self._search_term = text
        future = self.query_batch(append=False)
        self._notify_property("search_term")
        return future

    def search_for_file(self, text: str) -> Future:
        """Search for ``text`` even if it is already the current term."""
        self.set_search_term(text)
        return self.query_batch(append=False)

    def set_filter(self, new_filter: Filter) -> Future | None:
        if new_filter == self._current_filter:
            return None
        self._current_filter = new_filter
        future = self.query_batch(append=False)
        self._notify_property("current_filter")
        return future

    def update_settings(self, **changes: object) -> Future | None:
        """Apply setting changes and re-query when they affect the results."""
        previous = self.settings
        self.settings = replace(previous, **changes)
        changed = {name for name in changes if getattr(previous, name) != getattr(self.settings, name)}

        if "regex_enabled" in changed:
            self.set_filter(self.filters.default_filters[0])
        if changed & REQUERY_SETTINGS:
            return self.query_batch(append=False)
        return None

    def cycle_filters(self, offset: int = 1) -> Future | None:
        defaults = list(self.filters.default_filters)
        users = list(self.filters.user_filters)
        size = len(defaults) + len(users)
        if size == 0:
            return None

        current = self._current_filter
        default_index = defaults.index(current) if current in defaults else len(defaults)
        user_index = users.index(current) if current in users else 0
        position = (default_index + user_index + offset + len(defaults) + len(users)) % size

        if position < len(defaults):
            return self.set_filter(defaults[position])
        return self.set_filter(users[position - len(defaults)])

    def select_filter_from_index(self, index: int) -> Future | None:
        defaults = self.filters.default_filters
        users = self.filters.user_filters
        if 0 <= index < len(defaults):
            return self.set_filter(defaults[index])
        if 0 <= index - len(defaults) < len(users):
            return self.set_filter(users[index - len(defaults)])
        return None

    def reset(self) -> Future | None:
        if self.settings.enable_history:
            if self.history is not None:
                self.history.add_to_history(self._search_term)
        else:
            self.set_search_term("")

        first = self.filters.default_filters[0]
        if not self.settings.remember_filter and self._current_filter != first:
            return self.set_filter(first)

        return self.query_batch(append=False)

    def build_search_term(self) -> str:
        term = expand_macros(self._search_term, self.filters.default_user_filters)
        return self._current_filter.search_prefix + term

    def launch_arguments(self, highlighted_file: str = "") -> List[str]:
        """Command-line arguments that open the current search in the Everything GUI."""
        settings = self.settings
        args: List[str] = []
        if settings.instance_name:
            args += ["-instance", settings.instance_name]
        if highlighted_file:
            args += ["-select", highlighted_file]

        key = sort_key(settings.sort_by)
        args += ["-sort", key.column, "-sort-ascending" if key.ascending else "-sort-descending"]
        args.append("-case" if settings.match_case else "-nocase")
        args.append("-matchpath" if settings.match_path else "-nomatchpath")
        args.append("-ww" if settings.effective_whole_word else "-noww")
        args.append("-regex" if settings.regex_enabled else "-noregex")
        args += ["-s", self.build_search_term()]
        return args

    # -- batches ----------------------------------------------------------

    def query_batch(self, append: bool = False) -> Future:
        """Start a new batch, superseding the one in progress.

        Returns a future resolving to a :class:`BatchResult`; it never raises
        for service errors or cancellation.
        """
        with self._lock:
            if self._token is not None:
                self._token.cancel()
                self._token = None

            skip = not self._search_term and self.settings.hide_empty_results
            if skip:
                self.results.clear_silent()
                self._total_results = None
            else:
                token = self._token = CancellationToken()

        # Listeners run without the session lock; they may call into the client.
        if skip:
            self.results.notify()
            self._notify_property("total_results")
            return _resolved(BatchResult(BatchOutcome.SKIPPED))

        search = self.build_search_term()
        return self._executor.submit(self._run_batch, token, search, append)

    def _build_request(self, search: str, offset: int) -> QueryRequest:
        settings = self.settings
        return QueryRequest(
            search=search,
            sort=settings.sort_by,
            match_case=settings.match_case,
            match_path=settings.match_path,
            match_whole_word=settings.effective_whole_word,
            regex=settings.regex_enabled,
            max_results=self.batch_size,
            offset=offset,
        )

    def _run_batch(self, token: CancellationToken, search: str, append: bool) -> BatchResult:
        added = 0
        try:
            token.raise_if_cancelled()
            with self.client.lock:
                with self._lock:
                    offset = len(self.results) if append else 0
                configure(self.client, self._build_request(search, offset))

                if not self.client.query(True):
                    code = last_error(self.client)
                    log_error(code)
                    return BatchResult(BatchOutcome.FAILED, error_code=code)

                count = self.client.get_num_results()
                total = self.client.get_total_results()
                with self._lock:
                    token.raise_if_cancelled()
                    if not append:
                        self.results.clear_silent()
                    self._set_total_results(total)

                for index in range(count):
                    token.raise_if_cancelled()
                    record = read_result(self.client, index)
                    with self._lock:
                        token.raise_if_cancelled()
                        self.results.add_silent(record)
                    added += 1
        except OperationCancelled:
            LOGGER.debug("Search batch for %r cancelled after %d records", search, added)
            return BatchResult(BatchOutcome.CANCELLED, added=added)
        except Exception:
            LOGGER.exception("Search batch for %r failed", search)
            raise

        if not append or added > 0:
            self.results.notify()
        return BatchResult(BatchOutcome.COMPLETED, added=added, total=total)
