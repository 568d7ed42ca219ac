"""Folder-wide duplicate scan with optional deletion."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List

from send2trash import send2trash

from evsearch.client.query import QueryClient, QueryRequest, fetch_file_entries
from evsearch.config import BATCH_SIZE, MAX_FOLDER_FILES
from evsearch.dedup.reports import ReportPaths, append_report
from evsearch.errors import FileDeletionFailed
from evsearch.models import DuplicateReview, FileEntry, ScanSummary
from evsearch.search.cancellation import CancellationToken

LOGGER = logging.getLogger(__name__)

ConfirmCallback = Callable[[DuplicateReview], bool]
ProgressCallback = Callable[[int, int], None]


def folder_query(folder: str) -> str:
    return f'"{folder}"'


def candidate_query(entry: FileEntry) -> str:
    """Query for other files sharing the extension and exact size of ``entry``.

    An empty ``ext:`` matches only files without an extension.
    """
    extension = entry.extension.lstrip(".")
    return f'!"{entry.path}" ext:{extension} size:{entry.size}'


class DuplicateScanner:
    """Partition every file under a folder into unique, duplicate and deleted.

    Two files are duplicate candidates when they share size and extension
    and differ in path; names only decide whether a candidate counts as a
    same-name copy. Each file costs one synchronous round trip to the
    service. The three partitions are appended to their reports after every
    page so an interrupted scan keeps what it already resolved.
    """

    def __init__(
        self,
        client: QueryClient,
        *,
        confirm: ConfirmCallback | None = None,
        auto_delete_same_name: bool = False,
        use_trash: bool = False,
        report_dir: Path | None = None,
        page_size: int = BATCH_SIZE,
        max_files: int = MAX_FOLDER_FILES,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.client = client
        self.confirm = confirm
        self.auto_delete_same_name = auto_delete_same_name
        self.use_trash = use_trash
        self.report_dir = report_dir
        self.page_size = page_size
        self.max_files = max_files
        self.progress = progress
        self._deleted_paths: set[str] = set()

    def scan(self, folder: Path | str, token: CancellationToken | None = None) -> ScanSummary:
        root = str(folder)
        reports = ReportPaths.in_directory(Path(self.report_dir or folder))
        summary = ScanSummary(root=root)
        self._deleted_paths = set()

        LOGGER.info("Scanning %s for duplicates", root)
        summary.all_files = fetch_file_entries(
            self.client, QueryRequest(search=folder_query(root), max_results=self.max_files)
        )
        total = len(summary.all_files)
        if total == 0:
            LOGGER.warning("No files found under %s", root)
        append_report(reports.all_files, summary.all_files)

        written = {"duplicates": 0, "uniques": 0, "deleted": 0}
        # An empty folder still gets one (empty) page so every report exists.
        for start in range(0, max(total, 1), self.page_size):
            try:
                for entry in summary.all_files[start : start + self.page_size]:
                    if token is not None and token.cancelled:
                        summary.cancelled = True
                        break
                    self._classify(entry, summary)
            finally:
                self._flush(reports, summary, written)

            if self.progress is not None:
                self.progress(summary.processed, total)
            if summary.cancelled:
                LOGGER.info("Duplicate scan of %s cancelled after %d files", root, summary.processed)
                break

        LOGGER.info(
            "Scan of %s finished: %d unique, %d duplicates, %d deleted",
            root,
            len(summary.uniques),
            len(summary.duplicates),
            len(summary.deleted),
        )
        return summary

    def _classify(self, entry: FileEntry, summary: ScanSummary) -> None:
        candidates = fetch_file_entries(
            self.client, QueryRequest(search=candidate_query(entry), max_results=self.page_size)
        )
        # The index may still list files this scan has already deleted.
        candidates = [c for c in candidates if c.path not in self._deleted_paths]
        if not candidates:
            summary.uniques.append(entry)
            return

        review = DuplicateReview.split(entry, candidates)
        if self.auto_delete_same_name and review.same_name:
            LOGGER.info("%s has %d same-name copies", entry.path, len(review.same_name))
            self._delete_or_keep(entry, summary)
        elif self.confirm is not None and self.confirm(review):
            self._delete_or_keep(entry, summary)
        else:
            summary.duplicates.append(entry)

    def _delete_or_keep(self, entry: FileEntry, summary: ScanSummary) -> None:
        try:
            self._delete(entry.path)
        except FileDeletionFailed as exc:
            LOGGER.error(str(exc))
            summary.duplicates.append(entry)
            return
        LOGGER.info("Deleted %s", entry.path)
        self._deleted_paths.add(entry.path)
        summary.deleted.append(entry)

    def _delete(self, path: str) -> None:
        try:
            if self.use_trash:
                send2trash(path)
            else:
                os.remove(path)
        except OSError as exc:
            raise FileDeletionFailed(path, exc) from exc

    @staticmethod
    def _flush(reports: ReportPaths, summary: ScanSummary, written: dict[str, int]) -> None:
        targets: List[tuple[str, Path]] = [
            ("duplicates", reports.duplicates),
            ("uniques", reports.unique),
            ("deleted", reports.deleted),
        ]
        for name, path in targets:
            entries = getattr(summary, name)
            append_report(path, entries[written[name] :])
            written[name] = len(entries)
