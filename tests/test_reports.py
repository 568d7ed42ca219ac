"""Tests for report files."""

from __future__ import annotations

import logging
from pathlib import Path

from evsearch.dedup.reports import ReportPaths, append_report, read_report
from evsearch.models import FileEntry


class TestReportPaths:
    def test_in_directory(self, tmp_path: Path) -> None:
        reports = ReportPaths.in_directory(tmp_path)

        assert reports.all_files == tmp_path / "allFiles.txt"
        assert reports.duplicates == tmp_path / "duplicates.txt"
        assert reports.unique == tmp_path / "unique.txt"
        assert reports.deleted == tmp_path / "deleted.txt"


class TestAppendReport:
    """Tests for append_report and read_report."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Missing report directories are created."""
        path = tmp_path / "nested" / "reports" / "unique.txt"

        assert append_report(path, [FileEntry("/a.txt", 3)]) is True
        assert path.read_text(encoding="utf-8") == "/a.txt 3\n"

    def test_appends_in_order(self, tmp_path: Path) -> None:
        """Successive calls add to the end of the file."""
        path = tmp_path / "duplicates.txt"
        first = [FileEntry("C:\\one two\\a.txt", 1), FileEntry("C:\\b.txt", 2)]
        second = [FileEntry("C:\\c.txt", 3)]

        append_report(path, first)
        append_report(path, second)

        assert read_report(path) == first + second

    def test_empty_append_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / "deleted.txt"

        assert append_report(path, []) is True
        assert path.exists()
        assert read_report(path) == []

    def test_non_ascii_paths(self, tmp_path: Path) -> None:
        path = tmp_path / "allFiles.txt"
        entry = FileEntry("D:\\Música\\canción.mp3", 4096)

        append_report(path, [entry])

        assert read_report(path) == [entry]

    def test_write_failure_is_logged(self, tmp_path: Path, caplog) -> None:
        """A report that cannot be written does not raise."""
        path = tmp_path / "blocked"
        path.mkdir()

        with caplog.at_level(logging.ERROR):
            assert append_report(path, [FileEntry("/a.txt", 1)]) is False

        assert "Failed to append results to" in caplog.text

    def test_read_skips_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "unique.txt"
        path.write_text("/a.txt 1\n\n/b.txt 2\n", encoding="utf-8")

        assert read_report(path) == [FileEntry("/a.txt", 1), FileEntry("/b.txt", 2)]
