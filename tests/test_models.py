"""Tests for data models."""

from __future__ import annotations

import pytest

from evsearch.models import DuplicateReview, FileEntry, ScanSummary, SearchResult


class TestSearchResult:
    """Test SearchResult dataclass."""

    def test_optional_fields(self) -> None:
        result = SearchResult("C:\\Users", "*note*s.txt", "C:\\Users\\notes.txt", True)

        assert result.size is None
        assert result.date_modified is None

    def test_is_immutable(self) -> None:
        result = SearchResult("", "", "C:\\a", False)

        with pytest.raises(AttributeError):
            result.full_path = "C:\\b"  # type: ignore[misc]


class TestFileEntry:
    """Test FileEntry dataclass."""

    @pytest.mark.parametrize(
        "path, name, extension",
        [
            ("C:\\Photos\\IMG_01.JPG", "IMG_01.JPG", ".JPG"),
            ("/home/user/archive.tar.gz", "archive.tar.gz", ".gz"),
            ("D:\\mixed/dir\\README", "README", ""),
            ("plain.txt", "plain.txt", ".txt"),
        ],
    )
    def test_name_and_extension(self, path: str, name: str, extension: str) -> None:
        """Should handle both separators regardless of platform."""
        entry = FileEntry(path, 1)

        assert entry.name == name
        assert entry.extension == extension

    def test_to_line(self) -> None:
        assert FileEntry("C:\\My Files\\a b.txt", 42).to_line() == "C:\\My Files\\a b.txt 42"

    def test_from_line_keeps_spaces_in_path(self) -> None:
        """The size is the last space-separated field."""
        entry = FileEntry.from_line("C:\\My Files\\a b.txt 42\n")

        assert entry == FileEntry("C:\\My Files\\a b.txt", 42)

    @pytest.mark.parametrize("line", ["42", " 42", ""])
    def test_from_line_rejects_missing_path(self, line: str) -> None:
        with pytest.raises(ValueError):
            FileEntry.from_line(line)

    def test_from_line_rejects_bad_size(self) -> None:
        with pytest.raises(ValueError):
            FileEntry.from_line("/tmp/a.txt big")


class TestDuplicateReview:
    """Test DuplicateReview.split."""

    def test_split_by_name(self) -> None:
        entry = FileEntry("/a/photo.jpg", 10)
        same = FileEntry("/b/photo.jpg", 10)
        other = FileEntry("/c/copy of photo.jpg", 10)

        review = DuplicateReview.split(entry, [same, other])

        assert review.entry == entry
        assert review.same_name == [same]
        assert review.different_name == [other]

    def test_split_without_candidates(self) -> None:
        review = DuplicateReview.split(FileEntry("/a/x", 1), [])

        assert review.same_name == []
        assert review.different_name == []


class TestScanSummary:
    def test_processed_counts_every_partition(self) -> None:
        summary = ScanSummary(root="/data")
        summary.uniques.append(FileEntry("/data/a", 1))
        summary.duplicates.append(FileEntry("/data/b", 2))
        summary.deleted.append(FileEntry("/data/c", 2))
        summary.all_files.extend([FileEntry("/data/a", 1)] * 5)

        assert summary.processed == 3
        assert summary.cancelled is False
