"""Application configuration defaults."""

from __future__ import annotations

import os
import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path

BATCH_SIZE = 200
MAX_FOLDER_FILES = 100_000
DEFAULT_SORT = 1  # name ascending


def _get_default_dll_path() -> str:
    """Get the SDK library name based on interpreter bitness and platform."""
    override = os.environ.get("EVERYTHING_SDK_DLL")
    if override:
        return override

    if sys.platform != "win32":
        # Everything only runs on Windows; a custom build must be supplied elsewhere
        return "libEverything.so"

    bits = struct.calcsize("P") * 8
    return "Everything64.dll" if bits == 64 else "Everything32.dll"


@dataclass(slots=True)
class SearchSettings:
    match_case: bool = False
    match_path: bool = False
    match_whole_word: bool = False
    regex_enabled: bool = False
    hide_empty_results: bool = False
    sort_by: int = DEFAULT_SORT
    enable_history: bool = False
    remember_filter: bool = False
    instance_name: str = ""

    @property
    def effective_whole_word(self) -> bool:
        """Whole-word matching is meaningless for regex queries."""
        return self.match_whole_word and not self.regex_enabled


@dataclass(slots=True)
class AppConfig:
    dll_path: str | None = None
    settings: SearchSettings = field(default_factory=SearchSettings)
    report_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.dll_path is None:
            self.dll_path = _get_default_dll_path()

    def resolve_report_dir(self, scanned_folder: Path) -> Path:
        if self.report_dir is None:
            return scanned_folder
        if Path(self.report_dir).is_absolute():
            return Path(self.report_dir)
        return scanned_folder / self.report_dir
