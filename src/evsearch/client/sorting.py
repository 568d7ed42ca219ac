"""Mapping of SDK sort keys to Everything GUI column names."""

from __future__ import annotations

from typing import NamedTuple

from evsearch.errors import UnknownSortKey

SORT_COLUMNS = (
    "Name",
    "Path",
    "Size",
    "Extension",
    "Type name",
    "Date created",
    "Date modified",
    "Attributes",
    "File list filename",
    "Run count",
    "Date recently changed",
    "Date accessed",
    "Date run",
)


class SortKey(NamedTuple):
    key: int
    column: str
    ascending: bool


# SDK keys start at 1; each column owns an ascending key followed by a descending one.
SORT_KEYS: dict[int, SortKey] = {
    2 * index + 1 + offset: SortKey(2 * index + 1 + offset, column, offset == 0)
    for index, column in enumerate(SORT_COLUMNS)
    for offset in (0, 1)
}


def sort_key(key: int) -> SortKey:
    try:
        return SORT_KEYS[key]
    except KeyError:
        raise UnknownSortKey(key) from None
