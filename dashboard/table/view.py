"""Derived-view computation: filter → sort → paginate.

Everything here is pure.  The same records and query always produce the same
ordered rows, so the controller recomputes the view on every read instead of
caching it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Optional, Tuple

from dashboard.models import QueryState, Record, SortField, SortOrder


def matches(record: Record, query: QueryState) -> bool:
    """Return ``True`` if *record* passes the search term and status filter."""
    if query.status_filter and record.status != query.status_filter:
        return False
    term = query.search_term.lower()
    if not term:
        return True
    if term in record.address.lower():
        return True
    return bool(record.title) and term in record.title.lower()


def filter_records(records: Iterable[Record], query: QueryState) -> List[Record]:
    return [r for r in records if matches(r, query)]


def sort_key(record: Record, sort_field: SortField) -> Any:
    """Comparable key for *record*: strings case-folded, numbers as-is."""
    value = getattr(record, sort_field.attribute)
    if value is None:
        # Only the optional string fields can be missing.
        return ""
    if isinstance(value, str):
        return value.lower()
    return value


def sort_records(
    records: Iterable[Record],
    sort_field: SortField,
    sort_order: SortOrder = SortOrder.ASC,
) -> List[Record]:
    """Stable sort of *records* by *sort_field*.

    ``reverse=True`` inverts the comparison rather than the result, so equal
    keys keep their original relative order in both directions.
    """
    return sorted(
        records,
        key=lambda r: sort_key(r, sort_field),
        reverse=sort_order is SortOrder.DESC,
    )


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed for *total* rows (0 when there are none)."""
    return math.ceil(total / page_size) if total > 0 else 0


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Clamp *page* into ``[1, last page]``."""
    return max(1, min(page, page_count(total, page_size)))


def paginate(records: List[Record], page: int, page_size: int) -> List[Record]:
    start = (page - 1) * page_size
    return records[start:start + page_size]


@dataclass(frozen=True)
class DerivedRows:
    rows: Tuple[Record, ...]
    total: int
    total_pages: int
    start_index: int


def derive_rows(
    records: List[Record],
    query: QueryState,
    paginated: bool = False,
    server_total: Optional[int] = None,
) -> DerivedRows:
    """Compute the rows shown for *query*.

    When *paginated* is true the records are one page already filtered,
    sorted and sliced by the server; they are shown as delivered and
    *server_total* drives the page count.
    """
    if paginated:
        total = len(records) if server_total is None else server_total
        rows = records[:query.page_size]
    else:
        ordered = sort_records(
            filter_records(records, query), query.sort_field, query.sort_order
        )
        total = len(ordered)
        rows = paginate(ordered, query.page, query.page_size)
    return DerivedRows(
        rows=tuple(rows),
        total=total,
        total_pages=page_count(total, query.page_size),
        start_index=(query.page - 1) * query.page_size,
    )


@dataclass(frozen=True)
class TableView:
    """Read-only snapshot handed to the presentation layer."""

    rows: Tuple[Record, ...]
    total: int
    total_pages: int
    start_index: int
    query: QueryState
    selected: FrozenSet[int] = field(default_factory=frozenset)
    loading: bool = False
    updating: bool = False
    error: Optional[str] = None
    auto_refresh: bool = True

    @property
    def end_index(self) -> int:
        """One past the last shown row, for "Showing 11-20 of 25"."""
        return self.start_index + len(self.rows)

    @property
    def visible_ids(self) -> List[int]:
        return [r.id for r in self.rows]

    @property
    def all_visible_selected(self) -> bool:
        """State of the "select all" checkbox."""
        return bool(self.rows) and all(r.id in self.selected for r in self.rows)

