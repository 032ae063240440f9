"""Live record table controller.

The controller owns the Query State, the record collection as last fetched
and the Selection Set.  The presentation layer only calls the intent methods
below and reads :meth:`TableController.view` snapshots; it never touches the
collection or the query directly.

Freshness rules
---------------
* Every refresh remembers the query version it was issued for.  A response
  (or failure) that arrives after the query has changed again is discarded,
  so a fast filter edit can never "blink back" stale rows.
* Two refreshes for the same query version: whichever resolves last wins.
* Nothing is changed locally ahead of the server.  Bulk actions and
  re-analysis go through the service and are followed by a refresh.

Server response shapes
----------------------
A flat array is the whole collection; filtering, sorting and pagination then
happen locally and query changes need no network call.  The wrapped envelope
is one server-side page; every query change triggers a foreground refresh.
Until the first response arrives the controller assumes the envelope.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Set, Union

from dashboard.client import AnalyzerClient
from dashboard.config import settings
from dashboard.errors import AnalyzerError
from dashboard.logging_utils import get_logger
from dashboard.models import (
    ListResult,
    Operation,
    QueryState,
    Record,
    RecordStatus,
    SortField,
    SortOrder,
)
from dashboard.polling import PollingScheduler
from dashboard.table.view import DerivedRows, TableView, clamp_page, derive_rows

logger = get_logger("table")

# A server that keeps moving its total while we chase the last page gets one
# extra fetch, not an endless loop.
_MAX_CLAMP_REFETCHES = 1


def default_query() -> QueryState:
    return QueryState(
        sort_field=SortField(settings.default_sort_field),
        sort_order=SortOrder(settings.default_sort_order),
        page_size=settings.page_size,
    )


class TableController:
    """Fetches, derives and mutates the analysis record table.

    Args:
        client: An :class:`~dashboard.client.AnalyzerClient` (or anything
            with the same async ``list`` / ``mutate`` / ``submit`` methods).
        query: Initial Query State.  Defaults come from settings.
    """

    def __init__(self, client: AnalyzerClient, query: Optional[QueryState] = None) -> None:
        self._client = client
        self._query = query or default_query()
        self._query_version = 0

        self._records: List[Record] = []
        self._server_total = 0
        # None until the first response tells us which shape the server uses.
        self._server_paginates: Optional[bool] = None
        self._loaded = False

        self._selection: Set[int] = set()
        self._foreground = 0
        self._background = 0

        self.error: Optional[str] = None
        self.auto_refresh = True

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def query(self) -> QueryState:
        return self._query

    @property
    def records(self) -> tuple[Record, ...]:
        """The unfiltered collection as last fetched."""
        return tuple(self._records)

    @property
    def selection(self) -> frozenset[int]:
        return frozenset(self._selection)

    @property
    def loading(self) -> bool:
        """Primary indicator: a foreground refresh is in flight."""
        return self._foreground > 0

    @property
    def updating(self) -> bool:
        """Secondary indicator: a silent background refresh is in flight."""
        return self._background > 0

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _derive(self) -> DerivedRows:
        return derive_rows(
            self._records,
            self._query,
            paginated=bool(self._server_paginates),
            server_total=self._server_total,
        )

    def view(self) -> TableView:
        """Compute a fresh snapshot of what should be rendered."""
        derived = self._derive()
        return TableView(
            rows=derived.rows,
            total=derived.total,
            total_pages=derived.total_pages,
            start_index=derived.start_index,
            query=self._query,
            selected=frozenset(self._selection),
            loading=self.loading,
            updating=self.updating,
            error=self.error,
            auto_refresh=self.auto_refresh,
        )

    def find(self, record_id: int) -> Optional[Record]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def has_pending(self) -> bool:
        """True if any fetched record, ignoring filters, is queued or running."""
        return any(not r.status.is_terminal for r in self._records)

    def should_poll(self) -> bool:
        return self.auto_refresh and self.has_pending()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self, silent: bool = False) -> bool:
        """Fetch the collection for the current Query State.

        Args:
            silent: Background refresh.  Toggles only ``updating``, keeps the
                current error and, on failure, keeps the last good rows.

        Returns:
            ``True`` if a result was applied.
        """
        for _ in range(_MAX_CLAMP_REFETCHES + 1):
            applied, page_moved = await self._fetch(silent)
            if not (applied and page_moved and self._server_paginates):
                return applied
            # The requested server page no longer exists; fetch the last one.
            self._query_version += 1
        return applied

    async def _fetch(self, silent: bool) -> tuple[bool, bool]:
        version = self._query_version
        query = self._query
        if silent:
            self._background += 1
        else:
            self._foreground += 1
            self.error = None

        try:
            result = await self._client.list(query)
        except AnalyzerError as exc:
            if version != self._query_version:
                logger.debug("dropping failure for superseded query: %s", exc.message)
            elif silent and self._loaded:
                logger.warning("background refresh failed, keeping last data: %s", exc.message)
            else:
                self.error = exc.message
            return False, False
        finally:
            if silent:
                self._background -= 1
            else:
                self._foreground -= 1

        if version != self._query_version:
            logger.debug("dropping response for superseded query %r", query)
            return False, False
        return True, self._apply(result)

    def _apply(self, result: ListResult) -> bool:
        """Replace the collection wholesale.  Returns ``True`` if page moved."""
        self._records = list(result.records)
        self._server_total = result.total
        self._server_paginates = result.paginated
        self._loaded = True
        return self._reconcile()

    def _reconcile(self) -> bool:
        """Clamp the page and drop selected ids that are no longer shown."""
        derived = self._derive()
        page = clamp_page(self._query.page, derived.total, self._query.page_size)
        moved = page != self._query.page
        if moved:
            self._query = replace(self._query, page=page)
            derived = self._derive()
        self._selection &= {r.id for r in derived.rows}
        return moved

    # ------------------------------------------------------------------
    # Query intents
    # ------------------------------------------------------------------

    async def _change_query(self, **changes) -> None:
        updated = self._query.update(**changes)
        if updated == self._query:
            return
        self._query = updated
        # Refreshes still in flight for the previous query become stale.
        self._query_version += 1
        if self._server_paginates is False:
            # The whole collection is local; just re-derive.
            self._reconcile()
            return
        self._selection.clear()
        await self.refresh(silent=False)

    async def set_search(self, term: str) -> None:
        await self._change_query(search_term=term)

    async def set_status_filter(self, status: Union[RecordStatus, str, None]) -> None:
        await self._change_query(status_filter=RecordStatus(status) if status else None)

    async def set_sort(
        self,
        sort_field: Union[SortField, str],
        sort_order: Union[SortOrder, str, None] = None,
    ) -> None:
        changes = {"sort_field": SortField(sort_field)}
        if sort_order is not None:
            changes["sort_order"] = SortOrder(sort_order)
        await self._change_query(**changes)

    async def toggle_sort(self, sort_field: Union[SortField, str]) -> None:
        """Column-header click: flip the order, or start a new field ascending."""
        sort_field = SortField(sort_field)
        if sort_field is self._query.sort_field:
            await self._change_query(sort_order=self._query.sort_order.flipped())
        else:
            await self._change_query(sort_field=sort_field, sort_order=SortOrder.ASC)

    async def set_page(self, page: int) -> None:
        await self._change_query(page=max(1, page))

    async def set_page_size(self, page_size: int) -> None:
        await self._change_query(page_size=page_size, page=1)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _visible_ids(self) -> Set[int]:
        return {r.id for r in self._derive().rows}

    def select(self, record_id: int) -> bool:
        """Check one row.  Ids not on the current page are ignored."""
        if record_id not in self._visible_ids():
            return False
        self._selection.add(record_id)
        return True

    def deselect(self, record_id: int) -> None:
        self._selection.discard(record_id)

    def select_all_visible(self, checked: bool) -> None:
        """The "select all" checkbox: affects only the displayed page."""
        visible = self._visible_ids()
        if checked:
            self._selection |= visible
        else:
            self._selection -= visible

    def clear_selection(self) -> None:
        self._selection.clear()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _bulk(self, op: Operation, ids: Optional[Iterable[int]]) -> bool:
        batch = sorted(self._selection) if ids is None else list(dict.fromkeys(ids))
        if not batch:
            return False
        try:
            await self._client.mutate(op, batch)
        except AnalyzerError as exc:
            logger.info("bulk %s of %d record(s) failed: %s", op.value, len(batch), exc.message)
            self.error = exc.message
            return False
        self._selection.clear()
        await self.refresh(silent=False)
        return True

    async def bulk_delete(self, ids: Optional[Iterable[int]] = None) -> bool:
        """Delete *ids* (default: the selection) in one request."""
        return await self._bulk(Operation.DELETE, ids)

    async def bulk_rerun(self, ids: Optional[Iterable[int]] = None) -> bool:
        """Queue *ids* (default: the selection) for re-analysis in one request."""
        return await self._bulk(Operation.RERUN, ids)

    async def reanalyze(self, record_id: int) -> bool:
        """Re-run one record.

        A record that is currently ``running`` is rejected locally: no
        request is sent and no error is recorded.
        """
        record = self.find(record_id)
        if record is not None and record.status is RecordStatus.RUNNING:
            logger.debug("record %s is already running, not re-analysing", record_id)
            return False
        try:
            await self._client.mutate(Operation.ANALYZE, record_id)
        except AnalyzerError as exc:
            self.error = exc.message
            return False
        await self.refresh(silent=False)
        return True

    async def add(self, address: str) -> Optional[Record]:
        """Submit a new address, then refresh.

        Invalid addresses end up in ``error`` without any network call.
        """
        try:
            record = await self._client.submit(address)
        except AnalyzerError as exc:
            self.error = exc.message
            return None
        await self.refresh(silent=False)
        return record

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def polling(self, interval: Optional[float] = None) -> PollingScheduler:
        """Scheduler that silently refreshes while records are pending."""
        return PollingScheduler(
            lambda: self.refresh(silent=True),
            interval or settings.table_poll_interval,
            predicate=self.should_poll,
            name="table",
        )
