"""Controller for the single-record details view.

Loads one record, re-analyses it on request and keeps it fresh while the
analysis is still pending.  Error handling follows the table controller:
failures land in ``error`` and a failed background refresh keeps the last
good record.
"""

from __future__ import annotations

from typing import Optional

from dashboard.client import AnalyzerClient
from dashboard.config import settings
from dashboard.errors import AnalyzerError
from dashboard.logging_utils import get_logger
from dashboard.models import Operation, Record, RecordStatus
from dashboard.polling import PollingScheduler

logger = get_logger("detail")


class DetailController:
    def __init__(self, client: AnalyzerClient, record_id: int) -> None:
        self._client = client
        self.record_id = record_id
        self.record: Optional[Record] = None
        self.error: Optional[str] = None
        self.loading = False

    def is_pending(self) -> bool:
        return self.record is not None and not self.record.status.is_terminal

    async def load(self, silent: bool = False) -> bool:
        """Fetch the record.  Returns ``True`` on success."""
        if not silent:
            self.loading = True
            self.error = None
        try:
            self.record = await self._client.get(self.record_id)
        except AnalyzerError as exc:
            if silent and self.record is not None:
                logger.warning("refresh of record %s failed: %s", self.record_id, exc.message)
            else:
                self.error = exc.message
            return False
        finally:
            if not silent:
                self.loading = False
        return True

    async def reanalyze(self) -> bool:
        """Queue the record for a new analysis, then reload it.

        Rejected locally while the record is ``running``.
        """
        if self.record is not None and self.record.status is RecordStatus.RUNNING:
            return False
        try:
            await self._client.mutate(Operation.ANALYZE, self.record_id)
        except AnalyzerError as exc:
            self.error = exc.message
            return False
        return await self.load()

    def polling(self, interval: Optional[float] = None) -> PollingScheduler:
        return PollingScheduler(
            lambda: self.load(silent=True),
            interval or settings.detail_poll_interval,
            predicate=self.is_pending,
            name=f"record-{self.record_id}",
        )
