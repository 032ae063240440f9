"""In-memory record store backing the contract server.

There is no real analyzer behind it: :meth:`RecordStore.advance` walks
records through ``queued → running → done`` so clients have something to
poll.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from dashboard.models import Record, RecordStatus

# Metrics reset by a re-run, mirroring a fresh analysis.
_CLEARED_METRICS = {
    "title": None,
    "html_version": None,
    "h1": 0,
    "h2": 0,
    "h3": 0,
    "h4": 0,
    "h5": 0,
    "h6": 0,
    "internal_links": 0,
    "external_links": 0,
    "broken_links": 0,
    "has_login_form": False,
}


class RecordStore:
    def __init__(self) -> None:
        self._records: Dict[int, Record] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._records)

    def create(self, address: str) -> Record:
        record = Record(
            id=self._next_id,
            address=address,
            status=RecordStatus.QUEUED,
            created_at=datetime.now(timezone.utc),
        )
        self._records[record.id] = record
        self._next_id += 1
        return record

    def put(self, record: Record) -> Record:
        """Insert or overwrite *record* as-is (used to seed fixtures)."""
        self._records[record.id] = record
        self._next_id = max(self._next_id, record.id + 1)
        return record

    def list(self) -> List[Record]:
        return list(self._records.values())

    def get(self, record_id: int) -> Optional[Record]:
        return self._records.get(record_id)

    def delete(self, record_id: int) -> bool:
        return self._records.pop(record_id, None) is not None

    def delete_many(self, ids: Iterable[int]) -> int:
        return sum(1 for record_id in ids if self.delete(record_id))

    def requeue(self, record_id: int) -> Optional[Record]:
        record = self._records.get(record_id)
        if record is None:
            return None
        updated = record.model_copy(update={"status": RecordStatus.QUEUED, **_CLEARED_METRICS})
        self._records[record_id] = updated
        return updated

    def requeue_many(self, ids: Iterable[int]) -> int:
        return sum(1 for record_id in ids if self.requeue(record_id) is not None)

    def advance(self) -> int:
        """Move every pending record one step forward.  Returns moves made."""
        moved = 0
        for record_id, record in list(self._records.items()):
            if record.status is RecordStatus.QUEUED:
                self._records[record_id] = record.model_copy(
                    update={"status": RecordStatus.RUNNING}
                )
            elif record.status is RecordStatus.RUNNING:
                host = urlparse(record.address).hostname or record.address
                self._records[record_id] = record.model_copy(
                    update={
                        "status": RecordStatus.DONE,
                        "title": host,
                        "html_version": "HTML5",
                    }
                )
            else:
                continue
            moved += 1
        return moved
