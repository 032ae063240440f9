"""Tests for dashboard.detail.DetailController."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import get_type_hints

from dashboard.client import AnalyzerClient
from dashboard.detail import DetailController
from dashboard.errors import NetworkFailure, ServerError
from dashboard.models import Operation, Record, RecordStatus


def _record(status: str = "done", **fields) -> Record:
    return Record(
        id=4,
        address="https://example.com",
        status=status,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        **fields,
    )


class FakeClient:
    def __init__(self, record: Record) -> None:
        self.record = record
        self.calls: list[tuple] = []
        self.get_error: Exception | None = None
        self.mutate_error: Exception | None = None

    async def get(self, record_id: int) -> Record:
        self.calls.append(("get", record_id))
        if self.get_error is not None:
            raise self.get_error
        return self.record

    async def mutate(self, op: Operation, target) -> None:
        self.calls.append(("mutate", op, target))
        if self.mutate_error is not None:
            raise self.mutate_error
        self.record = self.record.model_copy(update={"status": RecordStatus.QUEUED})


class TestDetailController:
    async def test_load(self):
        controller = DetailController(FakeClient(_record(title="Example")), 4)

        assert await controller.load()
        assert controller.record.title == "Example"
        assert controller.error is None
        assert not controller.loading

    async def test_load_failure_sets_error(self):
        client = FakeClient(_record())
        client.get_error = ServerError(404, "URL not found")
        controller = DetailController(client, 4)

        assert not await controller.load()
        assert controller.error == "URL not found"
        assert controller.record is None

    async def test_silent_failure_keeps_record(self):
        client = FakeClient(_record("running"))
        controller = DetailController(client, 4)
        await controller.load()

        client.get_error = NetworkFailure("down")
        assert not await controller.load(silent=True)
        assert controller.record.status is RecordStatus.RUNNING
        assert controller.error is None

    async def test_reanalyze_then_reload(self):
        client = FakeClient(_record("done"))
        controller = DetailController(client, 4)
        await controller.load()

        assert await controller.reanalyze()
        assert ("mutate", Operation.ANALYZE, 4) in client.calls
        assert controller.record.status is RecordStatus.QUEUED
        assert controller.is_pending()

    async def test_reanalyze_running_sends_nothing(self):
        client = FakeClient(_record("running"))
        controller = DetailController(client, 4)
        await controller.load()

        assert not await controller.reanalyze()
        assert client.calls == [("get", 4)]

    async def test_reanalyze_failure_sets_error(self):
        client = FakeClient(_record("error"))
        client.mutate_error = ServerError(500, "Failed to queue URL")
        controller = DetailController(client, 4)
        await controller.load()

        assert not await controller.reanalyze()
        assert controller.error == "Failed to queue URL"

    async def test_polling_stops_when_terminal(self):
        client = FakeClient(_record("queued"))
        controller = DetailController(client, 4)
        await controller.load()
        poller = controller.polling(interval=1)

        client.record = _record("done")
        assert await poller.tick_once()
        assert not await poller.tick_once()
        assert [c for c in client.calls if c[0] == "get"] == [("get", 4), ("get", 4)]

    def test_client_is_annotated(self):
        assert get_type_hints(DetailController.__init__)["client"] is AnalyzerClient
