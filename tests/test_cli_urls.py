"""Tests for the 'urls' CLI command group.

The commands talk to the contract server in-process: ``_client`` is patched
to return an AnalyzerClient whose transport is the ASGI app itself.
"""

from datetime import datetime, timezone

import httpx
import pytest
from typer.testing import CliRunner

from cli.commands.urls import urls_app
from dashboard.client import AnalyzerClient
from dashboard.models import Record, RecordStatus
from mockserver import RecordStore, create_app

runner = CliRunner()


@pytest.fixture
def store(monkeypatch):
    """Seed-able store behind an in-process contract server."""
    store = RecordStore()
    app = create_app(store=store, token="cli-token", advance_interval=0)

    def _client():
        return AnalyzerClient(
            base_url="http://testserver",
            token="cli-token",
            transport=httpx.ASGITransport(app=app),
        )

    monkeypatch.setattr("cli.commands.urls._client", _client)
    return store


def _seed(store, record_id, status="done", address=None, **fields):
    store.put(
        Record(
            id=record_id,
            address=address or f"https://site{record_id}.com",
            status=status,
            created_at=datetime(2024, 1, 1, 0, record_id, tzinfo=timezone.utc),
            **fields,
        )
    )


def test_urls_list(store):
    _seed(store, 1, address="https://example.com", title="Example")
    _seed(store, 2, address="https://other.com")

    result = runner.invoke(urls_app, ["list"])
    assert result.exit_code == 0
    assert "https://example.com" in result.stdout
    assert "https://other.com" in result.stdout
    assert "Showing 1-2 of 2 results" in result.stdout


def test_urls_list_search(store):
    _seed(store, 1, address="https://example.com")
    _seed(store, 2, address="https://other.com")

    result = runner.invoke(urls_app, ["list", "--search", "EXAMPLE"])
    assert result.exit_code == 0
    assert "https://example.com" in result.stdout
    assert "https://other.com" not in result.stdout


def test_urls_list_empty(store):
    result = runner.invoke(urls_app, ["list"])
    assert result.exit_code == 0
    assert "No URLs found matching your criteria." in result.stdout


def test_urls_list_bad_status(store):
    result = runner.invoke(urls_app, ["list", "--status", "finished"])
    assert result.exit_code == 1
    assert "❌ Invalid option" in result.stdout


def test_urls_list_network_failure(monkeypatch):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    monkeypatch.setattr(
        "cli.commands.urls._client",
        lambda: AnalyzerClient(base_url="http://testserver", transport=httpx.MockTransport(handler)),
    )
    result = runner.invoke(urls_app, ["list"])
    assert result.exit_code == 1
    assert "❌ Error:" in result.stdout


def test_urls_add(store):
    result = runner.invoke(urls_app, ["add", "https://example.com"])
    assert result.exit_code == 0
    assert "✅ URL added with ID: 1" in result.stdout
    assert store.get(1).status is RecordStatus.QUEUED


def test_urls_add_invalid(store):
    result = runner.invoke(urls_app, ["add", "not a url"])
    assert result.exit_code == 1
    assert "❌ Failed to add URL" in result.stdout
    assert len(store) == 0


def test_urls_show(store):
    _seed(store, 3, title="Example", html_version="HTML5", internal_links=2)

    result = runner.invoke(urls_app, ["show", "3"])
    assert result.exit_code == 0
    assert "Example" in result.stdout
    assert "HTML5" in result.stdout


def test_urls_show_missing(store):
    result = runner.invoke(urls_app, ["show", "42"])
    assert result.exit_code == 1
    assert "URL not found" in result.stdout


def test_urls_reanalyze(store):
    _seed(store, 1, status="error")
    result = runner.invoke(urls_app, ["reanalyze", "1"])
    assert result.exit_code == 0
    assert "🔁 URL 1 queued for re-analysis." in result.stdout
    assert store.get(1).status is RecordStatus.QUEUED


def test_urls_reanalyze_running(store):
    _seed(store, 1, status="running")
    result = runner.invoke(urls_app, ["reanalyze", "1"])
    assert result.exit_code == 0
    assert "already being analyzed" in result.stdout
    assert store.get(1).status is RecordStatus.RUNNING


def test_urls_rerun(store):
    _seed(store, 1)
    _seed(store, 2)
    result = runner.invoke(urls_app, ["rerun", "1", "2"])
    assert result.exit_code == 0
    assert "🔁 2 URL(s) queued for re-analysis." in result.stdout
    assert all(r.status is RecordStatus.QUEUED for r in store.list())


def test_urls_delete(store):
    for i in (1, 2, 3):
        _seed(store, i)
    result = runner.invoke(urls_app, ["delete", "1", "3", "--yes"])
    assert result.exit_code == 0
    assert "🗑️ Deleted 2 URL(s)." in result.stdout
    assert [r.id for r in store.list()] == [2]


def test_urls_delete_aborted(store):
    _seed(store, 1)
    result = runner.invoke(urls_app, ["delete", "1"], input="n\n")
    assert result.exit_code == 1
    assert len(store) == 1


def test_urls_watch_finishes_immediately(store):
    _seed(store, 1, status="done")
    result = runner.invoke(urls_app, ["watch"])
    assert result.exit_code == 0
    assert "✅ All analyses finished." in result.stdout


def test_urls_watch_polls_until_done(store, monkeypatch):
    _seed(store, 1, status="running")
    original_list = AnalyzerClient.list

    async def advancing_list(self, query):
        # Each poll sees the service one step further along.
        store.advance()
        return await original_list(self, query)

    monkeypatch.setattr(AnalyzerClient, "list", advancing_list)
    result = runner.invoke(urls_app, ["watch", "--interval", "0.1"])
    assert result.exit_code == 0
    assert "✅ All analyses finished." in result.stdout
    assert store.get(1).status is RecordStatus.DONE
