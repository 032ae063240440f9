"""Commands for submitting, watching and managing analysed URLs."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import typer

from dashboard.client import AnalyzerClient
from dashboard.config import settings
from dashboard.detail import DetailController
from dashboard.errors import AnalyzerError
from dashboard.models import QueryState, RecordStatus, SortField, SortOrder
from dashboard.polling import PollingScheduler
from dashboard.table.controller import TableController

from cli.rendering import render_detail, render_table

urls_app = typer.Typer(help="Submit URLs and inspect their analysis.", no_args_is_help=True)


def _client() -> AnalyzerClient:
    """Build the service client.  Patched in tests."""
    return AnalyzerClient()


def _build_query(
    search: str,
    status: Optional[str],
    sort: Optional[str],
    order: Optional[str],
    page: int,
    page_size: Optional[int],
) -> QueryState:
    try:
        return QueryState(
            search_term=search,
            status_filter=RecordStatus(status) if status else None,
            sort_field=SortField(sort or settings.default_sort_field),
            sort_order=SortOrder(order or settings.default_sort_order),
            page=page,
            page_size=page_size or settings.page_size,
        )
    except ValueError as e:
        typer.echo(f"❌ Invalid option: {e}")
        raise typer.Exit(code=1)


@urls_app.command("list")
def urls_list(
    search: str = typer.Option("", "--search", "-s", help="Match URL or title (case-insensitive)."),
    status: Optional[str] = typer.Option(None, "--status", help="queued | running | done | error"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort field, e.g. address, status, createdAt."),
    order: Optional[str] = typer.Option(None, "--order", help="asc | desc"),
    page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="Rows per page."),
) -> None:
    """Show one page of analysed URLs."""
    query = _build_query(search, status, sort, order, page, page_size)

    async def _run():
        async with _client() as client:
            controller = TableController(client, query)
            await controller.refresh()
            return controller.view()

    view = asyncio.run(_run())
    typer.echo(render_table(view))
    if view.error:
        raise typer.Exit(code=1)


@urls_app.command("watch")
def urls_watch(
    search: str = typer.Option("", "--search", "-s", help="Match URL or title (case-insensitive)."),
    status: Optional[str] = typer.Option(None, "--status", help="queued | running | done | error"),
    sort: Optional[str] = typer.Option(None, "--sort", help="Sort field, e.g. address, status, createdAt."),
    order: Optional[str] = typer.Option(None, "--order", help="asc | desc"),
    page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="Rows per page."),
    interval: Optional[float] = typer.Option(
        None, "--interval", min=0.1, help="Seconds between polls (default from settings)."
    ),
) -> None:
    """Show the table and keep it updated until every analysis has finished."""
    query = _build_query(search, status, sort, order, page, page_size)

    async def _run() -> int:
        async with _client() as client:
            controller = TableController(client, query)
            await controller.refresh()
            typer.echo(render_table(controller.view()))
            if controller.error:
                return 1

            finished = asyncio.Event()

            async def _tick() -> None:
                await controller.refresh(silent=True)
                typer.echo("")
                typer.echo(render_table(controller.view()))
                if not controller.should_poll():
                    finished.set()

            poller = PollingScheduler(
                _tick,
                interval or settings.table_poll_interval,
                predicate=controller.should_poll,
                name="watch",
            )
            if controller.should_poll():
                async with poller:
                    await finished.wait()
            typer.echo("✅ All analyses finished.")
            return 0

    try:
        code = asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Stopped.")
        return
    if code:
        raise typer.Exit(code=code)


@urls_app.command("add")
def urls_add(
    url: str = typer.Argument(..., help="Address to analyse, e.g. https://example.com"),
) -> None:
    """Submit a URL for analysis."""

    async def _run():
        async with _client() as client:
            return await client.submit(url)

    try:
        record = asyncio.run(_run())
    except AnalyzerError as e:
        typer.echo(f"❌ Failed to add URL: {e.message}")
        raise typer.Exit(code=1)
    typer.echo(f"✅ URL added with ID: {record.id}")


@urls_app.command("show")
def urls_show(
    record_id: int = typer.Argument(..., help="Record id."),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep updating while pending."),
    interval: Optional[float] = typer.Option(
        None, "--interval", min=0.1, help="Seconds between polls (default from settings)."
    ),
) -> None:
    """Show the analysis details for one URL."""

    async def _run() -> int:
        async with _client() as client:
            detail = DetailController(client, record_id)
            if not await detail.load():
                typer.echo(f"❌ Error: {detail.error}")
                return 1
            typer.echo(render_detail(detail.record))
            if not (follow and detail.is_pending()):
                return 0

            finished = asyncio.Event()

            async def _tick() -> None:
                await detail.load(silent=True)
                typer.echo("")
                typer.echo(render_detail(detail.record))
                if not detail.is_pending():
                    finished.set()

            async with PollingScheduler(
                _tick,
                interval or settings.detail_poll_interval,
                predicate=detail.is_pending,
                name=f"show-{record_id}",
            ):
                await finished.wait()
            return 0

    try:
        code = asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Stopped.")
        return
    if code:
        raise typer.Exit(code=code)


@urls_app.command("reanalyze")
def urls_reanalyze(
    record_id: int = typer.Argument(..., help="Record id."),
) -> None:
    """Re-run the analysis of one URL."""

    async def _run() -> tuple[bool, DetailController]:
        async with _client() as client:
            detail = DetailController(client, record_id)
            if not await detail.load():
                return False, detail
            return await detail.reanalyze(), detail

    ok, detail = asyncio.run(_run())
    if detail.error:
        typer.echo(f"❌ Error: {detail.error}")
        raise typer.Exit(code=1)
    if not ok:
        typer.echo(f"⏳ URL {record_id} is already being analyzed.")
        return
    typer.echo(f"🔁 URL {record_id} queued for re-analysis.")


def _run_bulk(action: str, ids: List[int]) -> tuple[bool, Optional[str]]:
    async def _run() -> tuple[bool, Optional[str]]:
        async with _client() as client:
            controller = TableController(client)
            if action == "delete":
                ok = await controller.bulk_delete(ids)
            else:
                ok = await controller.bulk_rerun(ids)
            return ok, controller.error

    return asyncio.run(_run())


@urls_app.command("rerun")
def urls_rerun(
    ids: List[int] = typer.Argument(..., help="Record ids to re-analyse."),
) -> None:
    """Queue several URLs for re-analysis in one request."""
    ok, error = _run_bulk("rerun", ids)
    if not ok:
        typer.echo(f"❌ Failed to rerun analysis: {error}")
        raise typer.Exit(code=1)
    typer.echo(f"🔁 {len(set(ids))} URL(s) queued for re-analysis.")


@urls_app.command("delete")
def urls_delete(
    ids: List[int] = typer.Argument(..., help="Record ids to delete."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete several URLs in one request."""
    if not yes:
        typer.confirm(f"Delete {len(set(ids))} URL(s)?", abort=True)
    ok, error = _run_bulk("delete", ids)
    if not ok:
        typer.echo(f"❌ Failed to delete URLs: {error}")
        raise typer.Exit(code=1)
    typer.echo(f"🗑️ Deleted {len(set(ids))} URL(s).")
