"""FastAPI application factory for the contract server.

This is a stand-in for the analysis service at its HTTP boundary only: it
stores records in memory and fakes progress, it never fetches or parses a
page.  It exists so the dashboard client and CLI can be run and tested
end-to-end against the exact contract they depend on.

Lifespan
--------
On startup the app creates (or adopts) a :class:`RecordStore` on
``app.state.store`` and, when an advance interval is configured, starts a
background task that moves pending records forward.  On shutdown the task is
cancelled.

Errors
------
Every error is rendered as ``{"error": "<message>"}``.  Requests without the
configured bearer token get ``401 {"error": "unauthorized"}``.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard.config import settings
from dashboard.logging_utils import get_logger
from mockserver.routers import urls as urls_router
from mockserver.store import RecordStore

logger = get_logger("mockserver")


async def _advance_forever(store: RecordStore, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        moved = store.advance()
        if moved:
            logger.debug("advanced %d record(s)", moved)


def create_app(
    store: Optional[RecordStore] = None,
    token: Optional[str] = None,
    advance_interval: Optional[float] = None,
) -> FastAPI:
    """Return a fully-configured contract server.

    Args:
        store: Pre-seeded store.  A fresh empty one is created if omitted.
        token: Accepted bearer token.  Defaults to ``settings.api_token``.
        advance_interval: Seconds between fake progress steps; ``0``
            disables the background task.  Defaults to
            ``settings.mock_advance_interval``.
    """
    expected_auth = f"Bearer {settings.api_token if token is None else token}"
    interval = settings.mock_advance_interval if advance_interval is None else advance_interval

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task = None
        if interval > 0:
            task = asyncio.create_task(_advance_forever(app.state.store, interval))
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task

    def require_token(authorization: Optional[str] = Header(default=None)) -> None:
        if authorization != expected_auth:
            raise HTTPException(status_code=401, detail="unauthorized")

    app = FastAPI(
        title="Webpage Analyzer contract server",
        description=(
            "In-memory implementation of the /api/urls contract consumed by "
            "the dashboard client.  Analysis progress is simulated."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else RecordStore()

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        urls_router.router,
        prefix="/api/urls",
        tags=["urls"],
        dependencies=[Depends(require_token)],
    )

    return app
