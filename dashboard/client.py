"""Async HTTP client for the analysis service.

Thin wrapper around ``httpx.AsyncClient``: it attaches the bearer token,
encodes JSON request bodies, decodes JSON responses and maps every failure
onto the :mod:`dashboard.errors` taxonomy.  Each call is exactly one round
trip; there is no retry and no caching at this layer.

Routes used
-----------
GET    /api/urls                 List records (flat array, or envelope)
GET    /api/urls/{id}            One record
POST   /api/urls                 Submit an address for analysis
DELETE /api/urls/{id}            Delete one record
POST   /api/urls/{id}/analyze    Re-run analysis of one record
POST   /api/urls/bulk-delete     Delete a batch       body: {"ids": [...]}
POST   /api/urls/bulk-rerun      Re-run a batch       body: {"ids": [...]}
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from dashboard.config import settings
from dashboard.errors import NetworkFailure, ServerError, ServerErrorOpaque
from dashboard.logging_utils import get_logger
from dashboard.models import ListResult, Operation, QueryState, Record
from dashboard.validation import validate_address

logger = get_logger("client")

_MALFORMED_MESSAGE = "The analysis service returned a malformed response."


def _error_from_response(response: httpx.Response) -> ServerError | ServerErrorOpaque:
    """Build the typed failure for a non-2xx *response*."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error")
        if isinstance(message, str) and message:
            return ServerError(response.status_code, message)
    return ServerErrorOpaque(response.status_code)


def _decode_records(items: Any, status_code: int) -> List[Record]:
    if items is None:
        # Go-style servers encode an empty slice as null.
        return []
    if not isinstance(items, list):
        raise ServerErrorOpaque(status_code, _MALFORMED_MESSAGE)
    try:
        return [Record.model_validate(item) for item in items]
    except ValidationError as exc:
        logger.debug("record decode failed: %s", exc)
        raise ServerErrorOpaque(status_code, _MALFORMED_MESSAGE) from exc


def decode_list_response(data: Any, status_code: int = 200) -> ListResult:
    """Decode either response shape of ``GET /api/urls``.

    A bare array is the whole collection (the client paginates locally).  The
    ``{urls, total, page, limit}`` envelope is one server-side page.
    """
    if isinstance(data, dict) and "urls" in data:
        records = _decode_records(data.get("urls"), status_code)
        total = data.get("total")
        if not isinstance(total, int) or total < 0:
            total = len(records)
        return ListResult(records=records, total=total, paginated=True)
    records = _decode_records(data, status_code)
    return ListResult(records=records, total=len(records), paginated=False)


class AnalyzerClient:
    """Authenticated JSON client for the ``/api/urls`` resource.

    Use as an async context manager so the underlying connection pool is
    released::

        async with AnalyzerClient() as client:
            result = await client.list(QueryState())

    Args:
        base_url: Service root.  Defaults to ``settings.api_base_url``.
        token: Static bearer token.  Defaults to ``settings.api_token``.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` or
            ``httpx.ASGITransport`` in tests.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        token = settings.api_token if token is None else token
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=settings.request_timeout if timeout is None else timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AnalyzerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise NetworkFailure(f"Could not reach the analysis service: {exc}") from exc
        if not response.is_success:
            raise _error_from_response(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServerErrorOpaque(response.status_code, _MALFORMED_MESSAGE) from exc

    def _record(self, response: httpx.Response) -> Record:
        try:
            return Record.model_validate(self._json(response))
        except ValidationError as exc:
            raise ServerErrorOpaque(response.status_code, _MALFORMED_MESSAGE) from exc

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    async def list(self, query: QueryState) -> ListResult:
        """Fetch the records matching *query*."""
        response = await self._send("GET", "/api/urls", params=query.to_params())
        return decode_list_response(self._json(response), response.status_code)

    async def get(self, record_id: int) -> Record:
        """Fetch a single record by id."""
        response = await self._send("GET", f"/api/urls/{record_id}")
        return self._record(response)

    async def submit(self, address: str) -> Record:
        """Submit *address* for analysis and return the queued record.

        Raises:
            ValidationFailure: If *address* is not a valid http(s) URL.  The
                service is not contacted in that case.
        """
        address = validate_address(address)
        response = await self._send("POST", "/api/urls", json={"url": address})
        return self._record(response)

    async def mutate(self, op: Operation, target: Union[int, Sequence[int]]) -> None:
        """Apply a state-changing operation to one id or a batch of ids.

        A batch is always sent as a single request.

        Raises:
            ValueError: For an empty batch or a batched ``analyze``.
        """
        op = Operation(op)
        if isinstance(target, int):
            if op is Operation.ANALYZE:
                await self._send("POST", f"/api/urls/{target}/analyze")
            elif op is Operation.DELETE:
                await self._send("DELETE", f"/api/urls/{target}")
            else:
                await self._send("POST", "/api/urls/bulk-rerun", json={"ids": [target]})
            return

        ids = [int(i) for i in target]
        if not ids:
            raise ValueError("mutate() needs at least one id")
        if op is Operation.ANALYZE:
            raise ValueError("analyze applies to a single id; use rerun for batches")
        path = "/api/urls/bulk-delete" if op is Operation.DELETE else "/api/urls/bulk-rerun"
        await self._send("POST", path, json={"ids": ids})
