"""The ``/api/urls`` resource as the dashboard client expects it.

Routes
------
GET    /api/urls                 Whole collection as a flat array
POST   /api/urls                 Submit an address            body: {"url": "..."}
GET    /api/urls/{id}            One record
DELETE /api/urls/{id}            Delete one record
POST   /api/urls/{id}/analyze    Re-queue one record
POST   /api/urls/bulk-delete     Delete a batch               body: {"ids": [...]}
POST   /api/urls/bulk-rerun      Re-queue a batch             body: {"ids": [...]}

``page``, ``limit``, ``search``, ``sort`` and ``order`` are accepted on the
list route but ignored; the client slices the flat array itself.
"""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from dashboard.errors import ValidationFailure
from dashboard.validation import validate_address

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class SubmitRequest(BaseModel):
    url: str


class BulkRequest(BaseModel):
    ids: List[int] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[dict[str, Any]])
def list_urls_endpoint(request: Request) -> list[dict[str, Any]]:
    """Return every record."""
    store = request.app.state.store
    return [r.to_wire() for r in store.list()]


@router.post("", response_model=dict[str, Any])
def submit_url_endpoint(body: SubmitRequest, request: Request) -> dict[str, Any]:
    """Create a queued record for *url*."""
    try:
        address = validate_address(body.url)
    except ValidationFailure as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc
    return request.app.state.store.create(address).to_wire()


@router.post("/bulk-delete", response_model=dict[str, Any])
def bulk_delete_endpoint(body: BulkRequest, request: Request) -> dict[str, Any]:
    request.app.state.store.delete_many(body.ids)
    return {"message": "URLs deleted successfully"}


@router.post("/bulk-rerun", response_model=dict[str, Any])
def bulk_rerun_endpoint(body: BulkRequest, request: Request) -> dict[str, Any]:
    request.app.state.store.requeue_many(body.ids)
    return {"message": "URLs queued for re-analysis"}


@router.get("/{record_id}", response_model=dict[str, Any])
def get_url_endpoint(record_id: int, request: Request) -> dict[str, Any]:
    record = request.app.state.store.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="URL not found")
    return record.to_wire()


@router.delete("/{record_id}", response_model=dict[str, Any])
def delete_url_endpoint(record_id: int, request: Request) -> dict[str, Any]:
    if not request.app.state.store.delete(record_id):
        raise HTTPException(status_code=404, detail="URL not found")
    return {"message": "URL deleted successfully"}


@router.post("/{record_id}/analyze", response_model=dict[str, Any])
def analyze_url_endpoint(record_id: int, request: Request) -> dict[str, Any]:
    """Reset the record's metrics and queue it again."""
    if request.app.state.store.requeue(record_id) is None:
        raise HTTPException(status_code=404, detail="URL not found")
    return {"message": "URL queued for re-analysis"}
