"""Data models for the dashboard client.

``Record`` is the wire DTO returned by the analysis service (camelCase on the
wire, snake_case in Python).  ``QueryState`` holds the user's view
parameters; it is immutable and every change goes through
:meth:`QueryState.update` so the page-reset rule cannot be bypassed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class RecordStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """``done`` and ``error`` need no further polling."""
        return self in (RecordStatus.DONE, RecordStatus.ERROR)


class Record(BaseModel):
    """One analysed address with its status and page-structure metrics."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    address: str
    status: RecordStatus
    title: Optional[str] = None
    html_version: Optional[str] = None

    h1: int = Field(default=0, ge=0)
    h2: int = Field(default=0, ge=0)
    h3: int = Field(default=0, ge=0)
    h4: int = Field(default=0, ge=0)
    h5: int = Field(default=0, ge=0)
    h6: int = Field(default=0, ge=0)

    internal_links: int = Field(default=0, ge=0)
    external_links: int = Field(default=0, ge=0)
    broken_links: int = Field(default=0, ge=0)

    has_login_form: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _broken_links_within_total(self) -> "Record":
        if self.broken_links > self.internal_links + self.external_links:
            raise ValueError(
                "brokenLinks cannot exceed internalLinks + externalLinks "
                f"({self.broken_links} > {self.internal_links + self.external_links})"
            )
        return self

    @property
    def headings(self) -> list[int]:
        return [self.h1, self.h2, self.h3, self.h4, self.h5, self.h6]

    def to_wire(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON shape used on the wire."""
        return self.model_dump(by_alias=True, mode="json")


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortOrder":
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class SortField(str, Enum):
    ADDRESS = "address"
    STATUS = "status"
    TITLE = "title"
    HTML_VERSION = "htmlVersion"
    CREATED_AT = "createdAt"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    INTERNAL_LINKS = "internalLinks"
    EXTERNAL_LINKS = "externalLinks"
    BROKEN_LINKS = "brokenLinks"
    HAS_LOGIN_FORM = "hasLoginForm"

    @property
    def attribute(self) -> str:
        """Name of the matching :class:`Record` attribute."""
        return _SORT_ATTRIBUTES[self]


_SORT_ATTRIBUTES = {
    SortField.ADDRESS: "address",
    SortField.STATUS: "status",
    SortField.TITLE: "title",
    SortField.HTML_VERSION: "html_version",
    SortField.CREATED_AT: "created_at",
    SortField.H1: "h1",
    SortField.H2: "h2",
    SortField.H3: "h3",
    SortField.H4: "h4",
    SortField.H5: "h5",
    SortField.H6: "h6",
    SortField.INTERNAL_LINKS: "internal_links",
    SortField.EXTERNAL_LINKS: "external_links",
    SortField.BROKEN_LINKS: "broken_links",
    SortField.HAS_LOGIN_FORM: "has_login_form",
}

# Changing any of these invalidates the current pagination context.
_PAGE_RESETTING_FIELDS = ("search_term", "status_filter", "sort_field", "sort_order")


@dataclass(frozen=True)
class QueryState:
    """The user-controlled parameters for one table view."""

    search_term: str = ""
    status_filter: Optional[RecordStatus] = None
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    def update(self, **changes: Any) -> "QueryState":
        """Return a copy with *changes* applied.

        Any change to the search term, status filter, sort field or sort
        order resets ``page`` to 1, overriding any ``page`` in *changes*.
        """
        resets = any(
            name in changes and changes[name] != getattr(self, name)
            for name in _PAGE_RESETTING_FIELDS
        )
        if resets:
            changes["page"] = 1
        return replace(self, **changes)

    def to_params(self) -> dict[str, str]:
        """Query-string parameters for ``GET /api/urls``."""
        return {
            "page": str(self.page),
            "limit": str(self.page_size),
            "search": self.search_term,
            "sort": self.sort_field.value,
            "order": self.sort_order.value,
        }


class Operation(str, Enum):
    """State-changing operations accepted by ``AnalyzerClient.mutate``."""

    DELETE = "delete"
    RERUN = "rerun"
    ANALYZE = "analyze"


@dataclass
class ListResult:
    """Decoded ``GET /api/urls`` response.

    ``paginated`` is ``True`` when the server answered with the wrapped
    ``{urls, total, page, limit}`` envelope, meaning ``records`` is already the
    requested page.  A flat array is the whole collection and ``total`` is
    its length.
    """

    records: List[Record] = field(default_factory=list)
    total: int = 0
    paginated: bool = False
