"""Webpage Analyzer dashboard client.

Public re-exports so callers can write::

    from dashboard import AnalyzerClient, TableController
"""

from dashboard.client import AnalyzerClient
from dashboard.detail import DetailController
from dashboard.errors import (
    AnalyzerError,
    NetworkFailure,
    ServerError,
    ServerErrorOpaque,
    ValidationFailure,
)
from dashboard.models import QueryState, Record, RecordStatus, SortField, SortOrder
from dashboard.polling import PollingScheduler
from dashboard.table import TableController, TableView

__all__ = [
    "AnalyzerClient",
    "AnalyzerError",
    "DetailController",
    "NetworkFailure",
    "PollingScheduler",
    "QueryState",
    "Record",
    "RecordStatus",
    "ServerError",
    "ServerErrorOpaque",
    "SortField",
    "SortOrder",
    "TableController",
    "TableView",
    "ValidationFailure",
]
