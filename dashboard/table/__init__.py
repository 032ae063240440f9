"""Table package — live record table controller and its derived view."""

from dashboard.table.controller import TableController
from dashboard.table.view import TableView, derive_rows

__all__ = ["TableController", "TableView", "derive_rows"]
