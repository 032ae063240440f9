"""Plain-text rendering of table views and record details for the CLI."""

from __future__ import annotations

from typing import List, Sequence

from dashboard.models import Record, RecordStatus, SortField, SortOrder
from dashboard.table.view import TableView

_STATUS_LABELS = {
    RecordStatus.DONE: "Completed",
    RecordStatus.RUNNING: "Analyzing...",
    RecordStatus.ERROR: "Failed",
    RecordStatus.QUEUED: "Queued",
}

_STATUS_ICONS = {
    RecordStatus.DONE: "✅",
    RecordStatus.RUNNING: "⏳",
    RecordStatus.ERROR: "❌",
    RecordStatus.QUEUED: "🕒",
}

# (header, sort field, width)
_COLUMNS = [
    ("ID", None, 5),
    ("URL", SortField.ADDRESS, 36),
    ("Status", SortField.STATUS, 14),
    ("Title", SortField.TITLE, 24),
    ("HTML", SortField.HTML_VERSION, 6),
    ("Int", SortField.INTERNAL_LINKS, 5),
    ("Ext", SortField.EXTERNAL_LINKS, 5),
    ("Broken", SortField.BROKEN_LINKS, 6),
    ("Login", SortField.HAS_LOGIN_FORM, 5),
]

EMPTY_MESSAGE = "No URLs found matching your criteria."
LOADING_MESSAGE = "Loading initial data..."
UPDATING_MESSAGE = "Updating data..."


def status_label(status: RecordStatus) -> str:
    return f"{_STATUS_ICONS[status]} {_STATUS_LABELS[status]}"


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text.ljust(width)
    return text[: width - 1] + "…"


def _row_cells(record: Record) -> List[str]:
    return [
        str(record.id),
        record.address,
        _STATUS_LABELS[record.status],
        record.title or "-",
        record.html_version or "-",
        str(record.internal_links),
        str(record.external_links),
        str(record.broken_links),
        "yes" if record.has_login_form else "no",
    ]


def _header(view: TableView) -> str:
    cells = []
    for title, sort_field, width in _COLUMNS:
        if sort_field is not None and sort_field is view.query.sort_field:
            title += " ↑" if view.query.sort_order is SortOrder.ASC else " ↓"
        cells.append(_truncate(title, width))
    box = "[x]" if view.all_visible_selected else "[ ]"
    return f"{box} " + " ".join(cells)


def render_table(view: TableView) -> str:
    """Render a :class:`TableView` snapshot as a fixed-width text table."""
    if view.error and not view.rows:
        return f"❌ Error: {view.error}"
    if view.loading and not view.rows:
        return LOADING_MESSAGE

    lines: List[str] = []
    if view.error:
        lines.append(f"❌ Error: {view.error}")
    if view.selected:
        lines.append(f"{len(view.selected)} items selected")

    if not view.rows:
        lines.append(EMPTY_MESSAGE)
    else:
        lines.append(_header(view))
        for record in view.rows:
            box = "[x]" if record.id in view.selected else "[ ]"
            cells = [
                _truncate(value, width)
                for value, (_, _, width) in zip(_row_cells(record), _COLUMNS)
            ]
            lines.append(f"{box} " + " ".join(cells).rstrip())

    footer = (
        f"Showing {view.start_index + 1 if view.rows else 0}-{view.end_index} "
        f"of {view.total} results (page {view.query.page}/{max(view.total_pages, 1)})"
    )
    if view.updating:
        footer += f"  {UPDATING_MESSAGE}"
    lines.append(footer)
    return "\n".join(lines)


def _bar(count: int, scale: int) -> str:
    if scale <= 0:
        return ""
    return "█" * max(1 if count else 0, round(20 * count / scale))


def render_detail(record: Record) -> str:
    """Render one record with its heading and link breakdown."""
    lines = [
        f"URL          : {record.address}",
        f"Status       : {status_label(record.status)}",
        f"Title        : {record.title or 'N/A'}",
        f"HTML Version : {record.html_version or 'N/A'}",
        f"Login Form   : {'Yes' if record.has_login_form else 'No'}",
        f"Analyzed At  : {record.created_at:%Y-%m-%d %H:%M:%S}",
    ]
    if record.status is RecordStatus.RUNNING:
        lines.append("")
        lines.append("⏳ Analysis in progress. This view updates automatically when following.")

    lines.append("")
    lines.append("Headings")
    headings: Sequence[int] = record.headings
    top = max(headings)
    for level, count in enumerate(headings, start=1):
        lines.append(f"  H{level} {count:>4} {_bar(count, top)}")

    lines.append("")
    lines.append("Links")
    lines.append(f"  Internal {record.internal_links:>5}")
    lines.append(f"  External {record.external_links:>5}")
    lines.append(f"  Broken   {record.broken_links:>5}")
    if record.broken_links == 0:
        lines.append("  ✓ No broken links found!")
    else:
        plural = "s" if record.broken_links > 1 else ""
        lines.append(f"  ⚠️ {record.broken_links} broken link{plural} detected.")
    return "\n".join(lines)
