"""Tests for dashboard.models — Record decoding and QueryState rules."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from dashboard.models import (
    QueryState,
    Record,
    RecordStatus,
    SortField,
    SortOrder,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

WIRE_RECORD = {
    "id": 1,
    "address": "https://example.com",
    "status": "done",
    "title": "Example Site",
    "htmlVersion": "HTML5",
    "h1": 1,
    "h2": 2,
    "h3": 0,
    "h4": 0,
    "h5": 0,
    "h6": 0,
    "internalLinks": 5,
    "externalLinks": 3,
    "brokenLinks": 0,
    "hasLoginForm": False,
    "createdAt": "2024-01-01T00:00:00Z",
}


# ===========================================================================
# Record
# ===========================================================================

class TestRecord:
    def test_decodes_camel_case_wire_format(self):
        record = Record.model_validate(WIRE_RECORD)

        assert record.id == 1
        assert record.status is RecordStatus.DONE
        assert record.html_version == "HTML5"
        assert record.internal_links == 5
        assert record.has_login_form is False
        assert record.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_round_trips_to_wire_names(self):
        wire = Record.model_validate(WIRE_RECORD).to_wire()
        assert wire["htmlVersion"] == "HTML5"
        assert wire["brokenLinks"] == 0
        assert "html_version" not in wire

    def test_optional_fields_absent_while_queued(self):
        record = Record.model_validate(
            {"id": 7, "address": "https://x.org", "status": "queued",
             "createdAt": "2024-01-01T00:00:00Z"}
        )
        assert record.title is None
        assert record.html_version is None
        assert record.headings == [0, 0, 0, 0, 0, 0]

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            Record.model_validate({**WIRE_RECORD, "status": "completed"})

    def test_rejects_negative_counts(self):
        with pytest.raises(ValidationError):
            Record.model_validate({**WIRE_RECORD, "h2": -1})

    def test_rejects_more_broken_links_than_links(self):
        with pytest.raises(ValidationError):
            Record.model_validate({**WIRE_RECORD, "brokenLinks": 9})

    def test_naive_created_at_is_taken_as_utc(self):
        record = Record.model_validate({**WIRE_RECORD, "createdAt": "2024-01-01T00:00:00"})
        assert record.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_is_immutable(self):
        record = Record.model_validate(WIRE_RECORD)
        with pytest.raises(ValidationError):
            record.status = RecordStatus.QUEUED  # type: ignore[misc]

    def test_terminal_statuses(self):
        assert RecordStatus.DONE.is_terminal
        assert RecordStatus.ERROR.is_terminal
        assert not RecordStatus.QUEUED.is_terminal
        assert not RecordStatus.RUNNING.is_terminal


# ===========================================================================
# QueryState
# ===========================================================================

class TestQueryState:
    @pytest.mark.parametrize(
        "changes",
        [
            {"search_term": "example"},
            {"status_filter": RecordStatus.RUNNING},
            {"sort_field": SortField.ADDRESS},
            {"sort_order": SortOrder.ASC},
        ],
    )
    def test_filter_and_sort_changes_reset_page(self, changes):
        query = QueryState(page=4)
        assert query.update(**changes).page == 1

    def test_reset_wins_over_explicit_page(self):
        query = QueryState(page=4)
        assert query.update(search_term="a", page=3).page == 1

    def test_unchanged_value_keeps_page(self):
        query = QueryState(search_term="a", page=4)
        assert query.update(search_term="a").page == 4

    def test_page_change_alone_keeps_other_fields(self):
        query = QueryState(search_term="a").update(page=2)
        assert query.page == 2
        assert query.search_term == "a"

    def test_rejects_invalid_page_and_size(self):
        with pytest.raises(ValueError):
            QueryState(page=0)
        with pytest.raises(ValueError):
            QueryState(page_size=0)

    def test_to_params(self):
        query = QueryState(search_term="ex", sort_field=SortField.INTERNAL_LINKS,
                           sort_order=SortOrder.ASC, page=2, page_size=25)
        assert query.to_params() == {
            "page": "2",
            "limit": "25",
            "search": "ex",
            "sort": "internalLinks",
            "order": "asc",
        }

    def test_every_sort_field_maps_to_a_record_attribute(self):
        record = Record.model_validate(WIRE_RECORD)
        for sort_field in SortField:
            getattr(record, sort_field.attribute)
