"""
tests/test_report_pipeline.py

End-to-end pytest checks: CSV text through validation, filtering,
aggregation and trend tables.
"""

from __future__ import annotations

from datetime import date

import pytest

from activity_analytics.domain.usage_row import MEASURE_COLUMNS, REQUIRED_COLUMNS
from activity_analytics.services.csv_validation_service import CSVValidationService
from activity_analytics.services.filter_engine import DateRange, EntityFilter
from activity_analytics.services.report_pipeline import FilterSelection, build_report

AS_OF = date(2024, 1, 5)


def _line(day: str, company: str, role: str, total: int, messages: int = 0) -> str:
    measures = {column: "0" for column in MEASURE_COLUMNS}
    measures["Total Activities"] = str(total)
    measures["Messages Sent"] = str(messages)
    cells = [day, f"user@{company.lower()}.com", company, role, "", *measures.values()]
    return ",".join(cells)


@pytest.fixture()
def rows():
    text = "\n".join(
        [
            ",".join(REQUIRED_COLUMNS),
            _line("04/01/2024", "Acme", "Brand", 5, messages=2),
            _line("05/01/2024", "Acme", "Brand", 3, messages=1),
            _line("2024-01-05", "Globex", "Supplier", 4),
            _line("05/01/2024", "Initech", "Agency", 50),
        ]
    )
    return CSVValidationService(log_validation_errors=False).validate(text).rows


def test_default_selection_covers_everything(rows) -> None:
    snapshot = build_report(rows, as_of=AS_OF)

    assert snapshot.filter_description == "All Brands and Suppliers"
    assert len(snapshot.rows) == 4
    assert snapshot.summary.unsuccessful_rows == 1
    assert snapshot.timeline.group_keys == ("Acme", "Globex")
    assert snapshot.timeline.to_records() == [
        {"Date": "04/01/2024", "Acme": 5, "Globex": 0},
        {"Date": "05/01/2024", "Acme": 3, "Globex": 4},
    ]
    assert [row.label for row in snapshot.entity_summary_table.rows] == ["Acme", "Globex", "All entities"]
    assert snapshot.activity_timeline is None
    assert snapshot.company_trend_table is None


def test_single_company_adds_activity_views(rows) -> None:
    selection = FilterSelection(entity_filter=EntityFilter.specific(["Acme"]))

    snapshot = build_report(rows, selection, as_of=AS_OF)

    assert snapshot.filter_description == "Acme"
    assert snapshot.activity_timeline is not None
    assert snapshot.activity_timeline.series[-1].values["Messages Sent"] == 1
    assert snapshot.company_trend_table is not None
    assert snapshot.company_trend_table.row("Messages Sent").window(7).actual == 3
    assert snapshot.company_trend_table.row("Total Activities").window(7).actual == 8


def test_date_range_and_measure(rows) -> None:
    selection = FilterSelection(
        entity_filter=EntityFilter.brands_only(),
        date_range=DateRange(date(2024, 1, 5), date(2024, 1, 5)),
    )

    snapshot = build_report(rows, selection, measure_column="Messages Sent", as_of=AS_OF)

    assert [row.date for row in snapshot.rows] == ["05/01/2024"]
    assert snapshot.timeline.to_records() == [{"Date": "05/01/2024", "Acme": 1}]
    assert snapshot.entity_summary_table.measure == "Messages Sent"


def test_out_of_range_counts_are_flagged_not_aggregated() -> None:
    huge = "1" + "0" * 400
    text = "\n".join(
        [
            ",".join(REQUIRED_COLUMNS),
            _line("05/01/2024", "Acme", "Brand", 3),
            _line("05/01/2024", "Acme", "Brand", 0).replace(",0,", f",{huge},", 1),
            _line("05/01/2024", "Globex", "Supplier", 0).replace(",0,", ",1e400,", 1),
        ]
    )
    result = CSVValidationService(log_validation_errors=False).validate(text)

    snapshot = build_report(result.rows, as_of=AS_OF)

    assert snapshot.summary.unsuccessful_rows == 2
    assert snapshot.timeline.to_records() == [{"Date": "05/01/2024", "Acme": 3}]
    assert snapshot.entity_summary_table.row("All entities").window(7).actual == 3


def test_selection_with_no_rows(rows) -> None:
    snapshot = build_report(rows, FilterSelection(entity_filter=EntityFilter.specific([])), as_of=AS_OF)

    assert snapshot.rows == ()
    assert snapshot.timeline.series == ()
    assert [row.label for row in snapshot.entity_summary_table.rows] == ["All entities"]
