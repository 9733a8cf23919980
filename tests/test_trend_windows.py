"""
tests/test_trend_windows.py

Pytest unit tests for trailing-window Avg/Actual tables.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from activity_analytics.domain.usage_row import ACTIVITY_TYPE_COLUMNS, MEASURE_COLUMNS, UsageRow
from trend.schema import TrendIndicator
from trend.windows import (
    ALL_ENTITIES_LABEL,
    TREND_WINDOWS,
    build_entity_summary_table,
    build_trend_table,
    compare_averages,
    resolve_as_of,
    window_bounds,
)

AS_OF = date(2024, 6, 30)


def _row(day: date, company: str = "Acme", total: float = 7, errors: tuple[str, ...] = (), **measures: float) -> UsageRow:
    values = {column: 0 for column in MEASURE_COLUMNS}
    values["Total Activities"] = total
    values.update({key.replace("_", " "): value for key, value in measures.items()})
    return UsageRow(
        row_number=2,
        date=day.strftime("%d/%m/%Y"),
        user_email=None,
        company=company,
        role="Brand",
        last_login=None,
        measures=values,
        row_errors=errors,
    )


@pytest.fixture()
def steady_rows() -> list[UsageRow]:
    return [_row(AS_OF - timedelta(days=i), total=7, Messages_Sent=7) for i in range(200)]


class TestTrendTable:
    def test_steady_activity_averages_and_actuals(self, steady_rows: list[UsageRow]) -> None:
        table = build_trend_table(steady_rows, company="Acme", as_of=AS_OF)
        total = table.row("Total Activities")

        assert total.window(7).actual == 49
        assert total.window(7).average == pytest.approx(7.0)
        assert total.window(180).actual == 1260
        assert total.window(180).average == pytest.approx(7.0)

    def test_steady_activity_trends_are_equal(self, steady_rows: list[UsageRow]) -> None:
        table = build_trend_table(steady_rows, as_of=AS_OF)
        total = table.row("Total Activities")

        for n in TREND_WINDOWS[:-1]:
            assert total.window(n).trend is TrendIndicator.EQUAL
        assert total.window(180).trend is None

    def test_rows_are_activity_types_then_total(self, steady_rows: list[UsageRow]) -> None:
        table = build_trend_table(steady_rows, as_of=AS_OF)

        assert [row.label for row in table.rows] == list(ACTIVITY_TYPE_COLUMNS) + ["Total Activities"]
        assert table.row("Messages Sent").window(30).actual == 210
        assert table.row("Prebookings").window(30).actual == 0
        assert table.window_days == list(TREND_WINDOWS)

    def test_recent_spike_is_higher(self) -> None:
        rows = [_row(AS_OF - timedelta(days=i), total=10) for i in range(7)]

        total = build_trend_table(rows, as_of=AS_OF).row("Total Activities")

        assert total.window(7).trend is TrendIndicator.HIGHER
        assert total.window(14).average == pytest.approx(5.0)

    def test_recent_lull_is_lower(self) -> None:
        rows = [_row(AS_OF - timedelta(days=i), total=10) for i in range(7, 14)]

        total = build_trend_table(rows, as_of=AS_OF).row("Total Activities")

        assert total.window(7).actual == 0
        assert total.window(7).trend is TrendIndicator.LOWER

    def test_future_and_stale_rows_are_ignored(self) -> None:
        rows = [
            _row(AS_OF + timedelta(days=1), total=100),
            _row(AS_OF - timedelta(days=180), total=100),
            _row(AS_OF, total=3),
        ]

        total = build_trend_table(rows, as_of=AS_OF).row("Total Activities")

        assert total.window(180).actual == 3

    def test_company_filter_and_error_rows(self) -> None:
        rows = [
            _row(AS_OF, company="Acme", total=3),
            _row(AS_OF, company="Globex", total=50),
            _row(AS_OF, company="Acme", total=40, errors=("Row 4, Column 'Role': Invalid role (value: 'x')",)),
        ]

        table = build_trend_table(rows, company="Acme", as_of=AS_OF)

        assert table.company == "Acme"
        assert table.row("Total Activities").window(7).actual == 3

    def test_datetime_anchor(self) -> None:
        table = build_trend_table([_row(AS_OF)], as_of=datetime(2024, 6, 30, 23, 59))

        assert table.as_of == AS_OF
        assert table.row("Total Activities").window(7).actual == 7

    def test_empty_input_yields_zero_windows(self) -> None:
        table = build_trend_table([], as_of=AS_OF)

        figures = table.row("Total Activities").window(90)
        assert figures.actual == 0
        assert figures.average == 0
        assert figures.trend is TrendIndicator.EQUAL

    def test_missing_window_or_label_raises_key_error(self) -> None:
        table = build_trend_table([], as_of=AS_OF)

        with pytest.raises(KeyError):
            table.row("Logins")
        with pytest.raises(KeyError):
            table.row("Total Activities").window(60)


class TestEntitySummaryTable:
    def test_companies_sorted_then_all_entities(self) -> None:
        rows = [
            _row(AS_OF, company="Globex", total=4),
            _row(AS_OF, company="Acme", total=2),
            _row(AS_OF - timedelta(days=400), company="Initech", total=9),
        ]

        table = build_entity_summary_table(rows, as_of=AS_OF)

        assert [row.label for row in table.rows] == ["Acme", "Globex", "Initech", ALL_ENTITIES_LABEL]
        assert table.row("Initech").window(180).actual == 0
        assert table.row(ALL_ENTITIES_LABEL).window(7).actual == 6
        assert table.measure == "Total Activities"
        assert table.company is None

    def test_companies_sort_case_insensitively(self) -> None:
        rows = [_row(AS_OF, company="Globex"), _row(AS_OF, company="acme"), _row(AS_OF, company="Initech")]

        table = build_entity_summary_table(rows, as_of=AS_OF)

        assert [row.label for row in table.rows] == ["acme", "Globex", "Initech", ALL_ENTITIES_LABEL]

    def test_rows_without_company_count_toward_no_row(self) -> None:
        rows = [_row(AS_OF, company="Acme", total=2), _row(AS_OF, company="", total=40)]

        table = build_entity_summary_table(rows, as_of=AS_OF)

        assert [row.label for row in table.rows] == ["Acme", ALL_ENTITIES_LABEL]
        assert table.row(ALL_ENTITIES_LABEL).window(7).actual == 2
        shown = sum(row.window(180).actual for row in table.rows[:-1])
        assert table.row(ALL_ENTITIES_LABEL).window(180).actual == shown

    def test_other_measure(self) -> None:
        rows = [_row(AS_OF, Doc_Uploads=5), _row(AS_OF, company="Globex", Doc_Uploads=1)]

        table = build_entity_summary_table(rows, "Doc Uploads", as_of=AS_OF)

        assert table.row(ALL_ENTITIES_LABEL).window(14).actual == 6

    def test_companies_with_only_error_rows_are_left_out(self) -> None:
        rows = [_row(AS_OF), _row(AS_OF, company="Globex", errors=("bad",))]

        table = build_entity_summary_table(rows, as_of=AS_OF)

        assert [row.label for row in table.rows] == ["Acme", ALL_ENTITIES_LABEL]

    def test_unknown_measure_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_entity_summary_table([], "Logins", as_of=AS_OF)

    def test_serializes_with_model_dump(self) -> None:
        table = build_entity_summary_table([_row(AS_OF)], as_of=AS_OF)

        payload = table.model_dump(mode="json")

        assert payload["as_of"] == "2024-06-30"
        assert payload["rows"][0]["windows"][0] == {
            "window_days": 7,
            "actual": 7.0,
            "average": 1.0,
            "trend": "higher",
        }


class TestAnchor:
    def test_now_mode_ignores_data(self) -> None:
        assert resolve_as_of([_row(date(2020, 1, 1))], mode="now", today=AS_OF) == AS_OF

    def test_latest_data_mode(self) -> None:
        rows = [
            _row(date(2024, 3, 1)),
            _row(date(2024, 5, 9)),
            _row(date(2024, 6, 1), errors=("bad",)),
        ]

        assert resolve_as_of(rows, mode="latest_data", today=AS_OF) == date(2024, 5, 9)

    def test_latest_data_mode_without_rows_falls_back_to_today(self) -> None:
        assert resolve_as_of([], mode="latest_data", today=AS_OF) == AS_OF


def test_window_bounds_are_inclusive() -> None:
    assert window_bounds(AS_OF, 7) == (date(2024, 6, 24), AS_OF)


def test_compare_averages_is_exact() -> None:
    assert compare_averages(1.0000001, 1.0) is TrendIndicator.HIGHER
    assert compare_averages(0.9999999, 1.0) is TrendIndicator.LOWER
    assert compare_averages(2.0, 2.0) is TrendIndicator.EQUAL
