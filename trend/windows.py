"""
trend/windows.py

Trailing-window Avg/Actual tables with a next-wider-window trend indicator.

For each window N in (7, 14, 30, 90, 180):

    window        = [as_of - (N - 1) days, as_of], both ends inclusive
    Actual(N)     = sum of the measure over rows dated inside the window
    Avg(N)        = Actual(N) / N          (calendar days, not active days)
    trend(N)      = Avg(N) vs Avg(next wider window), exact comparison

The widest window has no trend. No tolerance band is applied; the
threshold-based momentum tag lives in ``trend/classifier.py``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from activity_analytics.config import AS_OF_LATEST_DATA, get_trend_settings
from activity_analytics.domain.usage_row import (
    ACTIVITY_TYPE_COLUMNS,
    COLUMN_TOTAL_ACTIVITIES,
    MEASURE_COLUMNS,
    UsageRow,
)
from activity_analytics.services.filter_engine import parse_row_date
from trend.schema import TrendIndicator, TrendTable, TrendTableRow, WindowFigures

logger = logging.getLogger(__name__)

TREND_WINDOWS: tuple[int, ...] = (7, 14, 30, 90, 180)
ALL_ENTITIES_LABEL = "All entities"


def resolve_as_of(
    rows: Iterable[UsageRow],
    mode: str | None = None,
    today: date | None = None,
) -> date:
    """
    Anchor date for the trailing windows.

    ``"now"`` (default) anchors at today's date whatever the data covers, so
    stale exports can yield all-zero windows. ``"latest_data"`` anchors at
    the latest error-free row date, falling back to today for empty input.
    """

    mode = mode or get_trend_settings().as_of_mode
    today = today or date.today()
    if mode != AS_OF_LATEST_DATA:
        return today
    days = [parse_row_date(row.date) for row in rows if not row.row_errors]
    days = [day for day in days if day is not None]
    return max(days) if days else today


def window_bounds(as_of: date, window_days: int) -> tuple[date, date]:
    return as_of - timedelta(days=window_days - 1), as_of


def compare_averages(average: float, wider_average: float) -> TrendIndicator:
    if average > wider_average:
        return TrendIndicator.HIGHER
    if average < wider_average:
        return TrendIndicator.LOWER
    return TrendIndicator.EQUAL


def _window_figures(actuals: dict[int, float], windows: Sequence[int]) -> list[WindowFigures]:
    averages = {n: actuals.get(n, 0) / n for n in windows}
    figures: list[WindowFigures] = []
    for index, n in enumerate(windows):
        trend = None
        if index + 1 < len(windows):
            trend = compare_averages(averages[n], averages[windows[index + 1]])
        figures.append(
            WindowFigures(
                window_days=n,
                actual=actuals.get(n, 0),
                average=averages[n],
                trend=trend,
            )
        )
    return figures


def _dated_valid_rows(rows: Iterable[UsageRow], as_of: date) -> list[tuple[int, UsageRow]]:
    """
    Pair each error-free row with its age in days relative to *as_of*.

    Rows dated after *as_of* or older than the widest window are dropped.
    """
    widest = max(TREND_WINDOWS)
    dated: list[tuple[int, UsageRow]] = []
    for row in rows:
        if row.row_errors:
            continue
        day = parse_row_date(row.date)
        if day is None:
            continue
        age = (as_of - day).days
        if 0 <= age < widest:
            dated.append((age, row))
    return dated


def _add_to_windows(actuals: dict[int, float], age: int, value: float) -> None:
    for n in TREND_WINDOWS:
        if age < n:
            actuals[n] += value


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def build_trend_table(
    rows: Iterable[UsageRow],
    company: str | None = None,
    as_of: date | datetime | None = None,
) -> TrendTable:
    """
    Per-activity-type Avg/Actual table for one company, or all rows in scope.

    One row per activity type in export order, then a ``Total Activities``
    row taken from the export's own total column.
    """
    rows = list(rows)
    as_of = _as_date(as_of) if as_of is not None else resolve_as_of(rows)

    scoped = [row for row in rows if company is None or row.company == company]
    labels = list(ACTIVITY_TYPE_COLUMNS) + [COLUMN_TOTAL_ACTIVITIES]
    actuals: dict[str, dict[int, float]] = {label: defaultdict(float) for label in labels}
    for age, row in _dated_valid_rows(scoped, as_of):
        for label in labels:
            _add_to_windows(actuals[label], age, row.measure(label))

    table = TrendTable(
        company=company,
        as_of=as_of,
        window_days=list(TREND_WINDOWS),
        rows=[
            TrendTableRow(label=label, windows=_window_figures(actuals[label], TREND_WINDOWS))
            for label in labels
        ],
    )
    logger.info("Trend table built company=%r as_of=%s", company, as_of)
    return table


def build_entity_summary_table(
    rows: Iterable[UsageRow],
    measure_column: str = COLUMN_TOTAL_ACTIVITIES,
    as_of: date | datetime | None = None,
    total_label: str = ALL_ENTITIES_LABEL,
) -> TrendTable:
    """
    One row per company (alphabetical) plus a row aggregating all of them.

    Companies appear as soon as they have any error-free row in *rows*,
    even when every window sums to zero. Rows without a company count
    toward no row, so the total always equals the sum of the rows shown.
    """
    if measure_column not in MEASURE_COLUMNS:
        raise ValueError(f"Unknown measure column: {measure_column!r}")

    rows = list(rows)
    as_of = _as_date(as_of) if as_of is not None else resolve_as_of(rows)

    companies = sorted(
        {row.company for row in rows if not row.row_errors and row.company},
        key=str.casefold,
    )
    per_company: dict[str, dict[int, float]] = {name: defaultdict(float) for name in companies}
    combined: dict[int, float] = defaultdict(float)
    for age, row in _dated_valid_rows(rows, as_of):
        if row.company not in per_company:
            continue
        value = row.measure(measure_column)
        _add_to_windows(per_company[row.company], age, value)
        _add_to_windows(combined, age, value)

    table_rows = [
        TrendTableRow(label=name, windows=_window_figures(per_company[name], TREND_WINDOWS))
        for name in companies
    ]
    table_rows.append(TrendTableRow(label=total_label, windows=_window_figures(combined, TREND_WINDOWS)))

    logger.info(
        "Entity summary table built measure=%r entities=%d as_of=%s",
        measure_column,
        len(companies),
        as_of,
    )
    return TrendTable(
        company=None,
        measure=measure_column,
        as_of=as_of,
        window_days=list(TREND_WINDOWS),
        rows=table_rows,
    )
