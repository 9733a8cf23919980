"""
activity_analytics/services/timeline_aggregator.py

Date-ordered sums of one measure, grouped by company or by activity type,
in a shape any line-chart renderer can consume.

Every output entry carries every group key (0 where nothing was recorded)
so plotted series share one gap-free date axis. Dates are ordered by the
calendar, never by the ``DD/MM/YYYY`` string.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from activity_analytics.domain.usage_row import (
    COLUMN_TOTAL_ACTIVITIES,
    MEASURE_COLUMNS,
    UsageRow,
)

logger = logging.getLogger(__name__)

DATE_KEY = "Date"
RUNNING_TOTAL_KEY = "RunningTotal"


@dataclass(frozen=True)
class TimelinePoint:
    date: str
    values: dict[str, float]


@dataclass(frozen=True)
class Timeline:
    """
    Aggregated series: one point per distinct date, ascending.
    """

    series: tuple[TimelinePoint, ...]
    group_keys: tuple[str, ...]

    @property
    def dates(self) -> list[str]:
        return [point.date for point in self.series]

    def to_records(self) -> list[dict[str, Any]]:
        """
        Flatten to ``[{"Date": ..., <key>: value, ...}, ...]``.
        """
        return [{DATE_KEY: point.date, **point.values} for point in self.series]


def date_sort_key(value: str) -> tuple[int, ...]:
    """
    Calendar ordering key for a ``DD/MM/YYYY`` string.
    """
    day, month, year = (int(part) for part in value.split("/"))
    return (year, month, day)


def _check_measure(measure_column: str) -> None:
    if measure_column not in MEASURE_COLUMNS:
        raise ValueError(f"Unknown measure column: {measure_column!r}")


def _build_timeline(buckets: dict[str, dict[str, float]], group_keys: Sequence[str]) -> Timeline:
    series = tuple(
        TimelinePoint(
            date=day,
            values={key: buckets[day].get(key, 0) for key in group_keys},
        )
        for day in sorted(buckets, key=date_sort_key)
    )
    return Timeline(series=series, group_keys=tuple(group_keys))


def aggregate_by_company(
    rows: Iterable[UsageRow],
    measure_column: str = COLUMN_TOTAL_ACTIVITIES,
) -> Timeline:
    """
    Sum *measure_column* per (date, company), skipping rows with errors.

    Group keys are the companies in order of first appearance.
    """
    _check_measure(measure_column)

    buckets: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    companies: dict[str, None] = {}
    for row in rows:
        if row.row_errors:
            continue
        companies.setdefault(row.company, None)
        buckets[row.date][row.company] += row.measure(measure_column)

    timeline = _build_timeline(buckets, list(companies))
    logger.debug(
        "Timeline by company measure=%r dates=%d companies=%d",
        measure_column,
        len(timeline.series),
        len(timeline.group_keys),
    )
    return timeline


def aggregate_by_activity_type(
    rows: Iterable[UsageRow],
    activity_columns: Sequence[str] = MEASURE_COLUMNS,
    company: str | None = None,
) -> Timeline:
    """
    Sum each activity column per date for a single company.

    Args:
        rows:             Validated (usually filtered) rows.
        activity_columns: Measures to plot; one group key each.
        company:          Restrict to this company. When omitted the error-free
                          rows must already belong to exactly one company.

    Raises:
        ValueError: Unknown column, or more than one company in scope.
    """
    for column in activity_columns:
        _check_measure(column)

    valid_rows = [
        row for row in rows if not row.row_errors and (company is None or row.company == company)
    ]
    companies = {row.company for row in valid_rows}
    if len(companies) > 1:
        raise ValueError(
            "Activity-type timeline needs exactly one company in scope; "
            f"found {len(companies)}."
        )

    buckets: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for row in valid_rows:
        for column in activity_columns:
            buckets[row.date][column] += row.measure(column)

    return _build_timeline(buckets, list(activity_columns))


def running_total(timeline: Timeline, group_key: str | None = None) -> list[dict[str, Any]]:
    """
    Cumulative sum along the date axis.

    Sums every group key per date unless *group_key* selects one series.
    """
    keys = timeline.group_keys if group_key is None else (group_key,)
    total = 0
    records: list[dict[str, Any]] = []
    for point in timeline.series:
        total += sum(point.values.get(key, 0) for key in keys)
        records.append({DATE_KEY: point.date, RUNNING_TOTAL_KEY: total})
    return records
