"""
activity_analytics/services/filter_engine.py

Date-range and entity selection over validated usage rows.

Filtering is pure: rows are never modified and rows carrying errors are
kept, so previews can still show them. Aggregators drop error rows later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterable

from activity_analytics.domain.usage_row import ROLE_BRAND, ROLE_SUPPLIER, UsageRow
from activity_analytics.validators.row_normalizer import DDMMYYYY_PATTERN, ISO_DATE_PATTERN

logger = logging.getLogger(__name__)


class EntityFilterMode(str, Enum):
    ALL = "all"
    BRANDS = "brands"
    SUPPLIERS = "suppliers"
    SPECIFIC = "specific"


@dataclass(frozen=True)
class EntityFilter:
    """
    Which companies are in scope.

    ``companies`` is only consulted in ``SPECIFIC`` mode; an empty set then
    selects nothing.
    """

    mode: EntityFilterMode = EntityFilterMode.ALL
    companies: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", EntityFilterMode(self.mode))
        object.__setattr__(self, "companies", frozenset(self.companies))

    @classmethod
    def all_entities(cls) -> "EntityFilter":
        return cls(EntityFilterMode.ALL)

    @classmethod
    def brands_only(cls) -> "EntityFilter":
        return cls(EntityFilterMode.BRANDS)

    @classmethod
    def suppliers_only(cls) -> "EntityFilter":
        return cls(EntityFilterMode.SUPPLIERS)

    @classmethod
    def specific(cls, companies: Iterable[str]) -> "EntityFilter":
        return cls(EntityFilterMode.SPECIFIC, frozenset(companies))

    def matches(self, row: UsageRow) -> bool:
        if self.mode is EntityFilterMode.BRANDS:
            return row.role == ROLE_BRAND
        if self.mode is EntityFilterMode.SUPPLIERS:
            return row.role == ROLE_SUPPLIER
        if self.mode is EntityFilterMode.SPECIFIC:
            return row.company in self.companies
        return True


@dataclass(frozen=True)
class DateRange:
    """
    Closed calendar interval; a missing bound leaves that side open.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_date(self.start))
        object.__setattr__(self, "end", _as_date(self.end))

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


def _as_date(value: date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_row_date(value: Any) -> date | None:
    """
    Parse a ``DD/MM/YYYY`` or ``YYYY-MM-DD`` string to a calendar date.

    Returns None for any other shape and for impossible dates such as
    ``31/02/2024``.
    """

    if not isinstance(value, str):
        return None
    if DDMMYYYY_PATTERN.match(value):
        fmt = "%d/%m/%Y"
    elif ISO_DATE_PATTERN.match(value):
        fmt = "%Y-%m-%d"
    else:
        return None
    try:
        return datetime.strptime(value, fmt).date()
    except ValueError:
        return None


def filter_rows(
    rows: Iterable[UsageRow],
    date_range: DateRange | None = None,
    entity_filter: EntityFilter | None = None,
) -> list[UsageRow]:
    """
    Return rows inside *date_range* that satisfy *entity_filter*.

    With no bound set at all the date test is skipped, so rows whose Date
    failed validation remain visible. Once a bound is set, a Date that does
    not parse excludes the row.
    """

    date_range = date_range or DateRange()
    entity_filter = entity_filter or EntityFilter.all_entities()

    selected: list[UsageRow] = []
    for row in rows:
        if not date_range.is_unbounded:
            day = parse_row_date(row.date)
            if day is None or not date_range.contains(day):
                continue
        if not entity_filter.matches(row):
            continue
        selected.append(row)

    logger.debug(
        "Filtered rows kept=%d start=%s end=%s mode=%s",
        len(selected),
        date_range.start,
        date_range.end,
        entity_filter.mode.value,
    )
    return selected


def data_date_span(rows: Iterable[UsageRow]) -> DateRange | None:
    """
    Earliest and latest parseable Date across *rows*, or None if there is none.
    """

    days = [day for day in (parse_row_date(row.date) for row in rows) if day is not None]
    if not days:
        return None
    return DateRange(start=min(days), end=max(days))


def list_companies(rows: Iterable[UsageRow]) -> list[str]:
    """
    Sorted distinct company names, for building a company picker.
    """

    return sorted({row.company for row in rows if row.company}, key=str.casefold)


# ---------------------------------------------------------------------------
# Date presets
# ---------------------------------------------------------------------------


def _clamp(day: date, low: date, high: date) -> date:
    if day < low:
        return low
    if day > high:
        return high
    return day


def _start_of_month(day: date) -> date:
    return day.replace(day=1)


def date_presets(span: DateRange) -> dict[str, DateRange]:
    """
    Named quick-pick ranges anchored at the latest date of *span*.

    Every bound is clamped into the span, so a preset never reaches past
    the loaded data.
    """

    if span.start is None or span.end is None:
        raise ValueError("date_presets requires a span with both bounds set.")

    low, high = span.start, span.end

    def trailing(days: int) -> DateRange:
        return DateRange(_clamp(high - timedelta(days=days - 1), low, high), high)

    last_month_end = _start_of_month(high) - timedelta(days=1)
    return {
        "Last 7 days": trailing(7),
        "Last 14 days": trailing(14),
        "Last 30 days": trailing(30),
        "This Month": DateRange(_clamp(_start_of_month(high), low, high), high),
        "Last Month": DateRange(
            _clamp(_start_of_month(last_month_end), low, high),
            _clamp(last_month_end, low, high),
        ),
        "Year to Date": DateRange(_clamp(date(high.year, 1, 1), low, high), high),
        "All Time": DateRange(low, high),
    }
