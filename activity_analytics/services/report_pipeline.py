"""
activity_analytics/services/report_pipeline.py

Report pipeline: validated rows x selection -> filtered rows -> aggregates.

Holds no state between calls; the UI shell calls :func:`build_report`
again whenever the uploaded rows or the selection change. Every layer
keeps its own responsibility:

    filter_engine        - date range and entity predicates
    timeline_aggregator  - date-ordered chart matrices
    trend.windows        - trailing-window Avg/Actual tables
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from activity_analytics.domain.usage_row import COLUMN_TOTAL_ACTIVITIES, RowSummary, UsageRow
from activity_analytics.services.csv_validation_service import summarize_rows
from activity_analytics.services.filter_engine import DateRange, EntityFilter, filter_rows
from activity_analytics.services.report_labels import describe_entity_filter
from activity_analytics.services.timeline_aggregator import (
    Timeline,
    aggregate_by_activity_type,
    aggregate_by_company,
)
from trend.schema import TrendTable
from trend.windows import build_entity_summary_table, build_trend_table, resolve_as_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterSelection:
    """
    Analyst's current choice of entities and dates.
    """

    entity_filter: EntityFilter = field(default_factory=EntityFilter.all_entities)
    date_range: DateRange = field(default_factory=DateRange)


@dataclass(frozen=True)
class ReportSnapshot:
    """
    Everything the presentation layer needs for one selection.

    ``activity_timeline`` and ``company_trend_table`` are only populated when
    exactly one company has error-free rows in scope.
    """

    filter_description: str
    rows: tuple[UsageRow, ...]
    summary: RowSummary
    timeline: Timeline
    entity_summary_table: TrendTable
    activity_timeline: Timeline | None = None
    company_trend_table: TrendTable | None = None


def build_report(
    rows: Iterable[UsageRow],
    selection: FilterSelection | None = None,
    measure_column: str = COLUMN_TOTAL_ACTIVITIES,
    as_of: date | None = None,
) -> ReportSnapshot:
    """
    Recompute every aggregate for *selection* from scratch.

    Args:
        rows:           Validated rows from the CSV validation service.
        selection:      Entity and date selection; defaults to everything.
        measure_column: Measure plotted on the company timeline and summarised
                        in the entity table.
        as_of:          Anchor for trailing windows; resolved from settings
                        when omitted.
    """
    selection = selection or FilterSelection()
    filtered = filter_rows(rows, selection.date_range, selection.entity_filter)
    as_of = as_of or resolve_as_of(filtered)

    timeline = aggregate_by_company(filtered, measure_column)
    entity_summary = build_entity_summary_table(filtered, measure_column, as_of=as_of)

    activity_timeline = None
    company_table = None
    if len(timeline.group_keys) == 1:
        company = timeline.group_keys[0]
        activity_timeline = aggregate_by_activity_type(filtered, company=company)
        company_table = build_trend_table(filtered, company=company, as_of=as_of)

    logger.info(
        "Report built rows=%d companies=%d dates=%d measure=%r",
        len(filtered),
        len(timeline.group_keys),
        len(timeline.series),
        measure_column,
    )
    return ReportSnapshot(
        filter_description=describe_entity_filter(selection.entity_filter),
        rows=tuple(filtered),
        summary=summarize_rows(filtered),
        timeline=timeline,
        entity_summary_table=entity_summary,
        activity_timeline=activity_timeline,
        company_trend_table=company_table,
    )
