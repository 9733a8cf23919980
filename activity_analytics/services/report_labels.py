"""
activity_analytics/services/report_labels.py

Human-readable labels and export file names for the current selection.
"""

from __future__ import annotations

import re
from datetime import datetime

from activity_analytics.services.filter_engine import EntityFilter, EntityFilterMode
from activity_analytics.services.timeline_aggregator import Timeline

ALL_SERIES_LABEL = "AllDataSeries"


def describe_entity_filter(entity_filter: EntityFilter) -> str:
    if entity_filter.mode is EntityFilterMode.BRANDS:
        return "All Brands"
    if entity_filter.mode is EntityFilterMode.SUPPLIERS:
        return "All Suppliers"
    if entity_filter.mode is EntityFilterMode.SPECIFIC and entity_filter.companies:
        if len(entity_filter.companies) == 1:
            return next(iter(entity_filter.companies))
        return f"{len(entity_filter.companies)} specific companies"
    return "All Brands and Suppliers"


def entity_filter_code(entity_filter: EntityFilter) -> str:
    """
    Short code used in export names: AB, AS, a company name, CUSTOM<n> or ALL.
    """
    if entity_filter.mode is EntityFilterMode.BRANDS:
        return "AB"
    if entity_filter.mode is EntityFilterMode.SUPPLIERS:
        return "AS"
    if entity_filter.mode is EntityFilterMode.SPECIFIC and entity_filter.companies:
        if len(entity_filter.companies) == 1:
            return next(iter(entity_filter.companies))
        return f"CUSTOM{len(entity_filter.companies)}"
    return "ALL"


def build_export_filename(
    *,
    entity_filter: EntityFilter,
    timeline: Timeline,
    series: str,
    show_running_total: bool = False,
    show_all_series: bool = False,
    now: datetime | None = None,
) -> str:
    """
    Name for a chart PNG export.

    Format: ``AT_<code>_<start>_<end>_<series>[_RT][_ALLSERIES]_<hhmmss>.png``
    where start/end are the first and last timeline dates without slashes,
    or ``NA`` for an empty timeline.
    """
    now = now or datetime.now()
    dates = timeline.dates
    start, end = (dates[0].replace("/", ""), dates[-1].replace("/", "")) if dates else ("NA", "NA")
    series_part = ALL_SERIES_LABEL if show_all_series else re.sub(r"\s+", "", series)
    running_total_part = "_RT" if show_running_total else ""
    all_series_part = "_ALLSERIES" if show_all_series else ""
    return (
        f"AT_{entity_filter_code(entity_filter)}_{start}_{end}_{series_part}"
        f"{running_total_part}{all_series_part}_{now.strftime('%H%M%S')}.png"
    )
