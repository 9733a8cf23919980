"""
activity_analytics/services package marker.
"""

from activity_analytics.services.csv_validation_service import (
    CSVValidationService,
    get_csv_validation_service,
    split_diagnostics,
    summarize_rows,
)
from activity_analytics.services.filter_engine import (
    DateRange,
    EntityFilter,
    EntityFilterMode,
    filter_rows,
)
from activity_analytics.services.timeline_aggregator import (
    Timeline,
    aggregate_by_activity_type,
    aggregate_by_company,
)

__all__ = [
    "CSVValidationService",
    "get_csv_validation_service",
    "split_diagnostics",
    "summarize_rows",
    "DateRange",
    "EntityFilter",
    "EntityFilterMode",
    "filter_rows",
    "Timeline",
    "aggregate_by_activity_type",
    "aggregate_by_company",
]
