"""
activity_analytics/domain package marker.
"""

from activity_analytics.domain.usage_row import (
    ACTIVITY_TYPE_COLUMNS,
    MEASURE_COLUMNS,
    REQUIRED_COLUMNS,
    RowSummary,
    UsageRow,
    ValidationResult,
)

__all__ = [
    "ACTIVITY_TYPE_COLUMNS",
    "MEASURE_COLUMNS",
    "REQUIRED_COLUMNS",
    "RowSummary",
    "UsageRow",
    "ValidationResult",
]
