"""
activity_analytics/schemas package marker.
"""

from activity_analytics.schemas.csv_validation import CSVValidationSummaryResponse

__all__ = ["CSVValidationSummaryResponse"]
