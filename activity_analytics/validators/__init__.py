"""
activity_analytics/validators package marker.
"""

from activity_analytics.validators.row_normalizer import RowNormalizer

__all__ = ["RowNormalizer"]
