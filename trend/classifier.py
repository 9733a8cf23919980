"""
trend/classifier.py

Threshold-based momentum tag: current period vs the period just before it.
No table building, no I/O, no side effects.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable

from activity_analytics.config import get_trend_settings
from activity_analytics.domain.usage_row import MEASURE_COLUMNS, UsageRow
from activity_analytics.services.filter_engine import parse_row_date
from trend.schema import MomentumResult, MomentumTag

logger = logging.getLogger(__name__)


class MomentumClassifier:
    """
    Maps two period averages to an up/down/flat tag.

        prior == 0 and current > 0        |  up
        change > +threshold %             |  up
        change < -threshold %             |  down
        otherwise                         |  flat

    The threshold defaults to ``TrendSettings.momentum_threshold_pct`` (10 %).
    """

    def __init__(self, threshold_pct: float | None = None) -> None:
        if threshold_pct is None:
            threshold_pct = get_trend_settings().momentum_threshold_pct
        self.threshold_pct = threshold_pct

    @staticmethod
    def percent_change(current_average: float, prior_average: float) -> float | None:
        if prior_average == 0:
            return None
        return (current_average - prior_average) / prior_average * 100

    def classify(self, current_average: float, prior_average: float) -> MomentumTag:
        if prior_average == 0:
            return MomentumTag.UP if current_average > 0 else MomentumTag.FLAT

        change = self.percent_change(current_average, prior_average)
        if change > self.threshold_pct:
            return MomentumTag.UP
        if change < -self.threshold_pct:
            return MomentumTag.DOWN
        return MomentumTag.FLAT


def period_average(
    rows: Iterable[UsageRow],
    activity_column: str,
    start: date,
    end: date,
) -> float:
    """
    Sum of *activity_column* over [start, end] divided by the number of
    distinct days that have data (at least 1).
    """
    total = 0.0
    active_days: set[date] = set()
    for row in rows:
        if row.row_errors:
            continue
        day = parse_row_date(row.date)
        if day is None or day < start or day > end:
            continue
        total += row.measure(activity_column)
        active_days.add(day)
    return total / (len(active_days) or 1)


def compute_momentum(
    rows: Iterable[UsageRow],
    activity_column: str,
    period_days: int,
    end_date: date,
    classifier: MomentumClassifier | None = None,
) -> MomentumResult:
    """
    Compare the *period_days* ending at *end_date* with the equal-length,
    non-overlapping period immediately before it.

    Raises:
        ValueError: Unknown activity column or a non-positive period.
    """
    if activity_column not in MEASURE_COLUMNS:
        raise ValueError(f"Unknown measure column: {activity_column!r}")
    if period_days <= 0:
        raise ValueError("period_days must be positive.")

    rows = list(rows)
    classifier = classifier or MomentumClassifier()

    current_start = end_date - timedelta(days=period_days - 1)
    prior_end = current_start - timedelta(days=1)
    prior_start = prior_end - timedelta(days=period_days - 1)

    current = period_average(rows, activity_column, current_start, end_date)
    prior = period_average(rows, activity_column, prior_start, prior_end)
    change = classifier.percent_change(current, prior)
    tag = classifier.classify(current, prior)

    logger.debug(
        "Momentum column=%r period=%d end=%s current=%.4f prior=%.4f tag=%s",
        activity_column,
        period_days,
        end_date,
        current,
        prior,
        tag.value,
    )
    return MomentumResult(
        activity_column=activity_column,
        period_days=period_days,
        end_date=end_date,
        current_average=current,
        prior_average=prior,
        change_pct=None if change is None else round(change, 2),
        tag=tag,
    )
