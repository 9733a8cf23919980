"""Structured output contracts for trend tables and momentum tags."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TrendIndicator(str, Enum):
    """Window average compared with the next wider window's average."""

    HIGHER = "higher"
    LOWER = "lower"
    EQUAL = "equal"


class MomentumTag(str, Enum):
    """Current period average against the immediately preceding period."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class WindowFigures(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    window_days: int = Field(gt=0)
    actual: float = Field(ge=0.0)
    average: float = Field(ge=0.0)
    trend: TrendIndicator | None = None


class TrendTableRow(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    windows: list[WindowFigures]

    def window(self, window_days: int) -> WindowFigures:
        for figures in self.windows:
            if figures.window_days == window_days:
                return figures
        raise KeyError(window_days)


class TrendTable(BaseModel):
    """
    Avg/Actual per trailing window for each row label.

    ``company`` is None when the table covers every entity in scope.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    company: str | None = None
    measure: str | None = None
    as_of: date
    window_days: list[int]
    rows: list[TrendTableRow]

    def row(self, label: str) -> TrendTableRow:
        for table_row in self.rows:
            if table_row.label == label:
                return table_row
        raise KeyError(label)


class MomentumResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    activity_column: str
    period_days: int = Field(gt=0)
    end_date: date
    current_average: float
    prior_average: float
    change_pct: float | None = None
    tag: MomentumTag
