"""
activity_analytics/schemas/csv_validation.py

Presentation schemas for CSV validation results.
"""

from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from activity_analytics.domain.usage_row import UsageRow, ValidationResult
from activity_analytics.services.csv_validation_service import split_diagnostics, summarize_rows


class CSVValidationSummaryResponse(BaseModel):
    """
    Counts and diagnostics for one upload, split by severity.

    Row counts cover ``rows`` when given (e.g. the filtered subset),
    otherwise every row in the result.
    """

    rows_total: int = Field(..., ge=0)
    successful_rows: int = Field(..., ge=0)
    unsuccessful_rows: int = Field(..., ge=0)
    total_errors: int = Field(..., ge=0)
    total_warnings: int = Field(..., ge=0)
    parse_failed: bool = False
    missing_columns: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(
        cls,
        result: ValidationResult,
        rows: Iterable[UsageRow] | None = None,
    ) -> "CSVValidationSummaryResponse":
        counted = list(result.rows if rows is None else rows)
        summary = summarize_rows(counted)
        errors, warnings = split_diagnostics(result.diagnostics)
        return cls(
            rows_total=len(counted),
            successful_rows=summary.successful_rows,
            unsuccessful_rows=summary.unsuccessful_rows,
            total_errors=summary.total_errors,
            total_warnings=summary.total_warnings,
            parse_failed=result.parse_failed,
            missing_columns=list(result.missing_columns),
            errors=errors,
            warnings=warnings,
        )
