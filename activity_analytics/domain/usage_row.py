"""
activity_analytics/domain/usage_row.py

Domain models for the platform usage export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

COLUMN_DATE: Final[str] = "Date"
COLUMN_USER_EMAIL: Final[str] = "User Email"
COLUMN_COMPANY: Final[str] = "Company"
COLUMN_ROLE: Final[str] = "Role"
COLUMN_LAST_LOGIN: Final[str] = "Last Login"
COLUMN_TOTAL_ACTIVITIES: Final[str] = "Total Activities"

ROLE_BRAND: Final[str] = "Brand"
ROLE_SUPPLIER: Final[str] = "Supplier"
VALID_ROLES: frozenset[str] = frozenset({ROLE_BRAND, ROLE_SUPPLIER})

IDENTITY_COLUMNS: tuple[str, ...] = (
    COLUMN_DATE,
    COLUMN_USER_EMAIL,
    COLUMN_COMPANY,
    COLUMN_ROLE,
    COLUMN_LAST_LOGIN,
)

MEASURE_COLUMNS: tuple[str, ...] = (
    COLUMN_TOTAL_ACTIVITIES,
    "Frank AI Searches",
    "Project Creations",
    "Messages Sent",
    "Material Saves",
    "Doc Uploads",
    "Project Shares",
    "Frank AI Messages",
    "Sample Requests",
    "Prebookings",
)
"""The ten numeric activity-count columns, in export order."""

ACTIVITY_TYPE_COLUMNS: tuple[str, ...] = tuple(
    column for column in MEASURE_COLUMNS if column != COLUMN_TOTAL_ACTIVITIES
)
"""Per-feature activity columns; ``Total Activities`` is their export-side aggregate."""

REQUIRED_COLUMNS: tuple[str, ...] = IDENTITY_COLUMNS + MEASURE_COLUMNS

ROW_ERRORS_KEY: Final[str] = "Row Errors"
ROW_WARNINGS_KEY: Final[str] = "Row Warnings"


@dataclass(frozen=True)
class UsageRow:
    """
    One normalized CSV row with its validation annotations.

    ``measures`` holds a number for every measure column that parsed, and
    the cleaned raw text for any that did not (such rows carry an error).
    ``extras`` keeps columns outside the required schema untouched.
    """

    row_number: int
    date: str | None
    user_email: str | None
    company: str | None
    role: str | None
    last_login: str | None
    measures: dict[str, Any] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)
    row_errors: tuple[str, ...] = ()
    row_warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.row_errors

    def measure(self, column: str) -> float:
        """
        Return the numeric value of *column*, or 0 when absent or unparsed.
        """

        if column not in MEASURE_COLUMNS:
            raise ValueError(f"Unknown measure column: {column!r}")
        value = self.measures.get(column, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        return value

    def get(self, column: str, default: Any = None) -> Any:
        """
        Look up a value by its CSV column name.
        """

        identity = {
            COLUMN_DATE: self.date,
            COLUMN_USER_EMAIL: self.user_email,
            COLUMN_COMPANY: self.company,
            COLUMN_ROLE: self.role,
            COLUMN_LAST_LOGIN: self.last_login,
        }
        if column in identity:
            value = identity[column]
        elif column in MEASURE_COLUMNS:
            value = self.measures.get(column)
        else:
            value = self.extras.get(column)
        return default if value is None else value

    def to_record(self) -> dict[str, Any]:
        """
        Flatten back to a column-keyed mapping (schema columns, then extras).

        Columns that were absent from the source file are left out so that a
        record fed back through the normalizer reads exactly as before.
        """

        record: dict[str, Any] = {}
        for column in IDENTITY_COLUMNS:
            value = self.get(column)
            if value is not None:
                record[column] = value
        for column in MEASURE_COLUMNS:
            record[column] = self.measures.get(column, 0)
        record.update(self.extras)
        return record

    def to_preview_record(self) -> dict[str, Any]:
        """
        Record for grid display, with the annotations joined into two columns.
        """

        record = {column: self.get(column) for column in REQUIRED_COLUMNS}
        record.update(self.extras)
        record[ROW_ERRORS_KEY] = "; ".join(self.row_errors)
        record[ROW_WARNINGS_KEY] = "; ".join(self.row_warnings)
        return record


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one uploaded file.

    ``diagnostics`` is flat and ordered: missing-column messages, then for
    each row its errors followed by at most one ``(warning)`` line.
    """

    rows: tuple[UsageRow, ...] = ()
    diagnostics: tuple[str, ...] = ()
    missing_columns: tuple[str, ...] = ()
    parse_failed: bool = False


@dataclass(frozen=True)
class RowSummary:
    """
    Success/failure counts over a row set.
    """

    successful_rows: int
    unsuccessful_rows: int
    total_errors: int
    total_warnings: int
