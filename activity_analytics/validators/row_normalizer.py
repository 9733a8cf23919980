"""
activity_analytics/validators/row_normalizer.py

Row-level cleaning, normalization and validation for usage CSV rows.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from activity_analytics.domain.usage_row import (
    COLUMN_COMPANY,
    COLUMN_DATE,
    COLUMN_LAST_LOGIN,
    COLUMN_ROLE,
    COLUMN_USER_EMAIL,
    IDENTITY_COLUMNS,
    MEASURE_COLUMNS,
    VALID_ROLES,
    UsageRow,
)

INVISIBLE_CHARACTERS = re.compile(r"[\u200B-\u200D\uFEFF]")

DDMMYYYY_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$", re.ASCII)
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$", re.ASCII)
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

DATE_CONVERTED_WARNING = "Date auto-converted to DD/MM/YYYY"


def clean_string(value: Any) -> Any:
    """
    Remove zero-width characters and surrounding whitespace from strings.

    Non-string values are returned unchanged.
    """

    if not isinstance(value, str):
        return value
    return INVISIBLE_CHARACTERS.sub("", value).strip()


def is_valid_date_shape(value: Any) -> bool:
    """
    True for ``DD/MM/YYYY`` or ``YYYY-MM-DD``; the calendar is not checked.
    """

    if not isinstance(value, str):
        return False
    return bool(DDMMYYYY_PATTERN.match(value) or ISO_DATE_PATTERN.match(value))


def to_ddmmyyyy(value: str) -> str:
    """
    Convert ``YYYY-MM-DD`` to ``DD/MM/YYYY``; other input is returned as is.
    """

    iso_match = ISO_DATE_PATTERN.match(value)
    if iso_match:
        yyyy, mm, dd = iso_match.groups()
        return f"{dd}/{mm}/{yyyy}"
    return value


def spreadsheet_row_number(row_index: int) -> int:
    """
    Map a 0-based data row index to its spreadsheet line (header is line 1).
    """

    return row_index + 2


class RowNormalizer:
    """
    Cleans one raw CSV record and classifies its validity.

    The input mapping is never modified; a new :class:`UsageRow` is built.
    """

    def normalize(self, raw_row: Mapping[str, Any], row_index: int) -> UsageRow:
        """
        Normalize *raw_row* (the ``row_index``-th data row, 0-based).
        """

        row_number = spreadsheet_row_number(row_index)
        errors: list[str] = []
        warnings: list[str] = []

        cleaned: dict[str, Any] = {}
        for key, value in raw_row.items():
            if key is None:
                continue
            new_value = clean_string(value)
            if isinstance(value, str) and new_value != value:
                warnings.append(f"{key} auto-corrected by trimming")
            cleaned[key] = new_value

        date = self._normalize_date(
            value=cleaned.get(COLUMN_DATE),
            row_number=row_number,
            errors=errors,
            warnings=warnings,
        )
        role = cleaned.get(COLUMN_ROLE)
        if role not in VALID_ROLES:
            errors.append(
                f"Row {row_number}, Column '{COLUMN_ROLE}': Invalid role "
                f"(value: '{self._stringify_value(role)}')"
            )

        measures = {
            column: self._parse_measure(
                value=cleaned.get(column),
                column=column,
                row_number=row_number,
                errors=errors,
            )
            for column in MEASURE_COLUMNS
        }

        known_columns = set(IDENTITY_COLUMNS) | set(MEASURE_COLUMNS)
        extras = {key: value for key, value in cleaned.items() if key not in known_columns}

        return UsageRow(
            row_number=row_number,
            date=date,
            user_email=cleaned.get(COLUMN_USER_EMAIL),
            company=cleaned.get(COLUMN_COMPANY),
            role=role,
            last_login=cleaned.get(COLUMN_LAST_LOGIN),
            measures=measures,
            extras=extras,
            row_errors=tuple(errors),
            row_warnings=tuple(warnings),
        )

    def _normalize_date(
        self,
        *,
        value: Any,
        row_number: int,
        errors: list[str],
        warnings: list[str],
    ) -> Any:
        if not is_valid_date_shape(value):
            errors.append(
                f"Row {row_number}, Column '{COLUMN_DATE}': Invalid date format "
                f"(value: '{self._stringify_value(value)}')"
            )
            return value

        canonical = to_ddmmyyyy(value)
        if canonical != value:
            warnings.append(DATE_CONVERTED_WARNING)
        return canonical

    def _parse_measure(
        self,
        *,
        value: Any,
        column: str,
        row_number: int,
        errors: list[str],
    ) -> Any:
        if value is None or value == "":
            return 0

        number = self._to_number(value)
        if number is None:
            errors.append(
                f"Row {row_number}, Column '{column}': Non-numeric value "
                f"(value: '{self._stringify_value(value)}')"
            )
            return value
        if number < 0:
            errors.append(
                f"Row {row_number}, Column '{column}': Negative value "
                f"(value: '{self._stringify_value(value)}')"
            )
            return value
        return number

    @staticmethod
    def _to_number(value: Any) -> int | float | None:
        """
        Parse a finite number, or return None.
        """

        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            number = value
        else:
            raw_value = str(value).strip()
            if not NUMBER_PATTERN.fullmatch(raw_value):
                return None
            try:
                number = int(raw_value) if raw_value.lstrip("+-").isdigit() else float(raw_value)
            except ValueError:
                return None

        # Must convert to a finite float.
        try:
            as_float = float(number)
        except OverflowError:
            return None
        if not math.isfinite(as_float):
            return None
        return number

    @staticmethod
    def _stringify_value(value: Any) -> str:
        if value is None:
            return ""
        return str(value)
