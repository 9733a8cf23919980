"""
activity_analytics/services/csv_validation_service.py

Service layer for parsing and validating an uploaded usage CSV.

The whole file is read at once. Problems in the data never raise: they are
collected as diagnostic strings next to the annotated rows. Only a failure
to read or tokenize the file replaces the result with a single diagnostic.

Diagnostic ordering
-------------------
1. ``Missing required column: <name>`` for each absent schema column.
2. For every row in file order: its errors, then one
   ``Row <N> (warning): <w1>, <w2>`` line when the row has warnings.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from functools import lru_cache
from typing import IO, Callable, Iterable, Union

from activity_analytics.config import get_csv_validation_settings
from activity_analytics.domain.usage_row import REQUIRED_COLUMNS, RowSummary, UsageRow, ValidationResult
from activity_analytics.validators.row_normalizer import RowNormalizer

logger = logging.getLogger(__name__)

WARNING_MARKER = "(warning)"
EXTRA_FIELDS_KEY = "_extra_fields"
"""Key holding surplus cells of rows longer than the header."""

_WARNING_LINE = re.compile(r"^Row \d+ \(warning\): ")

CSVSource = Union[str, bytes, IO[str], IO[bytes]]
ValidationCallback = Callable[[list[UsageRow], list[str]], None]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVParseError(ValueError):
    """
    Raised internally when the file cannot be read or tokenized.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVValidationService:
    """
    Coordinates CSV parsing, column checks, and per-row normalization.
    """

    def __init__(
        self,
        *,
        encoding: str = "utf-8-sig",
        log_validation_errors: bool = True,
        normalizer: RowNormalizer | None = None,
    ) -> None:
        self._encoding = encoding
        self._log_validation_errors = log_validation_errors
        self._normalizer = normalizer or RowNormalizer()

    def validate(self, source: CSVSource) -> ValidationResult:
        """
        Parse *source* and validate every row.

        Args:
            source: CSV text, raw bytes, or an open text/binary file.

        Returns:
            A ValidationResult. On a parse failure ``rows`` is empty and
            ``diagnostics`` holds exactly the failure message.
        """
        try:
            headers, raw_rows = self._parse(source)
        except CSVParseError as exc:
            logger.error("CSV parse failed: %s", exc)
            return ValidationResult(diagnostics=(str(exc),), parse_failed=True)

        diagnostics: list[str] = []
        missing_columns = tuple(column for column in REQUIRED_COLUMNS if column not in headers)
        for column in missing_columns:
            diagnostics.append(f"Missing required column: {column}")

        rows: list[UsageRow] = []
        for row_index, raw_row in enumerate(raw_rows):
            row = self._normalizer.normalize(raw_row, row_index)
            rows.append(row)
            for error in row.row_errors:
                self._record_error(diagnostics, error)
            if row.row_warnings:
                diagnostics.append(
                    f"Row {row.row_number} {WARNING_MARKER}: {', '.join(row.row_warnings)}"
                )

        summary = summarize_rows(rows)
        logger.info(
            "CSV validated rows=%d successful=%d unsuccessful=%d missing_columns=%d warnings=%d",
            len(rows),
            summary.successful_rows,
            summary.unsuccessful_rows,
            len(missing_columns),
            summary.total_warnings,
        )
        return ValidationResult(
            rows=tuple(rows),
            diagnostics=tuple(diagnostics),
            missing_columns=missing_columns,
        )

    def validate_with_callback(self, source: CSVSource, on_complete: ValidationCallback) -> None:
        """
        Validate *source* and hand the outcome to *on_complete* exactly once.

        The callback receives ``(rows, diagnostics)``; after a parse failure
        that is an empty row list and the single failure diagnostic.
        """
        result = self.validate(source)
        on_complete(list(result.rows), list(result.diagnostics))

    # ------------------------------------------------------------------
    # Parsing internals
    # ------------------------------------------------------------------

    def _parse(self, source: CSVSource) -> tuple[list[str], list[dict]]:
        text = self._read_text(source)
        try:
            reader = csv.DictReader(io.StringIO(text, newline=""), restkey=EXTRA_FIELDS_KEY)
            headers = list(reader.fieldnames or [])
            raw_rows = list(reader)
        except csv.Error as exc:
            raise CSVParseError(f"Invalid CSV format: {exc}") from exc
        return headers, raw_rows

    def _read_text(self, source: CSVSource) -> str:
        try:
            content = source if isinstance(source, (str, bytes)) else source.read()
        except OSError as exc:
            raise CSVParseError(f"Unable to read CSV file: {exc}") from exc

        if isinstance(content, bytes):
            try:
                return content.decode(self._encoding)
            except UnicodeDecodeError as exc:
                raise CSVParseError(f"CSV must be {self._encoding} encoded.") from exc
            except LookupError as exc:
                raise CSVParseError(f"Unknown CSV encoding: {self._encoding}") from exc
        # Text input may still carry a byte-order mark.
        return content.lstrip("\ufeff")

    def _record_error(self, diagnostics: list[str], error: str) -> None:
        if self._log_validation_errors:
            logger.warning("CSV validation error %s", error)
        diagnostics.append(error)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def is_warning_diagnostic(diagnostic: str) -> bool:
    return bool(_WARNING_LINE.match(diagnostic))


def split_diagnostics(diagnostics: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Split a flat diagnostic list into ``(errors, warnings)``, order kept.
    """
    errors: list[str] = []
    warnings: list[str] = []
    for diagnostic in diagnostics:
        (warnings if is_warning_diagnostic(diagnostic) else errors).append(diagnostic)
    return errors, warnings


def summarize_rows(rows: Iterable[UsageRow]) -> RowSummary:
    """
    Count successful/unsuccessful rows and individual errors/warnings.
    """
    successful = unsuccessful = total_errors = total_warnings = 0
    for row in rows:
        if row.row_errors:
            unsuccessful += 1
        else:
            successful += 1
        total_errors += len(row.row_errors)
        total_warnings += len(row.row_warnings)
    return RowSummary(
        successful_rows=successful,
        unsuccessful_rows=unsuccessful,
        total_errors=total_errors,
        total_warnings=total_warnings,
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_validation_service() -> CSVValidationService:
    """
    Build and cache the validation service with env-driven settings.
    """
    settings = get_csv_validation_settings()
    return CSVValidationService(
        encoding=settings.encoding,
        log_validation_errors=settings.log_validation_errors,
    )
