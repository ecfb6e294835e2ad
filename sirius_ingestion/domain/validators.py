"""
Row validation against feed field metadata.

Rules per field, in order:
    required (mode-sensitive)   -> one error, stop checking this field
    empty and not required      -> skip
    number type                 -> one error, stop checking this field
    SSN format                  -> normalizes the row value in place on success
    max length
    pattern (only without a format)

The SSN, max-length, and pattern checks accumulate.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Sequence

from sirius_ingestion.domain.types import (
    FeedField,
    FeedMode,
    FieldFormat,
    FieldType,
    RowValidationError,
    ValidationResults,
)
from sirius_kernel.domain.ssn import validate_ssn

DEFAULT_ERROR_LIMIT_PER_TYPE = 12


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return not math.isnan(value)
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return False
    return not math.isnan(parsed)


def validate_row(
    row: dict[str, Any],
    row_index: int,
    fields: Sequence[FeedField],
    mode: FeedMode,
) -> list[RowValidationError]:
    """
    Validate one mapped row.

    Side effect: a valid SSN value is replaced in ``row`` by its canonical
    nine-digit form. An invalid SSN leaves the row untouched.
    """
    errors: list[RowValidationError] = []

    for f in fields:
        value = row.get(f.id)

        if is_empty(value):
            if f.is_required(mode):
                errors.append(RowValidationError(row_index, f.id, f"{f.name} is required", value))
            continue

        if f.type == FieldType.NUMBER and not is_number(value):
            errors.append(RowValidationError(row_index, f.id, f"{f.name} must be a number", value))
            continue

        if f.format == FieldFormat.SSN:
            result = validate_ssn(value)
            if result.valid:
                row[f.id] = result.normalized
                value = result.normalized
            else:
                errors.append(
                    RowValidationError(row_index, f.id, f"{f.name} is invalid: {result.error}", value)
                )

        text = value.isoformat() if isinstance(value, datetime) else str(value)

        if f.max_length is not None and len(text) > f.max_length:
            errors.append(
                RowValidationError(
                    row_index,
                    f.id,
                    f"{f.name} exceeds maximum length of {f.max_length}",
                    text[:20] + "...",
                )
            )

        if f.pattern and f.format is None and re.search(f.pattern, text) is None:
            errors.append(
                RowValidationError(row_index, f.id, f"{f.name} does not match required pattern", value)
            )

    return errors


class ErrorCollector:
    """
    Accumulates row errors across batches.

    Stores at most ``limit_per_type`` instances per distinct (field, message)
    while counting every occurrence.
    """

    def __init__(self, limit_per_type: int = DEFAULT_ERROR_LIMIT_PER_TYPE):
        self._limit = limit_per_type
        self._errors: list[RowValidationError] = []
        self._counts: dict[str, int] = {}
        self.valid_rows = 0
        self.invalid_rows = 0

    def add_row(self, row_errors: list[RowValidationError]) -> None:
        if not row_errors:
            self.valid_rows += 1
            return
        self.invalid_rows += 1
        for error in row_errors:
            count = self._counts.get(error.key, 0) + 1
            self._counts[error.key] = count
            if count <= self._limit:
                self._errors.append(error)

    def results(self, total_rows: int, completed_at: datetime | None = None) -> ValidationResults:
        return ValidationResults(
            total_rows=total_rows,
            valid_rows=self.valid_rows,
            invalid_rows=self.invalid_rows,
            errors=tuple(self._errors),
            error_summary=dict(self._counts),
            completed_at=completed_at,
        )
