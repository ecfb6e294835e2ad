"""
sirius_ingestion.domain -- Pure types and validators for feed ingestion.

ZERO I/O. Imports only from sirius_kernel.
"""

from sirius_ingestion.domain.types import (
    FeedField,
    FeedMode,
    FieldFormat,
    FieldType,
    ProcessProgress,
    ProcessResults,
    RowAction,
    RowResult,
    RowStatus,
    RowValidationError,
    ValidationProgress,
    ValidationResults,
)
from sirius_ingestion.domain.validators import ErrorCollector, validate_row

__all__ = [
    "FeedField",
    "FeedMode",
    "FieldFormat",
    "FieldType",
    "ProcessProgress",
    "ProcessResults",
    "RowAction",
    "RowResult",
    "RowStatus",
    "RowValidationError",
    "ValidationProgress",
    "ValidationResults",
    "ErrorCollector",
    "validate_row",
]
