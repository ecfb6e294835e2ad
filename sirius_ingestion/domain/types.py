"""
sirius_ingestion.domain.types -- Pure frozen dataclasses for feed ingestion.

ZERO I/O. Field definitions are static per feed type and never persisted per
wizard; validation and processing results are persisted as JSON on the wizard
through ``to_dict()`` / ``from_dict()`` (camelCase keys, the shape the UI reads).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def json_value(value: Any) -> Any:
    """Convert a cell value to a JSON-safe form."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


# =============================================================================
# Field metadata
# =============================================================================


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"


class FieldFormat(str, Enum):
    SSN = "ssn"
    DATE = "date"
    CURRENCY = "currency"
    PHONE = "phone"
    EMAIL = "email"


class FeedMode(str, Enum):
    """Create mode may insert new workers; update mode only touches existing ones."""

    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class FeedField:
    """One importable attribute of a feed type."""

    id: str
    name: str
    type: FieldType = FieldType.STRING
    required: bool = False  # Required in both modes
    required_for_create: bool = False
    required_for_update: bool = False
    description: str | None = None
    format: FieldFormat | None = None
    options: tuple[str, ...] = ()
    max_length: int | None = None
    pattern: str | None = None
    display_order: int | None = None

    def is_required(self, mode: FeedMode) -> bool:
        return (
            self.required
            or (mode == FeedMode.CREATE and self.required_for_create)
            or (mode == FeedMode.UPDATE and self.required_for_update)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
            "requiredForCreate": self.required_for_create,
            "requiredForUpdate": self.required_for_update,
            "description": self.description,
            "format": self.format.value if self.format else None,
            "options": list(self.options),
            "maxLength": self.max_length,
            "pattern": self.pattern,
            "displayOrder": self.display_order,
        }


# =============================================================================
# Validation results
# =============================================================================


@dataclass(frozen=True)
class RowValidationError:
    """One rule violation on one field of one row (0-based, header excluded)."""

    row_index: int
    field: str
    message: str
    value: Any = None

    @property
    def key(self) -> str:
        return f"{self.field}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "field": self.field,
            "message": self.message,
            "value": json_value(self.value),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RowValidationError:
        return cls(
            row_index=data["rowIndex"],
            field=data["field"],
            message=data["message"],
            value=data.get("value"),
        )


@dataclass(frozen=True)
class ValidationResults:
    """
    Outcome of validating every row of an uploaded feed.

    ``errors`` holds at most N instances per distinct (field, message);
    ``error_summary`` holds the true count for each, keyed "field: message".
    """

    total_rows: int
    valid_rows: int
    invalid_rows: int
    errors: tuple[RowValidationError, ...] = ()
    error_summary: dict[str, int] = field(default_factory=dict)
    completed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "errors": [e.to_dict() for e in self.errors],
            "errorSummary": dict(self.error_summary),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationResults:
        return cls(
            total_rows=data["totalRows"],
            valid_rows=data["validRows"],
            invalid_rows=data["invalidRows"],
            errors=tuple(RowValidationError.from_dict(e) for e in data.get("errors", [])),
            error_summary=dict(data.get("errorSummary", {})),
            completed_at=_parse_datetime(data.get("completedAt")),
        )


@dataclass(frozen=True)
class ValidationProgress:
    processed: int
    total: int
    valid_rows: int
    invalid_rows: int


# =============================================================================
# Processing results
# =============================================================================


class RowStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class RowAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class RowResult:
    """Outcome of processing one row."""

    row_index: int
    status: RowStatus
    message: str
    worker_id: UUID | None = None
    action: RowAction | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == RowStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "status": self.status.value,
            "message": self.message,
            "workerId": str(self.worker_id) if self.worker_id else None,
            "action": self.action.value if self.action else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RowResult:
        return cls(
            row_index=data["rowIndex"],
            status=RowStatus(data["status"]),
            message=data["message"],
            worker_id=UUID(data["workerId"]) if data.get("workerId") else None,
            action=RowAction(data["action"]) if data.get("action") else None,
        )


@dataclass(frozen=True)
class ProcessResults:
    """
    Outcome of a processing run.

    ``errors`` is the failed subset of ``results``; ``results_file_id`` points at
    the generated results CSV, or is None when it could not be produced.
    """

    total_rows: int
    created_count: int
    updated_count: int
    success_count: int
    failure_count: int
    results: tuple[RowResult, ...] = ()
    results_file_id: UUID | None = None
    completed_at: datetime | None = None

    @property
    def errors(self) -> tuple[RowResult, ...]:
        return tuple(r for r in self.results if not r.succeeded)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRows": self.total_rows,
            "createdCount": self.created_count,
            "updatedCount": self.updated_count,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "results": [r.to_dict() for r in self.results],
            "errors": [r.to_dict() for r in self.errors],
            "resultsFileId": str(self.results_file_id) if self.results_file_id else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessResults:
        return cls(
            total_rows=data["totalRows"],
            created_count=data["createdCount"],
            updated_count=data["updatedCount"],
            success_count=data["successCount"],
            failure_count=data["failureCount"],
            results=tuple(RowResult.from_dict(r) for r in data.get("results", [])),
            results_file_id=UUID(data["resultsFileId"]) if data.get("resultsFileId") else None,
            completed_at=_parse_datetime(data.get("completedAt")),
        )


@dataclass(frozen=True)
class ProcessProgress:
    processed: int
    total: int
    success_count: int
    failure_count: int
