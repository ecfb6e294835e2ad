"""
Report wizards: definitions, column metadata, and result DTOs.

A report subclass supplies ``get_columns()`` and ``fetch_records()``; the
ReportService snapshots the fetched records into per-row storage keyed by
``get_primary_key_value()`` and keeps a ReportMeta on the wizard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Session

from sirius_kernel.exceptions import MissingPrimaryKeyError
from sirius_wizards.base import BaseWizard, WizardStep

ReportConfig = dict[str, Any]
ReportRecord = dict[str, Any]


@dataclass(frozen=True)
class ReportProgress:
    processed: int
    total: int


ReportProgressCallback = Callable[[ReportProgress], None]


@dataclass(frozen=True)
class ReportColumn:
    id: str
    header: str
    type: str = "string"
    width: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "header": self.header, "type": self.type, "width": self.width}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportColumn:
        return cls(
            id=data["id"],
            header=data["header"],
            type=data.get("type", "string"),
            width=data.get("width"),
        )


@dataclass(frozen=True)
class ReportMeta:
    """
    Summary of the last generation run, stored on the wizard.

    Source of truth for count, columns, and timestamp when results are read
    back, even if the persisted rows disagree.
    """

    generated_at: datetime
    record_count: int
    columns: tuple[ReportColumn, ...]
    primary_key_field: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(),
            "recordCount": self.record_count,
            "columns": [c.to_dict() for c in self.columns],
            "primaryKeyField": self.primary_key_field,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportMeta:
        return cls(
            generated_at=datetime.fromisoformat(data["generatedAt"]),
            record_count=data["recordCount"],
            columns=tuple(ReportColumn.from_dict(c) for c in data.get("columns", [])),
            primary_key_field=data["primaryKeyField"],
        )


@dataclass(frozen=True)
class ReportResults:
    columns: tuple[ReportColumn, ...]
    records: tuple[ReportRecord, ...]
    record_count: int
    generated_at: datetime
    primary_key_field: str = "workerId"

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "records": list(self.records),
            "recordCount": self.record_count,
            "generatedAt": self.generated_at.isoformat(),
            "primaryKeyField": self.primary_key_field,
        }


@dataclass(frozen=True)
class ReportPage:
    records: tuple[ReportRecord, ...]
    total: int
    offset: int
    limit: int
    columns: tuple[ReportColumn, ...] = field(default=())


class WizardReport(BaseWizard):
    """Base class for report wizard types."""

    is_report = True
    category: str | None = "Reports"

    def get_steps(self) -> list[WizardStep]:
        return [
            WizardStep("inputs", "Inputs", "Configure report parameters"),
            WizardStep("run", "Run", "Generate the report"),
            WizardStep("results", "Results", "View report results"),
        ]

    def get_columns(self) -> list[ReportColumn]:
        raise NotImplementedError

    def get_primary_key_field(self) -> str:
        return "workerId"

    def get_primary_key_value(self, record: ReportRecord) -> str:
        pk_field = self.get_primary_key_field()
        value = record.get(pk_field)
        if value is None or value == "":
            raise MissingPrimaryKeyError(pk_field)
        return str(value)

    def fetch_records(
        self,
        session: Session,
        config: ReportConfig,
        batch_size: int = 100,
        on_progress: ReportProgressCallback | None = None,
    ) -> list[ReportRecord]:
        raise NotImplementedError
