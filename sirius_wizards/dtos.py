"""Immutable snapshots returned by the stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sirius_wizards.state import WizardData


@dataclass(frozen=True)
class Wizard:
    """One workflow instance."""

    id: UUID
    type: str
    status: str
    current_step: str | None
    entity_id: UUID | None
    date: datetime
    data: WizardData = field(default_factory=WizardData)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "type": self.type,
            "status": self.status,
            "currentStep": self.current_step,
            "entityId": str(self.entity_id) if self.entity_id else None,
            "date": self.date.isoformat(),
            "data": self.data.to_json(),
        }


@dataclass(frozen=True)
class NewFile:
    """File metadata for a blob already written to object storage."""

    file_name: str
    storage_path: str
    mime_type: str | None
    size: int
    uploaded_by: str | None = None
    entity_type: str | None = None
    entity_id: UUID | None = None
    access_level: str = "private"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StoredFile:
    id: UUID
    file_name: str
    storage_path: str
    mime_type: str | None
    size: int
    uploaded_by: str | None
    uploaded_at: datetime | None
    entity_type: str | None
    entity_id: UUID | None
    access_level: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def wizard_id(self) -> str | None:
        return self.metadata.get("wizardId")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "fileName": self.file_name,
            "storagePath": self.storage_path,
            "mimeType": self.mime_type,
            "size": self.size,
            "uploadedBy": self.uploaded_by,
            "uploadedAt": self.uploaded_at.isoformat() if self.uploaded_at else None,
            "entityType": self.entity_type,
            "entityId": str(self.entity_id) if self.entity_id else None,
            "accessLevel": self.access_level,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class WorkerRecord:
    id: UUID
    ssn: str | None
    given_name: str | None
    middle_name: str | None
    family_name: str | None
    birth_date: date | None = None
    email: str | None = None
    phone: str | None = None
    employment_status: str | None = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.given_name, self.middle_name, self.family_name) if p)
