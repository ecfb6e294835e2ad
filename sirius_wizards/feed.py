"""
Feed wizards: field definitions and the optional worker hooks capability.

Feed processing always calls the hooks object it is given. Feed types that
have nothing extra to do per row return NullFeedHooks from ``create_hooks``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from sirius_ingestion.domain.types import FeedField, FeedMode, RowValidationError
from sirius_ingestion.domain.validators import validate_row
from sirius_wizards.base import (
    BaseWizard,
    WizardStatus,
    WizardStep,
    create_standard_statuses,
)

if TYPE_CHECKING:
    from sirius_wizards.dtos import Wizard
    from sirius_wizards.storage.worker_store import WorkerRecordStore

# Field ids the worker feed processor reads directly.
SSN_FIELD = "ssn"
FIRST_NAME_FIELD = "firstName"
MIDDLE_NAME_FIELD = "middleName"
LAST_NAME_FIELD = "lastName"
BIRTH_DATE_FIELD = "birthDate"

GENERATING = "generating"
READY = "ready"


class FeedHooks(Protocol):
    """Per-row side work run after the worker record has been written."""

    def process_worker_hours(self, worker_id: UUID, row: dict[str, Any], wizard: Wizard) -> None:
        ...

    def process_worker_contact_info(
        self, worker_id: UUID, row: dict[str, Any], wizard: Wizard
    ) -> None:
        ...


class NullFeedHooks:
    """Hooks that do nothing."""

    def process_worker_hours(self, worker_id: UUID, row: dict[str, Any], wizard: Wizard) -> None:
        return None

    def process_worker_contact_info(
        self, worker_id: UUID, row: dict[str, Any], wizard: Wizard
    ) -> None:
        return None


class FeedWizard(BaseWizard):
    """Base class for file-upload feed wizard types."""

    is_feed = True
    category: str | None = "Feeds"

    def get_steps(self) -> list[WizardStep]:
        return [
            WizardStep("upload", "Upload", "Upload data file"),
            WizardStep("map", "Map", "Map columns to fields"),
            WizardStep("validate", "Validate", "Validate data"),
            WizardStep("process", "Process", "Process data"),
            WizardStep("review", "Review", "Review results"),
        ]

    def get_statuses(self) -> list[WizardStatus]:
        return [
            *create_standard_statuses(),
            WizardStatus(GENERATING, "Generating", "Feed is being generated"),
            WizardStatus(READY, "Ready", "Feed is ready for download"),
        ]

    def get_fields(self) -> list[FeedField]:
        return []

    def validate_row(
        self, row: dict[str, Any], row_index: int, mode: FeedMode
    ) -> list[RowValidationError]:
        return validate_row(row, row_index, self.get_fields(), mode)

    def create_hooks(self, session: Session, workers: WorkerRecordStore) -> FeedHooks:
        return NullFeedHooks()
