"""
Legal workers feed: an employer's monthly roster of workers and hours.

Scoped to an employer (the wizard's entity_id). The reporting period comes from
the wizard's creation params (``year``, ``month``), else the wizard date.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from sirius_ingestion.domain.types import FeedField, FieldFormat, FieldType
from sirius_ingestion.domain.validators import is_empty
from sirius_kernel.logging_config import get_logger
from sirius_wizards.dtos import Wizard
from sirius_wizards.feed import (
    BIRTH_DATE_FIELD,
    FIRST_NAME_FIELD,
    LAST_NAME_FIELD,
    MIDDLE_NAME_FIELD,
    SSN_FIELD,
    FeedHooks,
    FeedWizard,
)
from sirius_wizards.storage.worker_store import WorkerRecordStore

logger = get_logger("wizards.types.legal_workers")

EMPLOYMENT_STATUS_FIELD = "employmentStatus"
HOURS_FIELD = "hours"
EMAIL_FIELD = "email"
PHONE_FIELD = "phone"


class LegalWorkersFeed(FeedWizard):
    name = "gbhet_legal_workers"
    display_name = "GBHET Legal Workers"
    description = "Import an employer's legal workers and their monthly hours"
    entity_type = "employer"

    def get_fields(self) -> list[FeedField]:
        return [
            FeedField(
                SSN_FIELD,
                "SSN",
                required=True,
                format=FieldFormat.SSN,
                description="Social Security Number",
                display_order=1,
            ),
            FeedField(FIRST_NAME_FIELD, "First Name", required_for_create=True, max_length=100, display_order=2),
            FeedField(MIDDLE_NAME_FIELD, "Middle Name", max_length=100, display_order=3),
            FeedField(LAST_NAME_FIELD, "Last Name", required_for_create=True, max_length=100, display_order=4),
            FeedField(
                BIRTH_DATE_FIELD,
                "Birth Date",
                type=FieldType.DATE,
                format=FieldFormat.DATE,
                display_order=5,
            ),
            FeedField(
                EMPLOYMENT_STATUS_FIELD,
                "Employment Status",
                options=("active", "inactive", "terminated", "leave"),
                max_length=50,
                display_order=6,
            ),
            FeedField(
                HOURS_FIELD,
                "Hours",
                type=FieldType.NUMBER,
                description="Hours worked in the reporting month",
                display_order=7,
            ),
            FeedField(EMAIL_FIELD, "Email", format=FieldFormat.EMAIL, max_length=320, display_order=8),
            FeedField(
                PHONE_FIELD,
                "Phone",
                format=FieldFormat.PHONE,
                pattern=r"^[0-9()+.\- ]+$",
                max_length=50,
                display_order=9,
            ),
        ]

    def create_hooks(self, session: Session, workers: WorkerRecordStore) -> FeedHooks:
        return LegalWorkersHooks(workers)


def reporting_period(wizard: Wizard) -> tuple[int, int]:
    """(year, month) from the wizard's params, falling back to its date."""
    params = wizard.data.params
    year = params.get("year") or wizard.date.year
    month = params.get("month") or wizard.date.month
    year, month = int(year), int(month)
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid reporting month: {month}")
    return year, month


class LegalWorkersHooks:
    """Writes monthly hours, employment status, and contact info for each processed worker."""

    def __init__(self, workers: WorkerRecordStore):
        self._workers = workers

    def process_worker_hours(self, worker_id: UUID, row: dict[str, Any], wizard: Wizard) -> None:
        status = row.get(EMPLOYMENT_STATUS_FIELD)
        if not is_empty(status):
            self._workers.update_employment_status(worker_id, str(status).lower())

        value = row.get(HOURS_FIELD)
        if is_empty(value):
            return
        if wizard.entity_id is None:
            raise ValueError("Wizard has no employer")
        try:
            hours = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Invalid hours value: {value}") from None
        if hours < 0:
            raise ValueError(f"Hours cannot be negative: {value}")

        year, month = reporting_period(wizard)
        self._workers.record_monthly_hours(worker_id, wizard.entity_id, year, month, hours)
        logger.debug(
            "worker_hours_recorded",
            extra={"worker_id": str(worker_id), "year": year, "month": month, "hours": str(hours)},
        )

    def process_worker_contact_info(
        self, worker_id: UUID, row: dict[str, Any], wizard: Wizard
    ) -> None:
        email = row.get(EMAIL_FIELD)
        phone = row.get(PHONE_FIELD)
        if is_empty(email) and is_empty(phone):
            return
        self._workers.update_contact_info(
            worker_id,
            email=None if is_empty(email) else str(email),
            phone=None if is_empty(phone) else str(phone),
        )
