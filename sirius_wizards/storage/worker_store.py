"""
Worker record store used by feed processing.

WorkerRecordStore is the interface feed processing and feed hooks depend on;
SqlWorkerStore is the SQLAlchemy implementation.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from sirius_kernel.domain.ssn import parse_ssn
from sirius_kernel.exceptions import DuplicateSsnError
from sirius_wizards.dtos import WorkerRecord
from sirius_wizards.models.worker import WorkerHoursModel, WorkerModel


class WorkerRecordStore(Protocol):
    def get_by_ssn(self, ssn: str) -> WorkerRecord | None:
        ...

    def create(
        self, given_name: str, family_name: str, middle_name: str | None = None
    ) -> WorkerRecord:
        ...

    def update_name_components(
        self,
        worker_id: UUID,
        given_name: str | None = None,
        middle_name: str | None = None,
        family_name: str | None = None,
    ) -> WorkerRecord:
        ...

    def update_birth_date(self, worker_id: UUID, birth_date: str | None) -> WorkerRecord:
        ...

    def update_ssn(self, worker_id: UUID, ssn: str | None) -> WorkerRecord:
        ...

    def update_contact_info(
        self, worker_id: UUID, email: str | None = None, phone: str | None = None
    ) -> WorkerRecord:
        ...

    def update_employment_status(self, worker_id: UUID, status: str) -> WorkerRecord:
        ...

    def record_monthly_hours(
        self, worker_id: UUID, employer_id: UUID, year: int, month: int, hours: Decimal
    ) -> None:
        ...


class SqlWorkerStore:
    def __init__(self, session: Session):
        self._session = session

    def _require(self, worker_id: UUID) -> WorkerModel:
        model = self._session.get(WorkerModel, worker_id)
        if model is None:
            raise ValueError(f"Worker not found: {worker_id}")
        return model

    def get(self, worker_id: UUID) -> WorkerRecord | None:
        model = self._session.get(WorkerModel, worker_id)
        return model.to_dto() if model else None

    def get_by_ssn(self, ssn: str) -> WorkerRecord | None:
        model = self._session.scalars(select(WorkerModel).where(WorkerModel.ssn == ssn)).first()
        return model.to_dto() if model else None

    def create(
        self, given_name: str, family_name: str, middle_name: str | None = None
    ) -> WorkerRecord:
        model = WorkerModel(
            given_name=given_name or None,
            middle_name=middle_name or None,
            family_name=family_name or None,
        )
        model.refresh_display_name()
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def update_name_components(
        self,
        worker_id: UUID,
        given_name: str | None = None,
        middle_name: str | None = None,
        family_name: str | None = None,
    ) -> WorkerRecord:
        """Update the components that are given; None leaves a component unchanged."""
        model = self._require(worker_id)
        if given_name is not None:
            model.given_name = given_name or None
        if middle_name is not None:
            model.middle_name = middle_name or None
        if family_name is not None:
            model.family_name = family_name or None
        model.refresh_display_name()
        self._session.flush()
        return model.to_dto()

    def update_birth_date(self, worker_id: UUID, birth_date: str | None) -> WorkerRecord:
        """Set the birth date from its YYYY-MM-DD form, or clear it."""
        model = self._require(worker_id)
        model.birth_date = date.fromisoformat(birth_date) if birth_date else None
        self._session.flush()
        return model.to_dto()

    def update_ssn(self, worker_id: UUID, ssn: str | None) -> WorkerRecord:
        """Validate and assign an SSN; an empty value clears it."""
        model = self._require(worker_id)
        if not ssn:
            model.ssn = None
            self._session.flush()
            return model.to_dto()

        canonical = parse_ssn(ssn)
        holder = self._session.scalars(
            select(WorkerModel).where(WorkerModel.ssn == canonical, WorkerModel.id != worker_id)
        ).first()
        if holder is not None:
            raise DuplicateSsnError(canonical)
        model.ssn = canonical
        self._session.flush()
        return model.to_dto()

    def update_contact_info(
        self, worker_id: UUID, email: str | None = None, phone: str | None = None
    ) -> WorkerRecord:
        model = self._require(worker_id)
        if email:
            model.email = email
        if phone:
            model.phone = phone
        self._session.flush()
        return model.to_dto()

    def update_employment_status(self, worker_id: UUID, status: str) -> WorkerRecord:
        model = self._require(worker_id)
        model.employment_status = status
        self._session.flush()
        return model.to_dto()

    def record_monthly_hours(
        self, worker_id: UUID, employer_id: UUID, year: int, month: int, hours: Decimal
    ) -> None:
        """Insert or replace the hours for (worker, employer, year, month)."""
        model = self._session.scalars(
            select(WorkerHoursModel).where(
                WorkerHoursModel.worker_id == worker_id,
                WorkerHoursModel.employer_id == employer_id,
                WorkerHoursModel.year == year,
                WorkerHoursModel.month == month,
            )
        ).first()
        if model is None:
            self._session.add(
                WorkerHoursModel(
                    worker_id=worker_id,
                    employer_id=employer_id,
                    year=year,
                    month=month,
                    hours=hours,
                )
            )
        else:
            model.hours = hours
        self._session.flush()
