"""
Worker ORM models touched by feeds and reports.

WorkerModel.ssn is unique and stored in canonical nine-digit form.
WorkerHoursModel holds monthly hours per (worker, employer, year, month).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sirius_kernel.db.base import TimestampedBase, UUIDString
from sirius_wizards.dtos import WorkerRecord


class WorkerModel(TimestampedBase):
    __tablename__ = "workers"

    ssn: Mapped[str | None] = mapped_column(String(9), nullable=True, unique=True)
    given_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    family_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(600), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    employment_status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def refresh_display_name(self) -> None:
        parts = (self.given_name, self.middle_name, self.family_name)
        self.display_name = " ".join(p for p in parts if p) or None

    def to_dto(self) -> WorkerRecord:
        return WorkerRecord(
            id=self.id,
            ssn=self.ssn,
            given_name=self.given_name,
            middle_name=self.middle_name,
            family_name=self.family_name,
            birth_date=self.birth_date,
            email=self.email,
            phone=self.phone,
            employment_status=self.employment_status,
        )


class WorkerHoursModel(TimestampedBase):
    __tablename__ = "worker_hours"
    __table_args__ = (
        UniqueConstraint(
            "worker_id", "employer_id", "year", "month", name="uq_worker_hours_period"
        ),
    )

    worker_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workers.id", ondelete="CASCADE"), nullable=False
    )
    employer_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
