"""
Wizard ORM models.

Contract:
    WizardModel.data holds the JSON form of WizardData (typed step state).
    WizardReportDataModel holds one row per report record, unique on
    (wizard_id, pk); rows are deleted with their wizard.
    WizardFeedMappingModel remembers a column mapping per uploader, feed type,
    and file layout (first_row_hash).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sirius_kernel.db.base import Base, TimestampedBase, UUIDString
from sirius_wizards.dtos import Wizard
from sirius_wizards.state import WizardData


class WizardModel(TimestampedBase):
    __tablename__ = "wizards"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    current_step: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True, index=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_dto(self) -> Wizard:
        return Wizard(
            id=self.id,
            type=self.type,
            status=self.status,
            current_step=self.current_step,
            entity_id=self.entity_id,
            date=self.date,
            data=WizardData.from_json(self.data),
        )


class WizardReportDataModel(Base):
    __tablename__ = "wizard_report_data"
    __table_args__ = (
        UniqueConstraint("wizard_id", "pk", name="uq_wizard_report_data_wizard_pk"),
        Index("idx_wizard_report_data_created", "wizard_id", "created_at"),
    )

    wizard_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("wizards.id", ondelete="CASCADE"), nullable=False
    )
    pk: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class WizardFeedMappingModel(TimestampedBase):
    __tablename__ = "wizard_feed_mappings"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "type", "first_row_hash", name="uq_wizard_feed_mappings_user_type_hash"
        ),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    first_row_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    mapping: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
