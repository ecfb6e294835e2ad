"""
WizardStore -- wizard instances, report rows, and remembered feed mappings.

Never commits; the caller owns the transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from sirius_kernel.exceptions import WizardNotFoundError
from sirius_wizards.dtos import Wizard
from sirius_wizards.models.wizard import (
    WizardFeedMappingModel,
    WizardModel,
    WizardReportDataModel,
)
from sirius_wizards.state import WizardData

_UNSET: Any = object()


class WizardStore:
    def __init__(self, session: Session):
        self._session = session

    # -------------------------------------------------------------------------
    # Wizards
    # -------------------------------------------------------------------------

    def get(self, wizard_id: UUID) -> Wizard | None:
        model = self._session.get(WizardModel, wizard_id)
        return model.to_dto() if model else None

    def require(self, wizard_id: UUID) -> Wizard:
        wizard = self.get(wizard_id)
        if wizard is None:
            raise WizardNotFoundError(wizard_id)
        return wizard

    def list_wizards(
        self,
        wizard_type: str | None = None,
        status: str | None = None,
        entity_id: UUID | None = None,
    ) -> list[Wizard]:
        stmt = select(WizardModel)
        if wizard_type is not None:
            stmt = stmt.where(WizardModel.type == wizard_type)
        if status is not None:
            stmt = stmt.where(WizardModel.status == status)
        if entity_id is not None:
            stmt = stmt.where(WizardModel.entity_id == entity_id)
        stmt = stmt.order_by(WizardModel.date.desc())
        return [m.to_dto() for m in self._session.scalars(stmt)]

    def create(
        self,
        wizard_type: str,
        status: str,
        date: datetime,
        current_step: str | None = None,
        entity_id: UUID | None = None,
        data: WizardData | None = None,
    ) -> Wizard:
        model = WizardModel(
            type=wizard_type,
            status=status,
            date=date,
            current_step=current_step,
            entity_id=entity_id,
            data=(data or WizardData()).to_json(),
        )
        self._session.add(model)
        self._session.flush()
        return model.to_dto()

    def update(
        self,
        wizard_id: UUID,
        *,
        status: str = _UNSET,
        current_step: str | None = _UNSET,
        data: WizardData = _UNSET,
    ) -> Wizard:
        model = self._session.get(WizardModel, wizard_id)
        if model is None:
            raise WizardNotFoundError(wizard_id)
        if status is not _UNSET:
            model.status = status
        if current_step is not _UNSET:
            model.current_step = current_step
        if data is not _UNSET:
            model.data = data.to_json()
        self._session.flush()
        return model.to_dto()

    def delete(self, wizard_id: UUID) -> bool:
        model = self._session.get(WizardModel, wizard_id)
        if model is None:
            return False
        self.delete_report_rows(wizard_id)
        self._session.delete(model)
        self._session.flush()
        return True

    # -------------------------------------------------------------------------
    # Report rows
    # -------------------------------------------------------------------------

    def save_report_row(
        self,
        wizard_id: UUID,
        pk: str,
        data: dict[str, Any],
        created_at: datetime,
        position: int = 0,
    ) -> None:
        """Insert or replace the row for (wizard_id, pk)."""
        existing = self._session.scalars(
            select(WizardReportDataModel).where(
                WizardReportDataModel.wizard_id == wizard_id,
                WizardReportDataModel.pk == pk,
            )
        ).first()
        if existing is not None:
            existing.data = data
            existing.created_at = created_at
            existing.position = position
        else:
            self._session.add(
                WizardReportDataModel(
                    wizard_id=wizard_id,
                    pk=pk,
                    data=data,
                    created_at=created_at,
                    position=position,
                )
            )
        self._session.flush()

    def _rows_query(self, wizard_id: UUID):
        return (
            select(WizardReportDataModel)
            .where(WizardReportDataModel.wizard_id == wizard_id)
            .order_by(WizardReportDataModel.created_at, WizardReportDataModel.position)
        )

    def list_report_rows(self, wizard_id: UUID) -> list[dict[str, Any]]:
        return [row.data for row in self._session.scalars(self._rows_query(wizard_id))]

    def page_report_rows(self, wizard_id: UUID, offset: int, limit: int) -> list[dict[str, Any]]:
        stmt = self._rows_query(wizard_id).offset(offset).limit(limit)
        return [row.data for row in self._session.scalars(stmt)]

    def count_report_rows(self, wizard_id: UUID, before: datetime | None = None) -> int:
        stmt = select(func.count()).select_from(WizardReportDataModel).where(
            WizardReportDataModel.wizard_id == wizard_id
        )
        if before is not None:
            stmt = stmt.where(WizardReportDataModel.created_at < before)
        return self._session.scalar(stmt) or 0

    def delete_report_rows(self, wizard_id: UUID, before: datetime | None = None) -> int:
        """Delete a wizard's rows (optionally only those created before a cutoff)."""
        count = self.count_report_rows(wizard_id, before)
        stmt = delete(WizardReportDataModel).where(WizardReportDataModel.wizard_id == wizard_id)
        if before is not None:
            stmt = stmt.where(WizardReportDataModel.created_at < before)
        self._session.execute(stmt, execution_options={"synchronize_session": "fetch"})
        self._session.flush()
        return count

    # -------------------------------------------------------------------------
    # Remembered feed mappings
    # -------------------------------------------------------------------------

    def get_feed_mapping(
        self, user_id: str, wizard_type: str, first_row_hash: str
    ) -> dict[str, str] | None:
        model = self._session.scalars(
            select(WizardFeedMappingModel).where(
                WizardFeedMappingModel.user_id == user_id,
                WizardFeedMappingModel.type == wizard_type,
                WizardFeedMappingModel.first_row_hash == first_row_hash,
            )
        ).first()
        return dict(model.mapping) if model else None

    def save_feed_mapping(
        self, user_id: str, wizard_type: str, first_row_hash: str, mapping: dict[str, str]
    ) -> None:
        model = self._session.scalars(
            select(WizardFeedMappingModel).where(
                WizardFeedMappingModel.user_id == user_id,
                WizardFeedMappingModel.type == wizard_type,
                WizardFeedMappingModel.first_row_hash == first_row_hash,
            )
        ).first()
        if model is None:
            self._session.add(
                WizardFeedMappingModel(
                    user_id=user_id,
                    type=wizard_type,
                    first_row_hash=first_row_hash,
                    mapping=dict(mapping),
                )
            )
        else:
            model.mapping = dict(mapping)
        self._session.flush()
