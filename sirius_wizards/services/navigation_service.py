"""Wizard lifecycle: creation, step navigation, listing, and deletion."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from sirius_kernel.domain.clock import Clock, SystemClock
from sirius_kernel.exceptions import InvalidStepTransitionError
from sirius_kernel.logging_config import get_logger
from sirius_wizards.base import DRAFT, IN_PROGRESS
from sirius_wizards.dtos import Wizard
from sirius_wizards.registry import WizardRegistry
from sirius_wizards.state import StepProgress, StepProgressStatus, WizardData
from sirius_wizards.storage.wizard_store import WizardStore

logger = get_logger("wizards.navigation")


class NavigationService:
    def __init__(
        self,
        session: Session,
        registry: WizardRegistry,
        *,
        wizard_store: WizardStore | None = None,
        clock: Clock | None = None,
    ):
        self._registry = registry
        self._wizards = wizard_store or WizardStore(session)
        self._clock = clock or SystemClock()

    def create_wizard(
        self,
        wizard_type: str,
        entity_id: UUID | None = None,
        params: dict[str, Any] | None = None,
    ) -> Wizard:
        """Create a draft wizard positioned on its first step."""
        definition = self._registry.require(wizard_type)
        first_step = definition.step_ids()[0]
        data = WizardData(params=dict(params or {})).with_progress(
            first_step, StepProgress(StepProgressStatus.IN_PROGRESS)
        )
        wizard = self._wizards.create(
            wizard_type,
            status=DRAFT,
            date=self._clock.now_utc(),
            current_step=first_step,
            entity_id=entity_id,
            data=data,
        )
        logger.info(
            "wizard_created",
            extra={"wizard_id": str(wizard.id), "wizard_type": wizard_type, "step": first_step},
        )
        return wizard

    def _position(self, wizard: Wizard) -> tuple[list[str], int]:
        step_ids = self._registry.require(wizard.type).step_ids()
        if wizard.current_step not in step_ids:
            raise InvalidStepTransitionError(wizard.id, wizard.current_step, "Current step not found")
        return step_ids, step_ids.index(wizard.current_step)

    def advance_step(self, wizard_id: UUID, payload: dict[str, Any] | None = None) -> Wizard:
        """
        Complete the current step and move to the next one.

        ``payload`` is kept on the completed step's progress marker.
        """
        wizard = self._wizards.require(wizard_id)
        step_ids, idx = self._position(wizard)
        if idx == len(step_ids) - 1:
            raise InvalidStepTransitionError(wizard_id, wizard.current_step, "Already on last step")

        next_step = step_ids[idx + 1]
        data = wizard.data.with_progress(
            wizard.current_step,
            StepProgress(StepProgressStatus.COMPLETED, self._clock.now_utc(), payload),
        ).with_progress(next_step, StepProgress(StepProgressStatus.IN_PROGRESS))
        status = IN_PROGRESS if wizard.status == DRAFT else wizard.status

        updated = self._wizards.update(wizard_id, status=status, current_step=next_step, data=data)
        logger.info(
            "wizard_step_advanced",
            extra={"wizard_id": str(wizard_id), "from_step": wizard.current_step, "to_step": next_step},
        )
        return updated

    def retreat_step(self, wizard_id: UUID) -> Wizard:
        """Move back one step. Step state is kept; progress of the left step returns to pending."""
        wizard = self._wizards.require(wizard_id)
        step_ids, idx = self._position(wizard)
        if idx == 0:
            raise InvalidStepTransitionError(wizard_id, wizard.current_step, "Already on first step")

        previous = step_ids[idx - 1]
        data = wizard.data.with_progress(
            wizard.current_step, StepProgress(StepProgressStatus.PENDING)
        ).with_progress(previous, StepProgress(StepProgressStatus.IN_PROGRESS))

        updated = self._wizards.update(wizard_id, current_step=previous, data=data)
        logger.info(
            "wizard_step_retreated",
            extra={"wizard_id": str(wizard_id), "from_step": wizard.current_step, "to_step": previous},
        )
        return updated

    def get_wizard(self, wizard_id: UUID) -> Wizard:
        return self._wizards.require(wizard_id)

    def list_wizards(
        self,
        wizard_type: str | None = None,
        status: str | None = None,
        entity_id: UUID | None = None,
    ) -> list[Wizard]:
        return self._wizards.list_wizards(wizard_type, status, entity_id)

    def delete_wizard(self, wizard_id: UUID) -> bool:
        deleted = self._wizards.delete(wizard_id)
        if deleted:
            logger.info("wizard_deleted", extra={"wizard_id": str(wizard_id)})
        return deleted
