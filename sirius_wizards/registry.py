"""Registry of wizard types by name."""

from __future__ import annotations

from sirius_kernel.exceptions import WizardTypeNotFoundError
from sirius_kernel.logging_config import get_logger
from sirius_wizards.base import BaseWizard, WizardStatus, WizardStep
from sirius_wizards.feed import FeedWizard
from sirius_wizards.report import WizardReport

logger = get_logger("wizards.registry")


class WizardRegistry:
    def __init__(self) -> None:
        self._wizards: dict[str, BaseWizard] = {}

    def register(self, wizard: BaseWizard) -> None:
        if not wizard.name:
            raise ValueError("Wizard type must have a name")
        if wizard.name in self._wizards:
            raise ValueError(f"Wizard type already registered: {wizard.name}")
        self._wizards[wizard.name] = wizard
        logger.debug("wizard_type_registered", extra={"wizard_type": wizard.name})

    def get(self, name: str) -> BaseWizard | None:
        return self._wizards.get(name)

    def require(self, name: str) -> BaseWizard:
        wizard = self._wizards.get(name)
        if wizard is None:
            raise WizardTypeNotFoundError(name)
        return wizard

    def require_feed(self, name: str) -> FeedWizard:
        wizard = self.require(name)
        if not isinstance(wizard, FeedWizard):
            raise WizardTypeNotFoundError(name)
        return wizard

    def require_report(self, name: str) -> WizardReport:
        wizard = self.require(name)
        if not isinstance(wizard, WizardReport):
            raise WizardTypeNotFoundError(name)
        return wizard

    def get_all(self) -> list[BaseWizard]:
        return list(self._wizards.values())

    def get_steps_for_type(self, name: str) -> list[WizardStep]:
        return self.require(name).get_steps()

    def get_statuses_for_type(self, name: str) -> list[WizardStatus]:
        return self.require(name).get_statuses()

    def validate_type(self, name: str) -> bool:
        return name in self._wizards

    def is_report_wizard(self, name: str) -> bool:
        return isinstance(self._wizards.get(name), WizardReport)

    def is_feed_wizard(self, name: str) -> bool:
        return isinstance(self._wizards.get(name), FeedWizard)
