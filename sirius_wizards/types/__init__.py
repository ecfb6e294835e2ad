"""Concrete wizard types and the default registry."""

from sirius_wizards.registry import WizardRegistry
from sirius_wizards.types.legal_workers import LegalWorkersFeed, LegalWorkersHooks
from sirius_wizards.types.reports import WorkerMonthlyHoursReport, WorkersMissingBirthDateReport


def build_default_registry() -> WizardRegistry:
    registry = WizardRegistry()
    registry.register(LegalWorkersFeed())
    registry.register(WorkersMissingBirthDateReport())
    registry.register(WorkerMonthlyHoursReport())
    return registry


__all__ = [
    "LegalWorkersFeed",
    "LegalWorkersHooks",
    "WorkersMissingBirthDateReport",
    "WorkerMonthlyHoursReport",
    "build_default_registry",
]
