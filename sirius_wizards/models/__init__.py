"""ORM models for wizards, report rows, files, and workers."""

from sirius_wizards.models.file import FileModel
from sirius_wizards.models.wizard import (
    WizardFeedMappingModel,
    WizardModel,
    WizardReportDataModel,
)
from sirius_wizards.models.worker import WorkerHoursModel, WorkerModel

__all__ = [
    "FileModel",
    "WizardModel",
    "WizardReportDataModel",
    "WizardFeedMappingModel",
    "WorkerModel",
    "WorkerHoursModel",
]
