"""Workflow shell: step and status vocabulary shared by every wizard type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class WizardStep:
    id: str
    name: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}


@dataclass(frozen=True)
class WizardStatus:
    id: str
    name: str
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}


DRAFT = "draft"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"
ERROR = "error"


def create_standard_statuses() -> list[WizardStatus]:
    return [
        WizardStatus(DRAFT, "Draft", "Wizard created, not yet started"),
        WizardStatus(IN_PROGRESS, "In Progress", "Wizard is being worked on"),
        WizardStatus(COMPLETED, "Completed", "Wizard finished successfully"),
        WizardStatus(CANCELLED, "Cancelled", "Wizard was cancelled"),
        WizardStatus(ERROR, "Error", "Wizard encountered an error"),
    ]


class BaseWizard:
    """
    A wizard type. Subclasses set the class attributes and define steps.

    Purely descriptive: behavior lives in the services that consume it.
    """

    name: str = ""
    display_name: str = ""
    description: str = ""
    category: str | None = None
    entity_type: str | None = None  # e.g. "employer" for employer-scoped feeds
    is_feed: bool = False
    is_report: bool = False

    def get_steps(self) -> list[WizardStep]:
        raise NotImplementedError

    def get_statuses(self) -> list[WizardStatus]:
        return create_standard_statuses()

    def step_ids(self) -> list[str]:
        return [step.id for step in self.get_steps()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "category": self.category,
            "entityType": self.entity_type,
            "isFeed": self.is_feed,
            "isReport": self.is_report,
            "steps": [s.to_dict() for s in self.get_steps()],
            "statuses": [s.to_dict() for s in self.get_statuses()],
        }
