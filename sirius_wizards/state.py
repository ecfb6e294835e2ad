"""
Typed per-step wizard state.

A wizard's persisted ``data`` is a WizardData: one state object per step id,
each tagged with a ``kind`` discriminator, plus per-step progress markers and
creation parameters.

Transitions go through ``with_state`` / ``without_state``:
    - a state can only be written once the steps it depends on have state
    - writing (or removing) a step's state clears every later step's state
      and progress marker, so changing an earlier step invalidates later ones
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Sequence, TypeVar
from uuid import UUID

from sirius_ingestion.domain.types import FeedMode, ProcessResults, ValidationResults
from sirius_kernel.exceptions import StepStateError
from sirius_wizards.report import ReportMeta


class StepProgressStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class StepProgress:
    status: StepProgressStatus
    completed_at: datetime | None = None
    payload: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepProgress:
        completed_at = data.get("completedAt")
        return cls(
            status=StepProgressStatus(data["status"]),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            payload=data.get("payload"),
        )


# =============================================================================
# Step states
# =============================================================================


class StepState:
    """Base for step states. ``step_id`` doubles as the ``kind`` tag."""

    step_id: ClassVar[str]
    requires: ClassVar[tuple[str, ...]] = ()

    def payload(self) -> dict[str, Any]:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.step_id, **self.payload()}


@dataclass(frozen=True)
class UploadState(StepState):
    step_id: ClassVar[str] = "upload"

    uploaded_file_id: UUID

    def payload(self) -> dict[str, Any]:
        return {"uploadedFileId": str(self.uploaded_file_id)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadState:
        return cls(uploaded_file_id=UUID(data["uploadedFileId"]))


@dataclass(frozen=True)
class MapState(StepState):
    step_id: ClassVar[str] = "map"
    requires: ClassVar[tuple[str, ...]] = ("upload",)

    column_mapping: dict[str, str]
    mode: FeedMode = FeedMode.CREATE
    has_headers: bool = True

    def payload(self) -> dict[str, Any]:
        return {
            "columnMapping": dict(self.column_mapping),
            "mode": self.mode.value,
            "hasHeaders": self.has_headers,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MapState:
        return cls(
            column_mapping=dict(data.get("columnMapping", {})),
            mode=FeedMode(data.get("mode", FeedMode.CREATE.value)),
            has_headers=data.get("hasHeaders", True),
        )


@dataclass(frozen=True)
class ValidateState(StepState):
    step_id: ClassVar[str] = "validate"
    requires: ClassVar[tuple[str, ...]] = ("upload",)

    results: ValidationResults

    def payload(self) -> dict[str, Any]:
        return {"validationResults": self.results.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidateState:
        return cls(results=ValidationResults.from_dict(data["validationResults"]))


@dataclass(frozen=True)
class ProcessState(StepState):
    step_id: ClassVar[str] = "process"
    requires: ClassVar[tuple[str, ...]] = ("upload", "validate")

    results: ProcessResults

    def payload(self) -> dict[str, Any]:
        return {"processResults": self.results.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProcessState:
        return cls(results=ProcessResults.from_dict(data["processResults"]))


@dataclass(frozen=True)
class ReportInputsState(StepState):
    step_id: ClassVar[str] = "inputs"

    config: dict[str, Any] = field(default_factory=dict)
    retention: str | None = None

    def payload(self) -> dict[str, Any]:
        return {"config": dict(self.config), "retention": self.retention}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportInputsState:
        return cls(config=dict(data.get("config", {})), retention=data.get("retention"))


@dataclass(frozen=True)
class ReportRunState(StepState):
    step_id: ClassVar[str] = "run"

    meta: ReportMeta

    def payload(self) -> dict[str, Any]:
        return {"reportMeta": self.meta.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportRunState:
        return cls(meta=ReportMeta.from_dict(data["reportMeta"]))


STATE_TYPES: dict[str, type[StepState]] = {
    cls.step_id: cls
    for cls in (UploadState, MapState, ValidateState, ProcessState, ReportInputsState, ReportRunState)
}

S = TypeVar("S", bound=StepState)


# =============================================================================
# Wizard data
# =============================================================================


@dataclass(frozen=True)
class WizardData:
    """Immutable snapshot of a wizard's step state. Transitions return copies."""

    states: dict[str, StepState] = field(default_factory=dict)
    progress: dict[str, StepProgress] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)  # set at creation only

    def get(self, state_type: type[S]) -> S | None:
        state = self.states.get(state_type.step_id)
        return state if isinstance(state, state_type) else None

    def with_state(self, state: StepState, step_order: Sequence[str]) -> WizardData:
        position = _position(state.step_id, step_order)
        missing = [dep for dep in state.requires if dep not in self.states]
        if missing:
            raise StepStateError(state.step_id, f"missing state for {', '.join(missing)}")

        states = {
            step_id: s
            for step_id, s in self.states.items()
            if _position(step_id, step_order) < position
        }
        states[state.step_id] = state
        return replace(self, states=states, progress=self._progress_through(position, step_order))

    def without_state(self, step_id: str, step_order: Sequence[str]) -> WizardData:
        position = _position(step_id, step_order)
        states = {
            sid: s for sid, s in self.states.items() if _position(sid, step_order) < position
        }
        return replace(self, states=states, progress=self._progress_through(position, step_order))

    def with_progress(self, step_id: str, progress: StepProgress) -> WizardData:
        return replace(self, progress={**self.progress, step_id: progress})

    def _progress_through(self, position: int, step_order: Sequence[str]) -> dict[str, StepProgress]:
        return {
            sid: p
            for sid, p in self.progress.items()
            if sid in step_order and step_order.index(sid) <= position
        }

    def to_json(self) -> dict[str, Any]:
        return {
            "steps": {step_id: s.to_dict() for step_id, s in self.states.items()},
            "progress": {step_id: p.to_dict() for step_id, p in self.progress.items()},
            "params": dict(self.params),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> WizardData:
        data = data or {}
        states: dict[str, StepState] = {}
        for step_id, raw in (data.get("steps") or {}).items():
            kind = raw.get("kind")
            state_type = STATE_TYPES.get(kind)
            if state_type is None:
                raise StepStateError(step_id, f"unknown state kind '{kind}'")
            if kind != step_id:
                raise StepStateError(step_id, f"state kind '{kind}' stored under wrong step")
            states[step_id] = state_type.from_dict(raw)
        progress = {
            step_id: StepProgress.from_dict(raw)
            for step_id, raw in (data.get("progress") or {}).items()
        }
        return cls(states=states, progress=progress, params=dict(data.get("params") or {}))


def _position(step_id: str, step_order: Sequence[str]) -> int:
    try:
        return list(step_order).index(step_id)
    except ValueError:
        raise StepStateError(step_id, "not a step of this wizard") from None
