"""
Report data retention sweep.

Each report wizard's retention setting (from its inputs step, else the
configured default) defines a cutoff; stored report rows created before the
cutoff are purged. ``always`` keeps rows forever.

Modes:
    live -- delete expired rows
    test -- count what would be deleted, delete nothing

Each wizard is handled in its own SAVEPOINT. A failing wizard is logged and
recorded in the summary; the sweep continues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from sirius_config import RETENTION_DAYS, get_settings
from sirius_config.schema import WizardSettings
from sirius_kernel.domain.clock import Clock, SystemClock
from sirius_kernel.logging_config import get_logger
from sirius_wizards.dtos import Wizard
from sirius_wizards.registry import WizardRegistry
from sirius_wizards.state import ReportInputsState
from sirius_wizards.storage.wizard_store import WizardStore

logger = get_logger("wizards.retention")

LIVE = "live"
TEST = "test"


@dataclass
class PurgeSummary:
    mode: str
    wizards_checked: int = 0
    wizards_purged: int = 0
    rows_deleted: int = 0
    rows_by_retention: dict[str, int] = field(default_factory=dict)
    failures: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "wizardsChecked": self.wizards_checked,
            "wizardsPurged": self.wizards_purged,
            "rowsDeleted": self.rows_deleted,
            "rowsByRetention": dict(self.rows_by_retention),
            "failures": list(self.failures),
        }


class RetentionService:
    def __init__(
        self,
        session: Session,
        registry: WizardRegistry,
        *,
        wizard_store: WizardStore | None = None,
        clock: Clock | None = None,
        settings: WizardSettings | None = None,
    ):
        self._session = session
        self._registry = registry
        self._wizards = wizard_store or WizardStore(session)
        self._clock = clock or SystemClock()
        self._settings = settings or get_settings()

    def retention_for(self, wizard: Wizard) -> str:
        inputs = wizard.data.get(ReportInputsState)
        if inputs is not None and inputs.retention in RETENTION_DAYS:
            return inputs.retention
        return self._settings.default_report_retention

    def purge_expired_report_data(self, mode: str = LIVE) -> PurgeSummary:
        if mode not in (LIVE, TEST):
            raise ValueError(f"Unknown purge mode '{mode}'. Expected 'live' or 'test'")

        summary = PurgeSummary(mode=mode)
        now = self._clock.now_utc()
        report_types = {w.name for w in self._registry.get_all() if w.is_report}

        for wizard in self._wizards.list_wizards():
            if wizard.type not in report_types:
                continue
            summary.wizards_checked += 1
            retention = self.retention_for(wizard)
            days = RETENTION_DAYS[retention]
            if days is None:
                continue
            cutoff = now - timedelta(days=days)

            savepoint = self._session.begin_nested()
            try:
                if mode == LIVE:
                    count = self._wizards.delete_report_rows(wizard.id, before=cutoff)
                else:
                    count = self._wizards.count_report_rows(wizard.id, before=cutoff)
                savepoint.commit()
            except Exception as exc:
                savepoint.rollback()
                logger.exception(
                    "report_purge_failed",
                    extra={"wizard_id": str(wizard.id), "retention": retention},
                )
                summary.failures.append({"wizardId": str(wizard.id), "error": str(exc)})
                continue

            if count:
                summary.wizards_purged += 1
                summary.rows_deleted += count
                summary.rows_by_retention[retention] = (
                    summary.rows_by_retention.get(retention, 0) + count
                )

        logger.info(
            "report_purge_completed",
            extra={
                "mode": mode,
                "wizards_checked": summary.wizards_checked,
                "wizards_purged": summary.wizards_purged,
                "rows_deleted": summary.rows_deleted,
                "failures": len(summary.failures),
            },
        )
        return summary
