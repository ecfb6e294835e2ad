"""
Report service: generate report snapshots and read them back.

generate_report:
    1. clear the run step state (stale metadata)
    2. fetch records from the report definition
    3. compute every primary key before touching stored rows
    4. replace the wizard's stored rows
    5. store fresh ReportMeta and mark the wizard completed, in one update

Never commits. A failure anywhere leaves the caller's transaction to roll back.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from sirius_config import RETENTION_DAYS
from sirius_ingestion.domain.types import json_value
from sirius_kernel.domain.clock import Clock, SystemClock
from sirius_kernel.logging_config import LogContext, get_logger
from sirius_wizards.base import COMPLETED, DRAFT, IN_PROGRESS
from sirius_wizards.dtos import Wizard
from sirius_wizards.registry import WizardRegistry
from sirius_wizards.report import (
    ReportMeta,
    ReportPage,
    ReportProgressCallback,
    ReportResults,
)
from sirius_wizards.services.results_export import format_output_filename, serialize_records_csv
from sirius_wizards.state import ReportInputsState, ReportRunState
from sirius_wizards.storage.wizard_store import WizardStore

logger = get_logger("wizards.report_service")


class ReportService:
    def __init__(
        self,
        session: Session,
        registry: WizardRegistry,
        *,
        wizard_store: WizardStore | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._registry = registry
        self._wizards = wizard_store or WizardStore(session)
        self._clock = clock or SystemClock()

    def save_report_inputs(
        self, wizard_id: UUID, config: dict[str, Any], retention: str | None = None
    ) -> Wizard:
        """Store the inputs step. Clears any previous run metadata."""
        if retention is not None and retention not in RETENTION_DAYS:
            raise ValueError(
                f"Unknown report retention '{retention}'. Expected one of: {', '.join(RETENTION_DAYS)}"
            )
        wizard = self._wizards.require(wizard_id)
        report = self._registry.require_report(wizard.type)
        data = wizard.data.with_state(
            ReportInputsState(config=dict(config), retention=retention), report.step_ids()
        )
        status = IN_PROGRESS if wizard.status == DRAFT else wizard.status
        return self._wizards.update(wizard_id, status=status, data=data)

    def generate_report(
        self,
        wizard_id: UUID,
        batch_size: int = 100,
        on_progress: ReportProgressCallback | None = None,
    ) -> ReportResults:
        """
        Run the report and replace its stored rows.

        Raises:
            WizardNotFoundError: unknown wizard.
            WizardTypeNotFoundError: the wizard's type is not a registered report.
            MissingPrimaryKeyError: a fetched record lacks its key; nothing is written.
        """
        wizard = self._wizards.require(wizard_id)
        report = self._registry.require_report(wizard.type)
        step_ids = report.step_ids()

        with LogContext.bind(wizard_id=str(wizard_id), producer="reports"):
            data = wizard.data.without_state(ReportRunState.step_id, step_ids)
            self._wizards.update(wizard_id, data=data)

            inputs = data.get(ReportInputsState)
            config = dict(inputs.config) if inputs else {}
            logger.info(
                "report_generation_started",
                extra={"wizard_type": wizard.type, "batch_size": batch_size},
            )

            records = report.fetch_records(self._session, config, batch_size, on_progress)
            keyed = [
                (report.get_primary_key_value(record), {k: json_value(v) for k, v in record.items()})
                for record in records
            ]
            stored = [record for _, record in keyed]

            generated_at = self._clock.now_utc()
            self._wizards.delete_report_rows(wizard_id)
            for position, (pk, record) in enumerate(keyed):
                self._wizards.save_report_row(wizard_id, pk, record, generated_at, position)

            columns = tuple(report.get_columns())
            meta = ReportMeta(
                generated_at=generated_at,
                record_count=len(stored),
                columns=columns,
                primary_key_field=report.get_primary_key_field(),
            )
            self._wizards.update(
                wizard_id,
                status=COMPLETED,
                data=data.with_state(ReportRunState(meta=meta), step_ids),
            )
            logger.info("report_generated", extra={"record_count": meta.record_count})

        return ReportResults(
            columns=columns,
            records=tuple(stored),
            record_count=meta.record_count,
            generated_at=generated_at,
            primary_key_field=meta.primary_key_field,
        )

    def _meta(self, wizard: Wizard) -> ReportMeta | None:
        run = wizard.data.get(ReportRunState)
        return run.meta if run else None

    def get_report_results(self, wizard_id: UUID) -> ReportResults | None:
        """
        Stored results, or None if the report has never been generated.

        Count, columns, and timestamp come from the metadata; records are read
        back from the stored rows, which may be fewer after a retention purge.
        """
        wizard = self._wizards.require(wizard_id)
        meta = self._meta(wizard)
        if meta is None:
            return None

        records = self._wizards.list_report_rows(wizard_id)
        if len(records) != meta.record_count:
            logger.warning(
                "report_row_count_mismatch",
                extra={
                    "wizard_id": str(wizard_id),
                    "record_count": meta.record_count,
                    "stored_rows": len(records),
                },
            )
        return ReportResults(
            columns=meta.columns,
            records=tuple(records),
            record_count=meta.record_count,
            generated_at=meta.generated_at,
            primary_key_field=meta.primary_key_field,
        )

    def get_report_page(self, wizard_id: UUID, offset: int = 0, limit: int = 50) -> ReportPage:
        if offset < 0 or limit < 1:
            raise ValueError(f"Invalid page window offset={offset} limit={limit}")
        wizard = self._wizards.require(wizard_id)
        meta = self._meta(wizard)
        return ReportPage(
            records=tuple(self._wizards.page_report_rows(wizard_id, offset, limit)),
            total=self._wizards.count_report_rows(wizard_id),
            offset=offset,
            limit=limit,
            columns=meta.columns if meta else (),
        )

    def export_report_csv(self, wizard_id: UUID) -> tuple[str, bytes] | None:
        """(file name, CSV bytes) of the stored results, or None if never generated."""
        wizard = self._wizards.require(wizard_id)
        results = self.get_report_results(wizard_id)
        if results is None:
            return None
        file_name = format_output_filename(wizard.type, results.generated_at)
        return file_name, serialize_records_csv(results.records, results.columns)
