"""Report wizard types over worker records."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sirius_kernel.logging_config import get_logger
from sirius_wizards.models.worker import WorkerHoursModel, WorkerModel
from sirius_wizards.report import (
    ReportColumn,
    ReportConfig,
    ReportProgress,
    ReportProgressCallback,
    ReportRecord,
    WizardReport,
)

logger = get_logger("wizards.types.reports")

MONTH_NAMES = (
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class WorkersMissingBirthDateReport(WizardReport):
    name = "report_workers_missing_birth_date"
    display_name = "Workers Missing Birth Date"
    description = "Workers with no birth date on file"
    category = "Data Quality"

    def get_columns(self) -> list[ReportColumn]:
        return [
            ReportColumn("workerId", "Worker ID", width=280),
            ReportColumn("displayName", "Worker Name", width=200),
            ReportColumn("ssn", "SSN", width=120),
            ReportColumn("employmentStatus", "Employment Status", width=140),
        ]

    def fetch_records(
        self,
        session: Session,
        config: ReportConfig,
        batch_size: int = 100,
        on_progress: ReportProgressCallback | None = None,
    ) -> list[ReportRecord]:
        stmt = (
            select(WorkerModel)
            .where(WorkerModel.birth_date.is_(None))
            .order_by(WorkerModel.family_name, WorkerModel.given_name, WorkerModel.id)
        )
        workers = list(session.scalars(stmt))
        total = len(workers)

        records: list[ReportRecord] = []
        for start in range(0, total, batch_size):
            for worker in workers[start : start + batch_size]:
                records.append(
                    {
                        "workerId": str(worker.id),
                        "displayName": worker.display_name,
                        "ssn": worker.ssn,
                        "employmentStatus": worker.employment_status,
                    }
                )
            if on_progress is not None:
                on_progress(ReportProgress(processed=len(records), total=total))
        return records


class WorkerMonthlyHoursReport(WizardReport):
    """
    Worker-months at or above an hours threshold.

    Config:
        minHours -- threshold, default 80
        year     -- optional filter
    """

    name = "report_worker_monthly_hours"
    display_name = "Worker Monthly Hours"
    description = "Workers whose monthly hours at one employer reach a threshold"
    category = "Compliance"

    DEFAULT_MIN_HOURS = Decimal("80")

    def get_primary_key_field(self) -> str:
        return "recordKey"

    def get_columns(self) -> list[ReportColumn]:
        return [
            ReportColumn("recordKey", "Record", width=320),
            ReportColumn("workerId", "Worker ID", width=280),
            ReportColumn("displayName", "Worker Name", width=200),
            ReportColumn("employerId", "Employer ID", width=280),
            ReportColumn("workMonth", "Work Month", width=120),
            ReportColumn("totalHours", "Hours", type="number", width=80),
        ]

    def fetch_records(
        self,
        session: Session,
        config: ReportConfig,
        batch_size: int = 100,
        on_progress: ReportProgressCallback | None = None,
    ) -> list[ReportRecord]:
        min_hours = Decimal(str(config.get("minHours", self.DEFAULT_MIN_HOURS)))
        total_hours = func.sum(WorkerHoursModel.hours)
        stmt = (
            select(
                WorkerHoursModel.worker_id,
                WorkerHoursModel.employer_id,
                WorkerHoursModel.year,
                WorkerHoursModel.month,
                total_hours.label("total_hours"),
                WorkerModel.display_name,
            )
            .join(WorkerModel, WorkerModel.id == WorkerHoursModel.worker_id)
            .group_by(
                WorkerHoursModel.worker_id,
                WorkerHoursModel.employer_id,
                WorkerHoursModel.year,
                WorkerHoursModel.month,
                WorkerModel.display_name,
            )
            .having(total_hours >= min_hours)
            .order_by(WorkerHoursModel.year, WorkerHoursModel.month, WorkerModel.display_name)
        )
        if config.get("year"):
            stmt = stmt.where(WorkerHoursModel.year == int(config["year"]))

        rows = session.execute(stmt).all()
        total = len(rows)
        if total == 0 and on_progress is not None:
            on_progress(ReportProgress(processed=0, total=0))

        records: list[ReportRecord] = []
        for start in range(0, total, batch_size):
            for row in rows[start : start + batch_size]:
                records.append(
                    {
                        "recordKey": f"{row.worker_id}-{row.employer_id}-{row.year}-{row.month}",
                        "workerId": str(row.worker_id),
                        "displayName": row.display_name,
                        "employerId": str(row.employer_id),
                        "workMonth": f"{MONTH_NAMES[row.month]} {row.year}",
                        "totalHours": float(row.total_hours),
                    }
                )
            if on_progress is not None:
                on_progress(ReportProgress(processed=len(records), total=total))
        logger.debug("monthly_hours_fetched", extra={"record_count": total, "min_hours": str(min_hours)})
        return records
