"""Tests for ReportService and the bundled report types."""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from sirius_kernel.exceptions import MissingPrimaryKeyError, WizardTypeNotFoundError
from sirius_wizards.base import COMPLETED, IN_PROGRESS
from sirius_wizards.report import ReportColumn, WizardReport
from sirius_wizards.services import NavigationService, ReportService
from sirius_wizards.state import ReportInputsState, ReportRunState
from sirius_wizards.types import build_default_registry

MISSING_BIRTH_DATE = "report_workers_missing_birth_date"
MONTHLY_HOURS = "report_worker_monthly_hours"


@pytest.fixture
def workers(worker_store):
    """Ann Smith and Cal Adams lack birth dates; Bob Jones has one."""
    ann = worker_store.create("Ann", "Smith")
    worker_store.update_ssn(ann.id, "123456789")
    bob = worker_store.create("Bob", "Jones")
    worker_store.update_birth_date(bob.id, "1975-06-30")
    cal = worker_store.create("Cal", "Adams", middle_name="J")
    worker_store.update_employment_status(cal.id, "active")
    return {"ann": ann, "bob": bob, "cal": cal}


@pytest.fixture
def report_wizard(navigation):
    return navigation.create_wizard(MISSING_BIRTH_DATE)


class ListReport(WizardReport):
    name = "report_test_list"
    display_name = "Test List"

    def __init__(self):
        self.records = []

    def get_columns(self):
        return [ReportColumn("workerId", "Worker ID"), ReportColumn("value", "Value")]

    def fetch_records(self, session, config, batch_size=100, on_progress=None):
        return [dict(r) for r in self.records]


class TestGenerateReport:
    def test_generate_stores_rows_and_meta(
        self, report_service, report_wizard, workers, wizard_store, clock
    ):
        results = report_service.generate_report(report_wizard.id)

        assert results.record_count == 2
        assert [r["displayName"] for r in results.records] == ["Cal J Adams", "Ann Smith"]
        assert results.records[1]["ssn"] == "123456789"
        assert results.records[0]["employmentStatus"] == "active"
        assert results.generated_at == clock.now_utc()
        assert [c.header for c in results.columns] == [
            "Worker ID",
            "Worker Name",
            "SSN",
            "Employment Status",
        ]

        wizard = wizard_store.require(report_wizard.id)
        assert wizard.status == COMPLETED
        meta = wizard.data.get(ReportRunState).meta
        assert meta.record_count == 2
        assert meta.primary_key_field == "workerId"
        assert wizard_store.count_report_rows(report_wizard.id) == 2

    def test_progress_per_batch(self, report_service, report_wizard, workers):
        progress = []
        report_service.generate_report(report_wizard.id, batch_size=1, on_progress=progress.append)
        assert [(p.processed, p.total) for p in progress] == [(1, 2), (2, 2)]

    def test_regenerate_replaces_rows(
        self, report_service, report_wizard, workers, worker_store, clock
    ):
        report_service.generate_report(report_wizard.id)
        worker_store.update_birth_date(workers["ann"].id, "1990-01-01")
        clock.advance(60)

        results = report_service.generate_report(report_wizard.id)

        assert results.record_count == 1
        stored = report_service.get_report_results(report_wizard.id)
        assert [r["workerId"] for r in stored.records] == [str(workers["cal"].id)]
        assert stored.generated_at == clock.now_utc()

    def test_missing_primary_key_keeps_previous_rows(
        self, session, clock, wizard_store
    ):
        report = ListReport()
        registry = build_default_registry()
        registry.register(report)
        service = ReportService(session, registry, clock=clock)
        wizard = NavigationService(session, registry, clock=clock).create_wizard(report.name)

        report.records = [{"workerId": "a", "value": 1}]
        service.generate_report(wizard.id)

        report.records = [{"workerId": "b", "value": 2}, {"value": 3}]
        with pytest.raises(MissingPrimaryKeyError) as exc_info:
            service.generate_report(wizard.id)

        assert exc_info.value.primary_key_field == "workerId"
        assert wizard_store.list_report_rows(wizard.id) == [{"workerId": "a", "value": 1}]

    @pytest.fixture
    def list_report(self, session, clock):
        report = ListReport()
        registry = build_default_registry()
        registry.register(report)
        service = ReportService(session, registry, clock=clock)
        wizard = NavigationService(session, registry, clock=clock).create_wizard(report.name)
        return report, service, wizard

    def test_typed_values_match_read_back(self, list_report):
        report, service, wizard = list_report
        report.records = [
            {
                "workerId": UUID("12345678-1234-5678-1234-567812345678"),
                "born": date(1955, 6, 8),
                "value": Decimal("1.5"),
            }
        ]

        generated = service.generate_report(wizard.id)
        stored = service.get_report_results(wizard.id)

        assert generated.records == stored.records
        assert generated.records[0] == {
            "workerId": "12345678-1234-5678-1234-567812345678",
            "born": "1955-06-08",
            "value": "1.5",
        }

    def test_zero_records(self, list_report, wizard_store):
        report, service, wizard = list_report

        generated = service.generate_report(wizard.id)
        stored = service.get_report_results(wizard.id)

        assert generated.records == ()
        assert generated.record_count == 0
        assert stored is not None
        assert stored.records == ()
        assert stored.record_count == 0
        assert wizard_store.require(wizard.id).data.get(ReportRunState).meta.record_count == 0
        assert wizard_store.count_report_rows(wizard.id) == 0

    def test_not_a_report(self, report_service, feed_wizard):
        with pytest.raises(WizardTypeNotFoundError):
            report_service.generate_report(feed_wizard.id)

    def test_logs_report_context(self, report_service, report_wizard, workers, captured_logs):
        report_service.generate_report(report_wizard.id)
        generated = [r for r in captured_logs() if r["message"] == "report_generated"]
        assert generated[0]["producer"] == "reports"
        assert generated[0]["wizard_id"] == str(report_wizard.id)
        assert generated[0]["record_count"] == 2


class TestReadResults:
    def test_none_before_generation(self, report_service, report_wizard):
        assert report_service.get_report_results(report_wizard.id) is None
        assert report_service.export_report_csv(report_wizard.id) is None

    def test_meta_wins_over_stored_rows(
        self, report_service, report_wizard, workers, wizard_store, captured_logs
    ):
        report_service.generate_report(report_wizard.id)
        wizard_store.delete_report_rows(report_wizard.id)

        results = report_service.get_report_results(report_wizard.id)

        assert results.record_count == 2
        assert results.records == ()
        mismatch = [r for r in captured_logs() if r["message"] == "report_row_count_mismatch"]
        assert mismatch[0]["level"] == "WARNING"
        assert (mismatch[0]["record_count"], mismatch[0]["stored_rows"]) == (2, 0)

    def test_page(self, report_service, report_wizard, workers):
        report_service.generate_report(report_wizard.id)

        page = report_service.get_report_page(report_wizard.id, offset=1, limit=1)

        assert page.total == 2
        assert [r["displayName"] for r in page.records] == ["Ann Smith"]
        assert [c.id for c in page.columns][0] == "workerId"

    @pytest.mark.parametrize("offset,limit", [(-1, 10), (0, 0)])
    def test_page_rejects_bad_window(self, report_service, report_wizard, offset, limit):
        with pytest.raises(ValueError):
            report_service.get_report_page(report_wizard.id, offset, limit)

    def test_export_csv(self, report_service, report_wizard, workers):
        report_service.generate_report(report_wizard.id)

        file_name, content = report_service.export_report_csv(report_wizard.id)

        assert file_name == "report_workers_missing_birth_date_2024-01-01.csv"
        lines = content.decode("utf-8").splitlines()
        assert lines[0] == "Worker ID,Worker Name,SSN,Employment Status"
        assert lines[2] == f"{workers['ann'].id},Ann Smith,123456789,"


class TestReportInputs:
    def test_save_inputs(self, report_service, report_wizard, wizard_store):
        report_service.save_report_inputs(report_wizard.id, {"minHours": 10}, "7days")
        wizard = wizard_store.require(report_wizard.id)
        assert wizard.status == IN_PROGRESS
        assert wizard.data.get(ReportInputsState) == ReportInputsState(
            config={"minHours": 10}, retention="7days"
        )

    def test_unknown_retention(self, report_service, report_wizard):
        with pytest.raises(ValueError, match="Unknown report retention 'forever'"):
            report_service.save_report_inputs(report_wizard.id, {}, "forever")


class TestMonthlyHoursReport:
    @pytest.fixture
    def hours(self, worker_store, employer_id):
        ann = worker_store.create("Ann", "Smith")
        bob = worker_store.create("Bob", "Jones")
        worker_store.record_monthly_hours(ann.id, employer_id, 2024, 3, Decimal("100"))
        worker_store.record_monthly_hours(bob.id, employer_id, 2024, 3, Decimal("40"))
        worker_store.record_monthly_hours(ann.id, employer_id, 2023, 12, Decimal("90"))
        return {"ann": ann, "bob": bob}

    def test_default_threshold(self, navigation, report_service, hours, employer_id):
        wizard = navigation.create_wizard(MONTHLY_HOURS)
        results = report_service.generate_report(wizard.id)

        assert [r["workMonth"] for r in results.records] == ["December 2023", "March 2024"]
        march = results.records[1]
        assert march["recordKey"] == f"{hours['ann'].id}-{employer_id}-2024-3"
        assert march["totalHours"] == 100.0
        assert results.primary_key_field == "recordKey"

    def test_configured_threshold_and_year(self, navigation, report_service, hours):
        wizard = navigation.create_wizard(MONTHLY_HOURS)
        report_service.save_report_inputs(wizard.id, {"minHours": 30, "year": 2024})

        results = report_service.generate_report(wizard.id)

        assert [r["displayName"] for r in results.records] == ["Ann Smith", "Bob Jones"]
