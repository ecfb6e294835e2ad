"""Tests for the legal workers feed hooks and reporting period."""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from sirius_wizards.base import DRAFT
from sirius_wizards.dtos import Wizard
from sirius_wizards.models.worker import WorkerHoursModel
from sirius_wizards.state import WizardData
from sirius_wizards.types.legal_workers import LegalWorkersHooks, reporting_period

WIZARD = Wizard(
    id=uuid4(),
    type="gbhet_legal_workers",
    status=DRAFT,
    current_step="process",
    entity_id=uuid4(),
    date=datetime(2024, 5, 20, tzinfo=timezone.utc),
    data=WizardData(params={"year": 2024, "month": 3}),
)


@pytest.fixture
def hooks(worker_store):
    return LegalWorkersHooks(worker_store)


@pytest.fixture
def worker(worker_store):
    return worker_store.create("Ann", "Smith")


class TestReportingPeriod:
    def test_from_params(self):
        assert reporting_period(WIZARD) == (2024, 3)

    def test_falls_back_to_wizard_date(self):
        assert reporting_period(replace(WIZARD, data=WizardData())) == (2024, 5)

    def test_rejects_bad_month(self):
        with pytest.raises(ValueError, match="Invalid reporting month: 13"):
            reporting_period(replace(WIZARD, data=WizardData(params={"month": 13})))


class TestHoursHook:
    def test_records_hours_and_status(self, hooks, worker, worker_store, session):
        hooks.process_worker_hours(
            worker.id, {"hours": " 37.5 ", "employmentStatus": "Active"}, WIZARD
        )

        row = session.scalars(select(WorkerHoursModel)).one()
        assert (row.employer_id, row.year, row.month) == (WIZARD.entity_id, 2024, 3)
        assert row.hours == Decimal("37.5")
        assert worker_store.get(worker.id).employment_status == "active"

    def test_blank_hours_skipped(self, hooks, worker, session):
        hooks.process_worker_hours(worker.id, {"hours": ""}, replace(WIZARD, entity_id=None))
        assert session.scalars(select(WorkerHoursModel)).all() == []

    @pytest.mark.parametrize(
        "value,message",
        [("-1", "Hours cannot be negative: -1"), ("lots", "Invalid hours value: lots")],
    )
    def test_bad_hours(self, hooks, worker, value, message):
        with pytest.raises(ValueError, match=message):
            hooks.process_worker_hours(worker.id, {"hours": value}, WIZARD)


class TestContactHook:
    def test_updates_contact_info(self, hooks, worker, worker_store):
        hooks.process_worker_contact_info(
            worker.id, {"email": "ann@example.com", "phone": ""}, WIZARD
        )
        updated = worker_store.get(worker.id)
        assert (updated.email, updated.phone) == ("ann@example.com", None)

    def test_nothing_to_update(self, hooks, worker, worker_store):
        hooks.process_worker_contact_info(worker.id, {}, WIZARD)
        assert worker_store.get(worker.id).email is None
