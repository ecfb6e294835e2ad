"""Tests for wizard creation and step navigation."""

from uuid import uuid4

import pytest

from sirius_kernel.exceptions import (
    InvalidStepTransitionError,
    WizardNotFoundError,
    WizardTypeNotFoundError,
)
from sirius_wizards.base import COMPLETED, DRAFT, IN_PROGRESS
from sirius_wizards.state import StepProgressStatus

LEGAL_WORKERS = "gbhet_legal_workers"
REPORT = "report_workers_missing_birth_date"


class TestCreateWizard:
    def test_created_as_draft_on_first_step(self, navigation, employer_id, clock):
        wizard = navigation.create_wizard(LEGAL_WORKERS, employer_id, {"year": 2024, "month": 3})

        assert wizard.status == DRAFT
        assert wizard.current_step == "upload"
        assert wizard.entity_id == employer_id
        assert wizard.data.params == {"year": 2024, "month": 3}
        assert wizard.data.progress["upload"].status == StepProgressStatus.IN_PROGRESS
        assert wizard.data.states == {}

    def test_report_starts_on_inputs(self, navigation):
        assert navigation.create_wizard(REPORT).current_step == "inputs"

    def test_unknown_type(self, navigation):
        with pytest.raises(WizardTypeNotFoundError):
            navigation.create_wizard("no_such_wizard")

    def test_logs_creation(self, navigation, captured_logs):
        wizard = navigation.create_wizard(REPORT)
        created = [r for r in captured_logs() if r["message"] == "wizard_created"]
        assert created[0]["wizard_id"] == str(wizard.id)
        assert created[0]["wizard_type"] == REPORT


class TestStepNavigation:
    def test_advance_completes_current_step(self, navigation, feed_wizard, clock):
        wizard = navigation.advance_step(feed_wizard.id, {"note": "checked"})

        assert wizard.current_step == "map"
        assert wizard.status == IN_PROGRESS
        upload = wizard.data.progress["upload"]
        assert upload.status == StepProgressStatus.COMPLETED
        assert upload.completed_at == clock.now_utc()
        assert upload.payload == {"note": "checked"}
        assert wizard.data.progress["map"].status == StepProgressStatus.IN_PROGRESS

    def test_advance_keeps_terminal_status(self, navigation, feed_wizard, wizard_store):
        wizard_store.update(feed_wizard.id, status=COMPLETED)
        assert navigation.advance_step(feed_wizard.id).status == COMPLETED

    def test_cannot_advance_past_last_step(self, navigation, feed_wizard):
        for _ in range(4):
            navigation.advance_step(feed_wizard.id)
        assert navigation.get_wizard(feed_wizard.id).current_step == "review"

        with pytest.raises(InvalidStepTransitionError, match="Already on last step"):
            navigation.advance_step(feed_wizard.id)

    def test_retreat(self, navigation, feed_wizard):
        navigation.advance_step(feed_wizard.id)

        wizard = navigation.retreat_step(feed_wizard.id)

        assert wizard.current_step == "upload"
        assert wizard.data.progress["map"].status == StepProgressStatus.PENDING
        assert wizard.data.progress["upload"].status == StepProgressStatus.IN_PROGRESS

    def test_cannot_retreat_from_first_step(self, navigation, feed_wizard):
        with pytest.raises(InvalidStepTransitionError, match="Already on first step"):
            navigation.retreat_step(feed_wizard.id)

    def test_unknown_current_step(self, navigation, feed_wizard, wizard_store):
        wizard_store.update(feed_wizard.id, current_step="bogus")
        with pytest.raises(InvalidStepTransitionError, match="Current step not found"):
            navigation.advance_step(feed_wizard.id)


class TestListAndDelete:
    def test_list_filters(self, navigation, employer_id):
        feed = navigation.create_wizard(LEGAL_WORKERS, employer_id)
        report = navigation.create_wizard(REPORT)

        assert {w.id for w in navigation.list_wizards()} == {feed.id, report.id}
        assert [w.id for w in navigation.list_wizards(wizard_type=REPORT)] == [report.id]
        assert [w.id for w in navigation.list_wizards(entity_id=employer_id)] == [feed.id]
        assert navigation.list_wizards(status=COMPLETED) == []

    def test_delete_removes_report_rows(
        self, navigation, report_service, worker_store, wizard_store
    ):
        worker_store.create("Ann", "Smith")
        report = navigation.create_wizard(REPORT)
        report_service.generate_report(report.id)
        assert wizard_store.count_report_rows(report.id) == 1

        assert navigation.delete_wizard(report.id) is True

        assert wizard_store.count_report_rows(report.id) == 0
        with pytest.raises(WizardNotFoundError):
            navigation.get_wizard(report.id)

    def test_delete_missing(self, navigation):
        assert navigation.delete_wizard(uuid4()) is False
