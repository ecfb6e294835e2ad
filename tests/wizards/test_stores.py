"""Tests for the wizard, file, worker, and object stores."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from sirius_kernel.exceptions import (
    DuplicateSsnError,
    InvalidSsnError,
    ObjectNotFoundError,
    StorageError,
    WizardNotFoundError,
)
from sirius_wizards.base import DRAFT, IN_PROGRESS
from sirius_wizards.dtos import NewFile
from sirius_wizards.models.worker import WorkerHoursModel
from sirius_wizards.state import UploadState, WizardData
from sirius_wizards.storage import FileStore

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestWizardStore:
    def test_create_and_update_round_trip(self, wizard_store):
        file_id = uuid4()
        wizard = wizard_store.create("gbhet_legal_workers", DRAFT, NOW, "upload")

        updated = wizard_store.update(
            wizard.id,
            status=IN_PROGRESS,
            data=WizardData(params={"month": 3}).with_state(
                UploadState(uploaded_file_id=file_id), ["upload", "map"]
            ),
        )

        assert updated.status == IN_PROGRESS
        assert updated.current_step == "upload"
        reloaded = wizard_store.require(wizard.id)
        assert reloaded.data.get(UploadState).uploaded_file_id == file_id
        assert reloaded.data.params == {"month": 3}

    def test_update_missing(self, wizard_store):
        with pytest.raises(WizardNotFoundError):
            wizard_store.update(uuid4(), status=DRAFT)

    def test_report_rows_ordered_and_paged(self, wizard_store):
        wizard = wizard_store.create("report_workers_missing_birth_date", DRAFT, NOW)
        for position, pk in enumerate(["c", "a", "b"]):
            wizard_store.save_report_row(wizard.id, pk, {"workerId": pk}, NOW, position)

        assert [r["workerId"] for r in wizard_store.list_report_rows(wizard.id)] == ["c", "a", "b"]
        assert wizard_store.page_report_rows(wizard.id, 1, 5) == [{"workerId": "a"}, {"workerId": "b"}]
        assert wizard_store.count_report_rows(wizard.id) == 3

    def test_delete_report_rows_before_cutoff(self, wizard_store):
        wizard = wizard_store.create("report_workers_missing_birth_date", DRAFT, NOW)
        wizard_store.save_report_row(wizard.id, "old", {"workerId": "old"}, NOW - timedelta(days=3), 0)
        wizard_store.save_report_row(wizard.id, "new", {"workerId": "new"}, NOW, 1)

        assert wizard_store.delete_report_rows(wizard.id, before=NOW - timedelta(days=1)) == 1
        assert wizard_store.list_report_rows(wizard.id) == [{"workerId": "new"}]

    def test_feed_mapping_upsert(self, wizard_store):
        assert wizard_store.get_feed_mapping("clerk", "gbhet_legal_workers", "abc") is None
        wizard_store.save_feed_mapping("clerk", "gbhet_legal_workers", "abc", {"0": "ssn"})
        wizard_store.save_feed_mapping("clerk", "gbhet_legal_workers", "abc", {"1": "ssn"})
        assert wizard_store.get_feed_mapping("clerk", "gbhet_legal_workers", "abc") == {"1": "ssn"}
        assert wizard_store.get_feed_mapping("other", "gbhet_legal_workers", "abc") is None


class TestFileStore:
    def test_create_get_delete(self, session):
        files = FileStore(session)
        stored = files.create(
            NewFile("a.csv", "wizards/x/a.csv", "text/csv", 10, metadata={"wizardId": "x"})
        )

        assert files.get(stored.id).wizard_id == "x"
        assert stored.uploaded_at is not None
        assert files.delete(stored.id) is True
        assert files.get(stored.id) is None
        assert files.delete(stored.id) is False


class TestSqlWorkerStore:
    def test_create_sets_display_name(self, worker_store):
        worker = worker_store.create("Ann", "Smith", middle_name="Q")
        assert worker.display_name == "Ann Q Smith"
        assert worker_store.get(worker.id).display_name == "Ann Q Smith"

    def test_update_name_components_partial(self, worker_store):
        worker = worker_store.create("Ann", "Smith")
        updated = worker_store.update_name_components(worker.id, family_name="Jones")
        assert (updated.given_name, updated.family_name) == ("Ann", "Jones")

    def test_ssn_normalized_and_unique(self, worker_store):
        ann = worker_store.create("Ann", "Smith")
        bob = worker_store.create("Bob", "Jones")

        assert worker_store.update_ssn(ann.id, "123-45-6789").ssn == "123456789"
        with pytest.raises(DuplicateSsnError):
            worker_store.update_ssn(bob.id, "123456789")
        with pytest.raises(InvalidSsnError):
            worker_store.update_ssn(bob.id, "000-12-3456")
        assert worker_store.update_ssn(ann.id, "").ssn is None

    def test_birth_date(self, worker_store):
        worker = worker_store.create("Ann", "Smith")
        assert worker_store.update_birth_date(worker.id, "1980-02-01").birth_date.year == 1980
        assert worker_store.update_birth_date(worker.id, None).birth_date is None

    def test_contact_info_keeps_missing_values(self, worker_store):
        worker = worker_store.create("Ann", "Smith")
        worker_store.update_contact_info(worker.id, email="ann@example.com", phone="555-0100")
        updated = worker_store.update_contact_info(worker.id, phone="555-0199")
        assert (updated.email, updated.phone) == ("ann@example.com", "555-0199")

    def test_monthly_hours_replaced(self, worker_store, session, employer_id):
        worker = worker_store.create("Ann", "Smith")
        worker_store.record_monthly_hours(worker.id, employer_id, 2024, 3, Decimal("10"))
        worker_store.record_monthly_hours(worker.id, employer_id, 2024, 3, Decimal("12.25"))

        rows = session.scalars(select(WorkerHoursModel)).all()
        assert len(rows) == 1
        assert rows[0].hours == Decimal("12.25")

    def test_unknown_worker(self, worker_store):
        with pytest.raises(ValueError, match="Worker not found"):
            worker_store.update_employment_status(uuid4(), "active")


class TestFilesystemObjectStorage:
    def test_round_trip(self, object_storage):
        object_storage.upload("wizards/w/a.csv", b"abc", "text/csv")
        assert object_storage.download("wizards/w/a.csv") == b"abc"
        assert object_storage.delete("wizards/w/a.csv") is True
        assert object_storage.delete("wizards/w/a.csv") is False

    def test_missing_object(self, object_storage):
        with pytest.raises(ObjectNotFoundError):
            object_storage.download("nope.csv")

    @pytest.mark.parametrize("path", ["../escape.csv", "/etc/passwd", "a/../../b"])
    def test_rejects_paths_outside_root(self, object_storage, path):
        with pytest.raises(StorageError):
            object_storage.upload(path, b"x")
