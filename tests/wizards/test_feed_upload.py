"""Tests for the upload and map steps of FeedService."""

from dataclasses import replace
from uuid import uuid4

import pytest

from sirius_config.schema import CSV_MIME_TYPE
from sirius_ingestion.domain.types import FeedMode
from sirius_kernel.exceptions import (
    DuplicateColumnMappingError,
    FileNotAssociatedError,
    FileTooLargeError,
    InvalidColumnIndexError,
    ObjectNotFoundError,
    UnknownMappedFieldError,
    UnsupportedFileTypeError,
    WizardNotFoundError,
)
from sirius_wizards.base import DRAFT, IN_PROGRESS
from sirius_wizards.dtos import NewFile
from sirius_wizards.services import FeedService
from sirius_wizards.state import MapState, UploadState, ValidateState

HEADER = "SSN,First,Last,Birth Date,Hours"
MAPPING = {"0": "ssn", "1": "firstName", "2": "lastName", "3": "birthDate", "4": "hours"}


class TestUploadFile:
    def test_upload_stores_blob_and_sets_state(
        self, feed_service, feed_wizard, upload_csv, wizard_store, object_storage
    ):
        assert feed_wizard.status == DRAFT
        stored = upload_csv(HEADER, "123-45-6789,Ann,Smith,,40")

        assert stored.wizard_id == str(feed_wizard.id)
        assert stored.mime_type == CSV_MIME_TYPE
        assert stored.storage_path == f"wizards/{feed_wizard.id}/20240101120000_roster.csv"
        assert object_storage.download(stored.storage_path).startswith(b"SSN,First")

        wizard = wizard_store.require(feed_wizard.id)
        assert wizard.status == IN_PROGRESS
        assert wizard.data.get(UploadState).uploaded_file_id == stored.id

    def test_unsafe_file_name_sanitized(self, upload_csv, feed_wizard):
        stored = upload_csv(HEADER, file_name="../../etc/passwd roster.csv")
        assert stored.storage_path == (
            f"wizards/{feed_wizard.id}/20240101120000_.._.._etc_passwd_roster.csv"
        )
        assert stored.file_name == "../../etc/passwd roster.csv"

    def test_unsupported_type(self, feed_service, feed_wizard):
        with pytest.raises(UnsupportedFileTypeError):
            feed_service.upload_file(feed_wizard.id, "x.pdf", b"%PDF", "application/pdf")

    def test_too_large(self, session, object_storage, registry, clock, settings, feed_wizard):
        service = FeedService(
            session,
            object_storage,
            registry,
            clock=clock,
            settings=replace(settings, max_upload_bytes=10),
        )
        with pytest.raises(FileTooLargeError) as exc_info:
            service.upload_file(feed_wizard.id, "r.csv", b"x" * 11, CSV_MIME_TYPE)
        assert exc_info.value.limit == 10

    def test_unknown_wizard(self, feed_service):
        with pytest.raises(WizardNotFoundError):
            feed_service.upload_file(uuid4(), "r.csv", b"a\n", CSV_MIME_TYPE)

    def test_new_upload_clears_downstream_state(
        self, feed_service, feed_wizard, upload_csv, wizard_store, clock
    ):
        upload_csv(HEADER, "123-45-6789,Ann,Smith,,40")
        feed_service.save_column_mapping(feed_wizard.id, MAPPING)
        feed_service.validate_feed_data(feed_wizard.id)

        clock.advance(5)
        second = upload_csv(HEADER, "234-56-7890,Bob,Jones,,10")

        data = wizard_store.require(feed_wizard.id).data
        assert data.get(UploadState).uploaded_file_id == second.id
        assert data.get(MapState) is None
        assert data.get(ValidateState) is None


class TestAssociatedFiles:
    def test_associate_existing_blob(self, feed_service, feed_wizard, object_storage):
        object_storage.upload("external/roster.csv", b"SSN\n123456789\n")
        stored = feed_service.associate_file(
            feed_wizard.id,
            NewFile(
                file_name="roster.csv",
                storage_path="external/roster.csv",
                mime_type=CSV_MIME_TYPE,
                size=14,
                metadata={"source": "sftp"},
            ),
        )
        assert stored.metadata == {"source": "sftp", "wizardId": str(feed_wizard.id)}
        assert [f.id for f in feed_service.get_associated_files(feed_wizard.id)] == [stored.id]

    def test_associate_rejects_mime_type(self, feed_service, feed_wizard):
        with pytest.raises(UnsupportedFileTypeError):
            feed_service.associate_file(
                feed_wizard.id, NewFile("a.txt", "a.txt", "text/plain", 1)
            )

    def test_files_scoped_to_wizard(self, feed_service, feed_wizard, navigation, upload_csv):
        other = navigation.create_wizard("gbhet_legal_workers")
        mine = upload_csv(HEADER)
        upload_csv(HEADER, wizard_id=other.id, file_name="other.csv")
        assert [f.id for f in feed_service.get_associated_files(feed_wizard.id)] == [mine.id]

    def test_delete_current_upload(
        self, feed_service, feed_wizard, upload_csv, wizard_store, object_storage
    ):
        stored = upload_csv(HEADER)
        feed_service.save_column_mapping(feed_wizard.id, MAPPING)

        assert feed_service.delete_associated_file(stored.id, feed_wizard.id) is True

        data = wizard_store.require(feed_wizard.id).data
        assert data.get(UploadState) is None
        assert data.get(MapState) is None
        assert feed_service.get_associated_files(feed_wizard.id) == []
        with pytest.raises(ObjectNotFoundError):
            object_storage.download(stored.storage_path)

    def test_delete_missing_returns_false(self, feed_service, feed_wizard):
        assert feed_service.delete_associated_file(uuid4(), feed_wizard.id) is False

    def test_delete_foreign_file_rejected(self, feed_service, feed_wizard, navigation, upload_csv):
        other = navigation.create_wizard("gbhet_legal_workers")
        foreign = upload_csv(HEADER, wizard_id=other.id)
        with pytest.raises(FileNotAssociatedError):
            feed_service.delete_associated_file(foreign.id, feed_wizard.id)


class TestPreview:
    def test_preview_uses_header_and_limit(self, feed_service, feed_wizard, upload_csv):
        upload_csv(HEADER, *[f"12345678{i},A{i},B{i},,1" for i in range(5)])
        probe = feed_service.preview_file(feed_wizard.id, limit=2)
        assert probe.row_count == 5
        assert probe.columns == ("SSN", "First", "Last", "Birth Date", "Hours")
        assert len(probe.sample_rows) == 2


class TestColumnMapping:
    def test_save_mapping(self, feed_service, feed_wizard, upload_csv, wizard_store):
        upload_csv(HEADER)
        state = feed_service.save_column_mapping(
            feed_wizard.id, {**MAPPING, "5": "_unmapped"}, FeedMode.UPDATE, has_headers=False
        )
        assert state.column_mapping == MAPPING
        stored = wizard_store.require(feed_wizard.id).data.get(MapState)
        assert stored == state
        assert stored.mode == FeedMode.UPDATE
        assert stored.has_headers is False

    def test_duplicate_rejected(self, feed_service, feed_wizard, upload_csv):
        upload_csv(HEADER)
        with pytest.raises(DuplicateColumnMappingError):
            feed_service.save_column_mapping(feed_wizard.id, {"0": "ssn", "1": "ssn"})

    def test_non_numeric_column_rejected(self, feed_service, feed_wizard, upload_csv, wizard_store):
        upload_csv(HEADER)
        with pytest.raises(InvalidColumnIndexError):
            feed_service.save_column_mapping(feed_wizard.id, {"ssn": "ssn"})
        assert wizard_store.require(feed_wizard.id).data.get(MapState) is None

    def test_unknown_field_rejected(self, feed_service, feed_wizard, upload_csv):
        upload_csv(HEADER)
        with pytest.raises(UnknownMappedFieldError) as exc_info:
            feed_service.save_column_mapping(feed_wizard.id, {"0": "ssn", "1": "shoeSize"})
        assert exc_info.value.field_ids == ["shoeSize"]

    def test_suggest_guesses_from_header(self, feed_service, feed_wizard, upload_csv):
        upload_csv("SSN,First Name,Last Name,Birth Date,Hours,Notes")
        assert feed_service.suggest_column_mapping(feed_wizard.id) == {
            "0": "ssn",
            "1": "firstName",
            "2": "lastName",
            "3": "birthDate",
            "4": "hours",
        }

    def test_remembered_mapping_for_same_layout(
        self, feed_service, feed_wizard, navigation, upload_csv
    ):
        custom = {"0": "ssn", "1": "lastName", "2": "firstName"}
        upload_csv(HEADER, "123456789,Ann,Smith,,1")
        feed_service.save_column_mapping(feed_wizard.id, custom, user_id="clerk")

        second = navigation.create_wizard("gbhet_legal_workers")
        upload_csv(HEADER, "234567890,Bob,Jones,,2", wizard_id=second.id, file_name="april.csv")

        assert feed_service.suggest_column_mapping(second.id, user_id="clerk") == custom
        # Other users get the header guess
        assert feed_service.suggest_column_mapping(second.id, user_id="someone") != custom
