"""
Feed service: upload -> map -> validate -> process for worker feeds.

Orchestrates object storage, source adapters, the column mapping engine, row
validators, and the worker record store. Every collaborator is injected;
defaults are built from the session. Never commits.

Error policy:
    - Configuration errors (missing wizard/upload/file, duplicate mapping,
      unsupported type, process before validate) abort the operation.
    - Row validation errors are collected, capped per (field, message).
    - Row processing errors are caught per row inside a SAVEPOINT and
      recorded as failures; the batch continues.
    - Hook errors are appended to an otherwise successful row's message.
    - Results file errors are logged and swallowed.
"""

from __future__ import annotations

import re
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from sirius_config import get_settings
from sirius_config.schema import WizardSettings
from sirius_ingestion.adapters import SourceProbe, adapter_for_mime_type
from sirius_ingestion.domain.types import (
    FeedMode,
    ProcessProgress,
    ProcessResults,
    RowAction,
    RowResult,
    RowStatus,
    ValidationProgress,
    ValidationResults,
)
from sirius_ingestion.domain.validators import ErrorCollector, is_empty
from sirius_ingestion.mapping import ColumnMapping, first_row_hash, guess_column_mapping, split_header
from sirius_kernel.domain.clock import Clock, SystemClock
from sirius_kernel.domain.dates import parse_birth_date
from sirius_kernel.domain.ssn import parse_ssn
from sirius_kernel.exceptions import (
    FileNotAssociatedError,
    FileTooLargeError,
    MissingRequiredValueError,
    MissingValidationResultsError,
    NoUploadedFileError,
    ObjectNotFoundError,
    StoredFileNotFoundError,
    UnknownMappedFieldError,
    UnsupportedFileTypeError,
    WorkerNotFoundError,
)
from sirius_kernel.logging_config import LogContext, get_logger
from sirius_wizards.base import COMPLETED, DRAFT, IN_PROGRESS
from sirius_wizards.dtos import NewFile, StoredFile, Wizard, WorkerRecord
from sirius_wizards.feed import (
    BIRTH_DATE_FIELD,
    FIRST_NAME_FIELD,
    LAST_NAME_FIELD,
    MIDDLE_NAME_FIELD,
    SSN_FIELD,
    FeedHooks,
    FeedWizard,
)
from sirius_wizards.registry import WizardRegistry
from sirius_wizards.services.results_export import build_results_csv, format_output_filename
from sirius_wizards.state import MapState, ProcessState, UploadState, ValidateState
from sirius_wizards.storage.file_store import FileStore
from sirius_wizards.storage.object_storage import ObjectStorage
from sirius_wizards.storage.wizard_store import WizardStore
from sirius_wizards.storage.worker_store import SqlWorkerStore, WorkerRecordStore

logger = get_logger("wizards.feed_service")

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_filename(name: str) -> str:
    return _UNSAFE_FILENAME.sub("_", name).strip("_") or "upload"


class FeedService:
    """Drives feed wizards. One instance per session."""

    def __init__(
        self,
        session: Session,
        object_storage: ObjectStorage,
        registry: WizardRegistry,
        *,
        wizard_store: WizardStore | None = None,
        file_store: FileStore | None = None,
        worker_store: WorkerRecordStore | None = None,
        hooks: FeedHooks | None = None,
        clock: Clock | None = None,
        settings: WizardSettings | None = None,
    ):
        self._session = session
        self._objects = object_storage
        self._registry = registry
        self._wizards = wizard_store or WizardStore(session)
        self._files = file_store or FileStore(session)
        self._workers = worker_store or SqlWorkerStore(session)
        self._hooks = hooks
        self._clock = clock or SystemClock()
        self._settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Upload step
    # -------------------------------------------------------------------------

    def _check_mime_type(self, mime_type: str | None) -> None:
        if mime_type and mime_type not in self._settings.allowed_mime_types:
            raise UnsupportedFileTypeError(mime_type)

    def upload_file(
        self,
        wizard_id: UUID,
        file_name: str,
        content: bytes,
        mime_type: str,
        uploaded_by: str | None = None,
    ) -> StoredFile:
        """Store the blob, then associate it with the wizard as its current upload."""
        wizard = self._wizards.require(wizard_id)
        self._check_mime_type(mime_type)
        if len(content) > self._settings.max_upload_bytes:
            raise FileTooLargeError(len(content), self._settings.max_upload_bytes)

        stamp = self._clock.now_utc().strftime("%Y%m%d%H%M%S")
        storage_path = f"wizards/{wizard.id}/{stamp}_{_safe_filename(file_name)}"
        self._objects.upload(storage_path, content, mime_type)

        return self.associate_file(
            wizard_id,
            NewFile(
                file_name=file_name,
                storage_path=storage_path,
                mime_type=mime_type,
                size=len(content),
                uploaded_by=uploaded_by,
                entity_type="wizard",
                entity_id=wizard.id,
            ),
        )

    def associate_file(self, wizard_id: UUID, new_file: NewFile) -> StoredFile:
        """
        Record a stored file against the wizard and make it the current upload.

        Clears column mapping, validation and processing state along with the
        progress markers of every later step.
        """
        self._check_mime_type(new_file.mime_type)
        wizard = self._wizards.require(wizard_id)
        feed = self._registry.require_feed(wizard.type)

        stored = self._files.create(
            NewFile(
                file_name=new_file.file_name,
                storage_path=new_file.storage_path,
                mime_type=new_file.mime_type,
                size=new_file.size,
                uploaded_by=new_file.uploaded_by,
                entity_type=new_file.entity_type,
                entity_id=new_file.entity_id,
                access_level=new_file.access_level,
                metadata={**new_file.metadata, "wizardId": str(wizard_id)},
            )
        )

        data = wizard.data.with_state(UploadState(uploaded_file_id=stored.id), feed.step_ids())
        status = IN_PROGRESS if wizard.status == DRAFT else wizard.status
        self._wizards.update(wizard_id, status=status, data=data)

        with LogContext.bind(wizard_id=str(wizard_id), producer="feeds"):
            logger.info(
                "feed_file_associated",
                extra={"file_id": str(stored.id), "mime_type": stored.mime_type, "size": stored.size},
            )
        return stored

    def get_associated_files(self, wizard_id: UUID) -> list[StoredFile]:
        return self._files.list_for_wizard(wizard_id)

    def delete_associated_file(self, file_id: UUID, wizard_id: UUID) -> bool:
        """
        Delete a wizard's file and its blob.

        Returns False when the file does not exist. Deleting the current
        upload clears the upload step and everything after it.
        """
        stored = self._files.get(file_id)
        if stored is None:
            return False
        if stored.wizard_id != str(wizard_id):
            raise FileNotAssociatedError(file_id, wizard_id)

        self._files.delete(file_id)
        self._objects.delete(stored.storage_path)

        wizard = self._wizards.get(wizard_id)
        if wizard is not None:
            upload = wizard.data.get(UploadState)
            if upload is not None and upload.uploaded_file_id == file_id:
                feed = self._registry.require_feed(wizard.type)
                self._wizards.update(
                    wizard_id, data=wizard.data.without_state(UploadState.step_id, feed.step_ids())
                )

        logger.info(
            "feed_file_deleted", extra={"wizard_id": str(wizard_id), "file_id": str(file_id)}
        )
        return True

    # -------------------------------------------------------------------------
    # Map step
    # -------------------------------------------------------------------------

    def preview_file(self, wizard_id: UUID, limit: int | None = None) -> SourceProbe:
        wizard = self._wizards.require(wizard_id)
        stored = self._uploaded_file(wizard)
        mapping = wizard.data.get(MapState)
        has_headers = mapping.has_headers if mapping else True
        adapter = adapter_for_mime_type(stored.mime_type)
        return adapter.probe(
            self._download(stored),
            {
                "has_header": has_headers,
                "mime_type": stored.mime_type,
                "sample_size": limit or self._settings.preview_rows,
            },
        )

    def save_column_mapping(
        self,
        wizard_id: UUID,
        column_mapping: dict[str, str],
        mode: FeedMode = FeedMode.CREATE,
        has_headers: bool = True,
        user_id: str | None = None,
    ) -> MapState:
        """
        Store the map step. Clears validation and processing state.

        When ``user_id`` is given the mapping is remembered for this uploader,
        feed type, and file layout.
        """
        wizard = self._wizards.require(wizard_id)
        feed = self._registry.require_feed(wizard.type)

        validated = ColumnMapping.from_dict(column_mapping)
        known = {f.id for f in feed.get_fields()}
        unknown = sorted(set(validated.field_ids) - known)
        if unknown:
            raise UnknownMappedFieldError(unknown)

        state = MapState(column_mapping=validated.to_dict(), mode=FeedMode(mode), has_headers=has_headers)
        self._wizards.update(wizard_id, data=wizard.data.with_state(state, feed.step_ids()))

        if user_id:
            row_hash = first_row_hash(self._read_rows(self._uploaded_file(wizard)))
            if row_hash:
                self._wizards.save_feed_mapping(user_id, wizard.type, row_hash, state.column_mapping)

        logger.info(
            "feed_mapping_saved",
            extra={"wizard_id": str(wizard_id), "mode": state.mode.value, "fields": list(validated.field_ids)},
        )
        return state

    def suggest_column_mapping(self, wizard_id: UUID, user_id: str | None = None) -> dict[str, str]:
        """A remembered mapping for this file layout, else a guess from header labels."""
        wizard = self._wizards.require(wizard_id)
        feed = self._registry.require_feed(wizard.type)
        rows = self._read_rows(self._uploaded_file(wizard))

        if user_id:
            row_hash = first_row_hash(rows)
            remembered = self._wizards.get_feed_mapping(user_id, wizard.type, row_hash) if row_hash else None
            if remembered is not None:
                return remembered

        if not rows:
            return {}
        return guess_column_mapping(rows[0], feed.get_fields())

    # -------------------------------------------------------------------------
    # Validate step
    # -------------------------------------------------------------------------

    def validate_feed_data(
        self,
        wizard_id: UUID,
        batch_size: int | None = None,
        on_progress: Callable[[ValidationProgress], None] | None = None,
    ) -> ValidationResults:
        """
        Validate every mapped row of the uploaded file and store the results.

        Raises:
            WizardNotFoundError, NoUploadedFileError, DuplicateColumnMappingError,
            StoredFileNotFoundError, UnsupportedFileTypeError, FileDecodeError.
        """
        batch_size = batch_size or self._settings.batch_size
        wizard = self._wizards.require(wizard_id)
        feed = self._registry.require_feed(wizard.type)
        self._upload_state(wizard)
        map_state = wizard.data.get(MapState) or MapState(column_mapping={})
        mapping = ColumnMapping.from_dict(map_state.column_mapping)

        with LogContext.bind(wizard_id=str(wizard_id), producer="feeds"):
            _, data_rows = split_header(
                self._read_rows(self._uploaded_file(wizard)), map_state.has_headers
            )
            total = len(data_rows)
            logger.info(
                "feed_validation_started",
                extra={"total_rows": total, "mode": map_state.mode.value, "batch_size": batch_size},
            )

            collector = ErrorCollector(self._settings.error_limit_per_type)
            for start in range(0, total, batch_size):
                for offset, raw in enumerate(data_rows[start : start + batch_size]):
                    row = mapping.apply(raw)
                    collector.add_row(feed.validate_row(row, start + offset, map_state.mode))
                if on_progress is not None:
                    on_progress(
                        ValidationProgress(
                            processed=min(start + batch_size, total),
                            total=total,
                            valid_rows=collector.valid_rows,
                            invalid_rows=collector.invalid_rows,
                        )
                    )

            results = collector.results(total, completed_at=self._clock.now_utc())
            self._wizards.update(
                wizard_id,
                data=wizard.data.with_state(ValidateState(results=results), feed.step_ids()),
            )
            logger.info(
                "feed_validation_completed",
                extra={
                    "total_rows": results.total_rows,
                    "valid_rows": results.valid_rows,
                    "invalid_rows": results.invalid_rows,
                    "distinct_errors": len(results.error_summary),
                },
            )
        return results

    # -------------------------------------------------------------------------
    # Process step
    # -------------------------------------------------------------------------

    def process_feed_data(
        self,
        wizard_id: UUID,
        batch_size: int | None = None,
        on_progress: Callable[[ProcessProgress], None] | None = None,
    ) -> ProcessResults:
        """
        Create or update one worker per row and store the results.

        Requires stored validation results. Each row runs in its own SAVEPOINT;
        a failing row is rolled back and recorded, the rest continue.
        """
        batch_size = batch_size or self._settings.batch_size
        wizard = self._wizards.require(wizard_id)
        feed = self._registry.require_feed(wizard.type)
        self._upload_state(wizard)
        if wizard.data.get(ValidateState) is None:
            raise MissingValidationResultsError(wizard_id)
        map_state = wizard.data.get(MapState) or MapState(column_mapping={})
        mapping = ColumnMapping.from_dict(map_state.column_mapping)
        hooks = self._hooks or feed.create_hooks(self._session, self._workers)

        with LogContext.bind(wizard_id=str(wizard_id), producer="feeds"):
            stored = self._uploaded_file(wizard)
            raw_rows = self._read_rows(stored)
            _, data_rows = split_header(raw_rows, map_state.has_headers)
            total = len(data_rows)
            logger.info(
                "feed_processing_started",
                extra={"total_rows": total, "mode": map_state.mode.value, "batch_size": batch_size},
            )

            results: list[RowResult] = []
            for start in range(0, total, batch_size):
                for offset, raw in enumerate(data_rows[start : start + batch_size]):
                    results.append(
                        self._process_row_safely(
                            mapping.apply(raw), start + offset, map_state.mode, wizard, hooks
                        )
                    )
                if on_progress is not None:
                    on_progress(
                        ProcessProgress(
                            processed=min(start + batch_size, total),
                            total=total,
                            success_count=sum(1 for r in results if r.succeeded),
                            failure_count=sum(1 for r in results if not r.succeeded),
                        )
                    )

            results_file_id = self._store_results_file(wizard, stored, raw_rows, map_state, results)
            process_results = ProcessResults(
                total_rows=total,
                created_count=sum(1 for r in results if r.action == RowAction.CREATED),
                updated_count=sum(1 for r in results if r.action == RowAction.UPDATED),
                success_count=sum(1 for r in results if r.succeeded),
                failure_count=sum(1 for r in results if not r.succeeded),
                results=tuple(results),
                results_file_id=results_file_id,
                completed_at=self._clock.now_utc(),
            )

            self._wizards.update(
                wizard_id,
                status=COMPLETED,
                data=wizard.data.with_state(ProcessState(results=process_results), feed.step_ids()),
            )
            logger.info(
                "feed_processing_completed",
                extra={
                    "total_rows": total,
                    "created": process_results.created_count,
                    "updated": process_results.updated_count,
                    "succeeded": process_results.success_count,
                    "failed": process_results.failure_count,
                },
            )
        return process_results

    def _process_row_safely(
        self,
        row: dict[str, Any],
        row_index: int,
        mode: FeedMode,
        wizard: Wizard,
        hooks: FeedHooks,
    ) -> RowResult:
        savepoint = self._session.begin_nested()
        try:
            result = self._process_row(row, row_index, mode, wizard, hooks)
            savepoint.commit()
            return result
        except Exception as exc:
            savepoint.rollback()
            logger.warning(
                "feed_row_failed",
                extra={
                    "row_index": row_index,
                    "error_code": getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                    "error": str(exc),
                },
            )
            return RowResult(row_index=row_index, status=RowStatus.FAILURE, message=str(exc))

    def _process_row(
        self,
        row: dict[str, Any],
        row_index: int,
        mode: FeedMode,
        wizard: Wizard,
        hooks: FeedHooks,
    ) -> RowResult:
        if is_empty(row.get(SSN_FIELD)):
            raise MissingRequiredValueError("SSN", mode.value)
        ssn = parse_ssn(row[SSN_FIELD])
        birth_date = None
        if not is_empty(row.get(BIRTH_DATE_FIELD)):
            birth_date = parse_birth_date(row[BIRTH_DATE_FIELD])

        existing = self._workers.get_by_ssn(ssn)
        if existing is None and mode == FeedMode.UPDATE:
            raise WorkerNotFoundError(ssn)

        if existing is None:
            worker = self._create_worker(row, ssn, birth_date)
            action, message = RowAction.CREATED, "Created worker"
        else:
            worker = self._update_worker(existing, row, birth_date)
            action, message = RowAction.UPDATED, "Updated worker"

        issues = self._run_hooks(hooks, worker.id, row, wizard, row_index)
        if issues:
            message = f"{message}; issues: {'; '.join(issues)}"
        return RowResult(
            row_index=row_index,
            status=RowStatus.SUCCESS,
            message=message,
            worker_id=worker.id,
            action=action,
        )

    def _create_worker(self, row: dict[str, Any], ssn: str, birth_date: str | None) -> WorkerRecord:
        given = row.get(FIRST_NAME_FIELD)
        family = row.get(LAST_NAME_FIELD)
        if is_empty(given):
            raise MissingRequiredValueError("First Name", FeedMode.CREATE.value)
        if is_empty(family):
            raise MissingRequiredValueError("Last Name", FeedMode.CREATE.value)

        worker = self._workers.create(
            given_name=str(given),
            family_name=str(family),
            middle_name=None if is_empty(row.get(MIDDLE_NAME_FIELD)) else str(row[MIDDLE_NAME_FIELD]),
        )
        worker = self._workers.update_ssn(worker.id, ssn)
        if birth_date:
            worker = self._workers.update_birth_date(worker.id, birth_date)
        return worker

    def _update_worker(
        self, existing: WorkerRecord, row: dict[str, Any], birth_date: str | None
    ) -> WorkerRecord:
        names = {
            "given_name": row.get(FIRST_NAME_FIELD),
            "middle_name": row.get(MIDDLE_NAME_FIELD),
            "family_name": row.get(LAST_NAME_FIELD),
        }
        provided = {k: str(v) for k, v in names.items() if not is_empty(v)}
        worker = existing
        if provided:
            worker = self._workers.update_name_components(existing.id, **provided)
        if birth_date:
            worker = self._workers.update_birth_date(existing.id, birth_date)
        return worker

    def _run_hooks(
        self,
        hooks: FeedHooks,
        worker_id: UUID,
        row: dict[str, Any],
        wizard: Wizard,
        row_index: int,
    ) -> list[str]:
        """Run both hooks, each in its own SAVEPOINT. Returns issue messages."""
        issues: list[str] = []
        for label, hook in (
            ("Hours", hooks.process_worker_hours),
            ("Contact info", hooks.process_worker_contact_info),
        ):
            savepoint = self._session.begin_nested()
            try:
                hook(worker_id, row, wizard)
                savepoint.commit()
            except Exception as exc:
                savepoint.rollback()
                issues.append(f"{label}: {exc}")
                logger.warning(
                    "feed_hook_failed",
                    extra={"row_index": row_index, "hook": label, "error": str(exc)},
                )
        return issues

    def _store_results_file(
        self,
        wizard: Wizard,
        source: StoredFile,
        raw_rows: list[list[Any]],
        map_state: MapState,
        results: list[RowResult],
    ) -> UUID | None:
        savepoint = self._session.begin_nested()
        try:
            content = build_results_csv(raw_rows, map_state.has_headers, results)
            now = self._clock.now_utc()
            base_name = source.file_name.rsplit(".", 1)[0] + "_results"
            file_name = format_output_filename(base_name, now)
            storage_path = f"wizards/{wizard.id}/results_{now:%Y%m%d%H%M%S}.csv"
            self._objects.upload(storage_path, content, "text/csv")
            stored = self._files.create(
                NewFile(
                    file_name=file_name,
                    storage_path=storage_path,
                    mime_type="text/csv",
                    size=len(content),
                    uploaded_by=source.uploaded_by,
                    entity_type="wizard",
                    entity_id=wizard.id,
                    metadata={"wizardId": str(wizard.id), "kind": "results", "sourceFileId": str(source.id)},
                )
            )
            savepoint.commit()
            return stored.id
        except Exception:
            savepoint.rollback()
            logger.exception("feed_results_file_failed", extra={"source_file_id": str(source.id)})
            return None

    # -------------------------------------------------------------------------
    # File loading
    # -------------------------------------------------------------------------

    def _upload_state(self, wizard: Wizard) -> UploadState:
        upload = wizard.data.get(UploadState)
        if upload is None:
            raise NoUploadedFileError(wizard.id)
        return upload

    def _uploaded_file(self, wizard: Wizard) -> StoredFile:
        upload = self._upload_state(wizard)
        stored = self._files.get(upload.uploaded_file_id)
        if stored is None:
            raise StoredFileNotFoundError(upload.uploaded_file_id)
        return stored

    def _download(self, stored: StoredFile) -> bytes:
        try:
            return self._objects.download(stored.storage_path)
        except ObjectNotFoundError as exc:
            raise StoredFileNotFoundError(stored.id) from exc

    def _read_rows(self, stored: StoredFile) -> list[list[Any]]:
        adapter = adapter_for_mime_type(stored.mime_type)
        return list(adapter.read(self._download(stored), {"mime_type": stored.mime_type}))
