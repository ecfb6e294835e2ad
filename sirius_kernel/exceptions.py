"""
Typed Exception Hierarchy for the Sirius wizard engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Feed and report runs distinguish between caller misuse (abort the whole
operation) and bad data (record against one row, keep going). Callers must be
able to tell the two apart without parsing message strings, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.validate_feed_data(wizard_id)
    except FeedConfigurationError as e:
        api_response(status=400, code=e.code, message=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from SiriusError:

    SiriusError (base)
    |
    +-- WizardError
    |   +-- WizardNotFoundError
    |   +-- WizardTypeNotFoundError
    |   +-- InvalidStepTransitionError
    |   +-- StepStateError
    |
    +-- FeedConfigurationError
    |   +-- NoUploadedFileError
    |   +-- StoredFileNotFoundError
    |   +-- DuplicateColumnMappingError
    |   +-- InvalidColumnIndexError
    |   +-- UnknownMappedFieldError
    |   +-- UnsupportedFileTypeError
    |   +-- FileDecodeError
    |   +-- FileTooLargeError
    |   +-- MissingValidationResultsError
    |   +-- FileNotAssociatedError
    |
    +-- RowProcessingError
    |   +-- MissingRequiredValueError
    |   +-- InvalidSsnError
    |   +-- InvalidDateError
    |   +-- WorkerNotFoundError
    |   +-- DuplicateSsnError
    |
    +-- ReportError
    |   +-- MissingPrimaryKeyError
    |
    +-- StorageError
        +-- ObjectNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Wizard          | WIZARD_NOT_FOUND            | Wizard ID doesn't exist
                | WIZARD_TYPE_NOT_FOUND       | Type name not registered
                | INVALID_STEP_TRANSITION     | Next/previous past the ends of the steps
                | STEP_STATE_INVALID          | Step state set before its prerequisites
----------------|-----------------------------|-----------------------------------------
Feed config     | NO_UPLOADED_FILE            | Validate/process with no upload
                | STORED_FILE_NOT_FOUND       | File record missing for uploaded id
                | DUPLICATE_COLUMN_MAPPING    | Two columns mapped to one field
                | UNKNOWN_MAPPED_FIELD        | Column mapped to a field the feed lacks
                | UNSUPPORTED_FILE_TYPE       | MIME type not CSV/XLSX
                | FILE_DECODE_FAILED          | Bytes could not be decoded
                | FILE_TOO_LARGE              | Upload exceeds configured limit
                | MISSING_VALIDATION_RESULTS  | Process called before validate
                | FILE_NOT_ASSOCIATED         | File belongs to another wizard
----------------|-----------------------------|-----------------------------------------
Row             | MISSING_REQUIRED_VALUE      | Required value empty for this mode
                | INVALID_SSN                 | SSN fails normalization or SSA rules
                | INVALID_DATE                | Date in no supported format
                | WORKER_NOT_FOUND            | Update mode, SSN unknown
                | DUPLICATE_SSN               | SSN already held by another worker
----------------|-----------------------------|-----------------------------------------
Report          | MISSING_PRIMARY_KEY         | Record lacks its primary key value
----------------|-----------------------------|-----------------------------------------
Storage         | OBJECT_NOT_FOUND            | Blob path missing in object storage
"""

from typing import Any
from uuid import UUID


class SiriusError(Exception):
    """Base exception for all wizard engine errors."""

    code: str = "SIRIUS_ERROR"


# Wizard Errors


class WizardError(SiriusError):
    """Base for workflow instance errors."""

    code: str = "WIZARD_ERROR"


class WizardNotFoundError(WizardError):
    code: str = "WIZARD_NOT_FOUND"

    def __init__(self, wizard_id: UUID | str):
        self.wizard_id = str(wizard_id)
        super().__init__(f"Wizard not found: {wizard_id}")


class WizardTypeNotFoundError(WizardError):
    code: str = "WIZARD_TYPE_NOT_FOUND"

    def __init__(self, wizard_type: str):
        self.wizard_type = wizard_type
        super().__init__(f"Wizard type not found: {wizard_type}")


class InvalidStepTransitionError(WizardError):
    """Raised when navigation would move past the first or last step."""

    code: str = "INVALID_STEP_TRANSITION"

    def __init__(self, wizard_id: UUID | str, current_step: str | None, reason: str):
        self.wizard_id = str(wizard_id)
        self.current_step = current_step
        self.reason = reason
        super().__init__(reason)


class StepStateError(WizardError):
    """Raised when a step state is written before the states it depends on."""

    code: str = "STEP_STATE_INVALID"

    def __init__(self, step_id: str, reason: str):
        self.step_id = step_id
        self.reason = reason
        super().__init__(f"Cannot set state for step '{step_id}': {reason}")


# Feed Configuration Errors


class FeedConfigurationError(SiriusError):
    """Caller misuse of a feed. Aborts the whole operation."""

    code: str = "FEED_CONFIGURATION_ERROR"


class NoUploadedFileError(FeedConfigurationError):
    code: str = "NO_UPLOADED_FILE"

    def __init__(self, wizard_id: UUID | str):
        self.wizard_id = str(wizard_id)
        super().__init__("No file uploaded")


class StoredFileNotFoundError(FeedConfigurationError):
    code: str = "STORED_FILE_NOT_FOUND"

    def __init__(self, file_id: UUID | str):
        self.file_id = str(file_id)
        super().__init__(f"File not found: {file_id}")


class DuplicateColumnMappingError(FeedConfigurationError):
    code: str = "DUPLICATE_COLUMN_MAPPING"

    def __init__(self, field_id: str, columns: list[str]):
        self.field_id = field_id
        self.columns = columns
        super().__init__(
            f"Field '{field_id}' is mapped from more than one column: {', '.join(columns)}"
        )


class InvalidColumnIndexError(FeedConfigurationError):
    code: str = "INVALID_COLUMN_INDEX"

    def __init__(self, source: str, field_id: str):
        self.source = source
        self.field_id = field_id
        super().__init__(
            f"Field '{field_id}' is mapped from an invalid column index: {source!r}"
        )


class UnknownMappedFieldError(FeedConfigurationError):
    code: str = "UNKNOWN_MAPPED_FIELD"

    def __init__(self, field_ids: list[str]):
        self.field_ids = field_ids
        super().__init__(f"Mapping targets unknown fields: {', '.join(field_ids)}")


class UnsupportedFileTypeError(FeedConfigurationError):
    code: str = "UNSUPPORTED_FILE_TYPE"

    def __init__(self, mime_type: str | None):
        self.mime_type = mime_type
        super().__init__("Invalid file type. Only CSV and XLSX files are supported.")


class FileDecodeError(FeedConfigurationError):
    code: str = "FILE_DECODE_FAILED"

    def __init__(self, mime_type: str, reason: str):
        self.mime_type = mime_type
        self.reason = reason
        super().__init__(f"Could not read {mime_type} file: {reason}")


class FileTooLargeError(FeedConfigurationError):
    code: str = "FILE_TOO_LARGE"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"File size {size} exceeds limit of {limit} bytes")


class MissingValidationResultsError(FeedConfigurationError):
    code: str = "MISSING_VALIDATION_RESULTS"

    def __init__(self, wizard_id: UUID | str):
        self.wizard_id = str(wizard_id)
        super().__init__("Validation must be completed before processing")


class FileNotAssociatedError(FeedConfigurationError):
    code: str = "FILE_NOT_ASSOCIATED"

    def __init__(self, file_id: UUID | str, wizard_id: UUID | str):
        self.file_id = str(file_id)
        self.wizard_id = str(wizard_id)
        super().__init__("File is not associated with this wizard")


# Row Processing Errors


class RowProcessingError(SiriusError):
    """A problem with one data row. Recorded against the row, never aborts a batch."""

    code: str = "ROW_PROCESSING_ERROR"


class MissingRequiredValueError(RowProcessingError):
    code: str = "MISSING_REQUIRED_VALUE"

    def __init__(self, field: str, mode: str | None = None):
        self.field = field
        self.mode = mode
        if mode:
            super().__init__(f"{field} is required in {mode} mode")
        else:
            super().__init__(f"{field} is required")


class InvalidSsnError(RowProcessingError):
    code: str = "INVALID_SSN"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidDateError(RowProcessingError):
    code: str = "INVALID_DATE"

    def __init__(self, value: Any, reason: str | None = None):
        self.value = str(value)
        self.reason = reason
        message = f"Invalid date format: {value}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class WorkerNotFoundError(RowProcessingError):
    code: str = "WORKER_NOT_FOUND"

    def __init__(self, ssn: str):
        self.ssn = ssn
        super().__init__("Worker with this SSN not found (update mode requires existing worker)")


class DuplicateSsnError(RowProcessingError):
    code: str = "DUPLICATE_SSN"

    def __init__(self, ssn: str):
        self.ssn = ssn
        super().__init__("This SSN is already assigned to another worker")


# Report Errors


class ReportError(SiriusError):
    """Base for report generation errors."""

    code: str = "REPORT_ERROR"


class MissingPrimaryKeyError(ReportError):
    code: str = "MISSING_PRIMARY_KEY"

    def __init__(self, primary_key_field: str):
        self.primary_key_field = primary_key_field
        super().__init__(f"Record missing primary key field: {primary_key_field}")


# Storage Errors


class StorageError(SiriusError):
    """Base for object storage errors."""

    code: str = "STORAGE_ERROR"


class ObjectNotFoundError(StorageError):
    code: str = "OBJECT_NOT_FOUND"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Object not found in storage: {path}")
