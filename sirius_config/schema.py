"""
Configuration schema (``sirius_config.schema``).

Frozen dataclasses describing runtime settings for the wizard engine.
Every value has a default so an empty YAML file yields a working
configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field

CSV_MIME_TYPE = "text/csv"
XLS_MIME_TYPE = "application/vnd.ms-excel"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

RETENTION_DAYS: dict[str, int | None] = {
    "1day": 1,
    "7days": 7,
    "30days": 30,
    "1year": 365,
    "always": None,  # never purged
}


@dataclass(frozen=True)
class WizardSettings:
    """Runtime settings for feeds, reports, and storage."""

    database_url: str = "sqlite:///sirius.db"
    object_storage_root: str = "./var/objects"
    batch_size: int = 100
    error_limit_per_type: int = 12
    allowed_mime_types: tuple[str, ...] = field(
        default=(CSV_MIME_TYPE, XLS_MIME_TYPE, XLSX_MIME_TYPE)
    )
    max_upload_bytes: int = 50 * 1024 * 1024
    default_report_retention: str = "30days"
    preview_rows: int = 10

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.error_limit_per_type < 1:
            raise ValueError(
                f"error_limit_per_type must be positive, got {self.error_limit_per_type}"
            )
        if self.default_report_retention not in RETENTION_DAYS:
            raise ValueError(
                f"Unknown report retention '{self.default_report_retention}'. "
                f"Expected one of: {', '.join(RETENTION_DAYS)}"
            )
