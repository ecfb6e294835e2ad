"""Source adapters for feed uploads (byte decoding only, no DB)."""

from sirius_config.schema import CSV_MIME_TYPE, XLS_MIME_TYPE, XLSX_MIME_TYPE
from sirius_ingestion.adapters.base import SourceAdapter, SourceProbe
from sirius_ingestion.adapters.csv_adapter import CsvSourceAdapter
from sirius_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter
from sirius_kernel.exceptions import UnsupportedFileTypeError

# Legacy Excel uploads are routed through the XLSX reader; true BIFF .xls
# content fails with FileDecodeError.
ADAPTERS_BY_MIME_TYPE: dict[str, type] = {
    CSV_MIME_TYPE: CsvSourceAdapter,
    XLSX_MIME_TYPE: XlsxSourceAdapter,
    XLS_MIME_TYPE: XlsxSourceAdapter,
}


def adapter_for_mime_type(mime_type: str | None) -> SourceAdapter:
    """Return the adapter for an upload's MIME type or raise UnsupportedFileTypeError."""
    adapter_cls = ADAPTERS_BY_MIME_TYPE.get(mime_type or "")
    if adapter_cls is None:
        raise UnsupportedFileTypeError(mime_type)
    return adapter_cls()


__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
    "XlsxSourceAdapter",
    "ADAPTERS_BY_MIME_TYPE",
    "adapter_for_mime_type",
    "CSV_MIME_TYPE",
    "XLSX_MIME_TYPE",
    "XLS_MIME_TYPE",
]
