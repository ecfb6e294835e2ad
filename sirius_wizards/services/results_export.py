"""
Results files: the uploaded rows re-serialized with Status and Message columns.

Also holds the record serializer used for report CSV exports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from sirius_ingestion.adapters import CsvSourceAdapter
from sirius_ingestion.domain.types import RowResult
from sirius_wizards.report import ReportColumn

STATUS_HEADER = "Status"
MESSAGE_HEADER = "Message"


def build_results_csv(
    raw_rows: Sequence[Sequence[Any]],
    has_headers: bool,
    row_results: Sequence[RowResult],
) -> bytes:
    """
    Append Status/Message to each raw row.

    ``row_results`` are indexed like data rows (header excluded); a data row
    with no result gets empty cells.
    """
    by_index = {r.row_index: r for r in row_results}
    width = max((len(r) for r in raw_rows), default=0)
    out: list[list[Any]] = []

    data_start = 0
    if has_headers and raw_rows:
        header = list(raw_rows[0]) + [""] * (width - len(raw_rows[0]))
        out.append(header + [STATUS_HEADER, MESSAGE_HEADER])
        data_start = 1

    for idx, raw in enumerate(raw_rows[data_start:]):
        padded = list(raw) + [""] * (width - len(raw))
        result = by_index.get(idx)
        if result is None:
            out.append(padded + ["", ""])
        else:
            out.append(padded + [result.status.value, result.message])

    return CsvSourceAdapter().write(out)


def serialize_records_csv(
    records: Sequence[dict[str, Any]], columns: Sequence[ReportColumn]
) -> bytes:
    rows: list[list[Any]] = [[c.header for c in columns]]
    rows.extend([record.get(c.id) for c in columns] for record in records)
    return CsvSourceAdapter().write(rows)


def format_output_filename(base_name: str, generated_at: datetime, extension: str = "csv") -> str:
    return f"{base_name}_{generated_at.date().isoformat()}.{extension}"
