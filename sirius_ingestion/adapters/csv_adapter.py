"""
CSV source adapter.

Decodes uploaded bytes with csv.reader. Configurable: delimiter, encoding,
quoting. Handles BOM via utf-8-sig when encoding is utf-8. Blank lines are
skipped and ragged rows are returned as-is.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime, time
from typing import Any, Iterable, Iterator

from sirius_ingestion.adapters.base import SourceProbe, column_labels
from sirius_config.schema import CSV_MIME_TYPE
from sirius_kernel.exceptions import FileDecodeError

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


def _decode(content: bytes, encoding: str) -> str:
    try:
        return content.decode(encoding)
    except UnicodeDecodeError as exc:
        raise FileDecodeError(CSV_MIME_TYPE, f"not valid {encoding} text") from exc


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


class CsvSourceAdapter:
    """Read CSV content as one list of strings per row."""

    def read(self, content: bytes, options: dict[str, Any]) -> Iterator[list[Any]]:
        text = _decode(content, _get_encoding(options))
        reader = csv.reader(
            io.StringIO(text, newline=""),
            delimiter=options.get("delimiter", ","),
            quoting=_get_quoting(options),
        )
        try:
            for row in reader:
                if not any(cell != "" for cell in row):
                    continue
                yield row
        except csv.Error as exc:
            raise FileDecodeError(CSV_MIME_TYPE, str(exc)) from exc

    def probe(self, content: bytes, options: dict[str, Any]) -> SourceProbe:
        has_header = options.get("has_header", True)
        sample_size = int(options.get("sample_size", 5))
        rows = list(self.read(content, options))
        header = rows[0] if has_header and rows else None
        data = rows[1:] if has_header else rows
        width = max((len(r) for r in rows), default=0)
        return SourceProbe(
            row_count=len(data),
            columns=column_labels(header, width),
            sample_rows=tuple(tuple(r) for r in data[:sample_size]),
            encoding=_get_encoding(options),
            detected_delimiter=options.get("delimiter", ","),
        )

    def write(self, rows: Iterable[Iterable[Any]], options: dict[str, Any] | None = None) -> bytes:
        """Serialize rows to UTF-8 CSV bytes (results files and report exports)."""
        options = options or {}
        buffer = io.StringIO(newline="")
        writer = csv.writer(
            buffer,
            delimiter=options.get("delimiter", ","),
            quoting=_get_quoting(options),
            lineterminator="\n",
        )
        for row in rows:
            writer.writerow([_csv_cell(v) for v in row])
        return buffer.getvalue().encode("utf-8")
