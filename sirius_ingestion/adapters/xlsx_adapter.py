"""
XLSX source adapter.

Reads the first worksheet (or the one named/indexed by ``sheet``) of an
uploaded workbook with openpyxl in read-only, values-only mode.
  - whole-number floats become ints (Excel stores all numbers as floats)
  - strings are stripped, empty cells become ""
  - datetime cells are kept as datetime objects
  - fully blank rows are dropped, trailing blank cells trimmed
"""

from __future__ import annotations

import io
from typing import Any, Iterator
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from sirius_ingestion.adapters.base import SourceProbe, column_labels
from sirius_config.schema import XLSX_MIME_TYPE
from sirius_kernel.exceptions import FileDecodeError


def _cell_value(v: Any) -> Any:
    if v is None:
        return ""
    if isinstance(v, bool):
        return v
    if isinstance(v, float) and v.is_integer():
        return int(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _trim(values: list[Any]) -> list[Any]:
    end = len(values)
    while end and values[end - 1] == "":
        end -= 1
    return values[:end]


class XlsxSourceAdapter:
    """
    Read workbook content as one list of cell values per row.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: first sheet.
      mime_type: reported in decode errors.
    """

    def read(self, content: bytes, options: dict[str, Any]) -> Iterator[list[Any]]:
        mime_type = options.get("mime_type", XLSX_MIME_TYPE)
        try:
            wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
            raise FileDecodeError(mime_type, "not a readable XLSX workbook") from exc

        try:
            sheet = self._get_sheet(wb, options)
            for raw in sheet.iter_rows(values_only=True):
                values = _trim([_cell_value(v) for v in raw])
                if not values:
                    continue
                yield values
        finally:
            wb.close()

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.worksheets[0]
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]

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
        )
