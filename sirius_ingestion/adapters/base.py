"""
Source adapter protocol and probe DTO.

Contract:
    SourceAdapter.read() yields one list of cell values per non-blank source row,
    header row included. Column positions are preserved because column
    mappings address source columns by index.
    SourceAdapter.probe() returns a quick snapshot: row count, columns, sample rows.

Architecture: sirius_ingestion/adapters. Byte decoding only, no DB imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for decoding uploaded file content into raw rows."""

    def read(self, content: bytes, options: dict[str, Any]) -> Iterator[list[Any]]:
        """Yield one list of cell values per source row."""
        ...

    def probe(self, content: bytes, options: dict[str, Any]) -> "SourceProbe":
        """Quick probe: row count, detected columns, sample rows."""
        ...


@dataclass(frozen=True)
class SourceProbe:
    """Result of probing a source file (row count, columns, first N rows)."""

    row_count: int  # data rows, header excluded
    columns: tuple[str, ...]
    sample_rows: tuple[tuple[Any, ...], ...]
    encoding: str | None = None
    detected_delimiter: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowCount": self.row_count,
            "columns": list(self.columns),
            "sampleRows": [[_preview_value(v) for v in row] for row in self.sample_rows],
        }


def _preview_value(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def column_labels(header: list[Any] | None, width: int) -> tuple[str, ...]:
    """Column labels for a probe: header cells, or Column_N when absent/blank."""
    labels: list[str] = []
    for idx in range(width):
        cell = header[idx] if header is not None and idx < len(header) else ""
        label = str(cell).strip() if cell not in (None, "") else f"Column_{idx + 1}"
        base, n = label, 0
        while label in labels:
            n += 1
            label = f"{base}_{n}"
        labels.append(label)
    return tuple(labels)
