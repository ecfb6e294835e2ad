"""
Mapping engine: raw source rows (lists) to mapped dicts keyed by field id.

A column mapping is stored as ``{"<source column index>": "<field id>"}``.
Columns mapped to "" or ``_unmapped`` are ignored. ZERO I/O.
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from sirius_ingestion.domain.types import FeedField, json_value
from sirius_kernel.exceptions import DuplicateColumnMappingError, InvalidColumnIndexError

UNMAPPED = "_unmapped"


@dataclass(frozen=True)
class ColumnMapping:
    """
    Validated column mapping.

    Construction raises InvalidColumnIndexError for a source key that is not a
    non-negative integer, and DuplicateColumnMappingError when two source columns
    target the same field, so a bad mapping fails before any row is read.
    """

    columns: tuple[tuple[int, str], ...]

    @classmethod
    def from_dict(cls, mapping: dict[str, str] | None) -> ColumnMapping:
        sources_by_field: dict[str, list[str]] = {}
        columns: list[tuple[int, str]] = []
        for source, field_id in (mapping or {}).items():
            if not field_id or field_id == UNMAPPED:
                continue
            source = str(source).strip()
            if not re.fullmatch(r"[0-9]+", source):
                raise InvalidColumnIndexError(source, field_id)
            sources_by_field.setdefault(field_id, []).append(source)
            columns.append((int(source), field_id))

        for field_id, sources in sources_by_field.items():
            if len(sources) > 1:
                raise DuplicateColumnMappingError(field_id, sorted(sources, key=int))

        return cls(columns=tuple(sorted(columns)))

    def to_dict(self) -> dict[str, str]:
        return {str(idx): field_id for idx, field_id in self.columns}

    @property
    def field_ids(self) -> tuple[str, ...]:
        return tuple(field_id for _, field_id in self.columns)

    def apply(self, row: Sequence[Any]) -> dict[str, Any]:
        """Map one raw row. Missing trailing cells map to None; strings are stripped."""
        mapped: dict[str, Any] = {}
        for idx, field_id in self.columns:
            value = row[idx] if idx < len(row) else None
            mapped[field_id] = value.strip() if isinstance(value, str) else value
        return mapped


def split_header(
    rows: list[list[Any]], has_headers: bool
) -> tuple[list[Any] | None, list[list[Any]]]:
    """Return (header row or None, data rows)."""
    if has_headers and rows:
        return rows[0], rows[1:]
    return None, rows


def first_row_hash(rows: Iterable[Sequence[Any]]) -> str | None:
    """SHA-256 of the first row; identifies a file layout for remembered mappings."""
    for row in rows:
        canonical = json.dumps([json_value(v) for v in row], separators=(",", ":"), default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return None


def _normalize(label: Any) -> str:
    return re.sub(r"[^a-z0-9]", "", str(label).lower())


def guess_column_mapping(header: Sequence[Any], fields: Sequence[FeedField]) -> dict[str, str]:
    """Match header labels to field ids or names, ignoring case and punctuation."""
    lookup: dict[str, str] = {}
    for f in fields:
        lookup.setdefault(_normalize(f.id), f.id)
        lookup.setdefault(_normalize(f.name), f.id)

    mapping: dict[str, str] = {}
    taken: set[str] = set()
    for idx, label in enumerate(header):
        field_id = lookup.get(_normalize(label))
        if field_id and field_id not in taken:
            mapping[str(idx)] = field_id
            taken.add(field_id)
    return mapping
