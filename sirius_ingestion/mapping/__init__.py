"""Column mapping from source positions to feed field ids."""

from sirius_ingestion.mapping.engine import (
    UNMAPPED,
    ColumnMapping,
    first_row_hash,
    guess_column_mapping,
    split_header,
)

__all__ = [
    "UNMAPPED",
    "ColumnMapping",
    "first_row_hash",
    "guess_column_mapping",
    "split_header",
]
