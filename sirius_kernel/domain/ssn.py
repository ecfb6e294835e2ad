"""
SSN normalization and validation.

Shared by feed processing and worker storage. The canonical stored form is
nine digits with no separators.

Rules (SSA):
    - Separators (spaces, dashes, dots) are ignored.
    - Seven or eight digit values are left-padded with zeros; spreadsheets
      routinely drop leading zeros from SSN columns.
    - Area number (first three digits) cannot be 000, 666, or 900-999.
    - Group number (middle two) cannot be 00.
    - Serial number (last four) cannot be 0000.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sirius_kernel.exceptions import InvalidSsnError

_SEPARATORS = re.compile(r"[\s\-.]")
_ASCII_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class SsnValidation:
    """Outcome of validate_ssn. ``normalized`` is set only when valid."""

    valid: bool
    normalized: str | None = None
    error: str | None = None


def normalize_ssn(value: object) -> str:
    """Strip separators and restore dropped leading zeros. Does not validate."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    digits = _SEPARATORS.sub("", str(value).strip())
    if _ASCII_DIGITS.fullmatch(digits) and 7 <= len(digits) < 9:
        digits = digits.zfill(9)
    return digits


def validate_ssn(value: object) -> SsnValidation:
    digits = normalize_ssn(value)
    if not digits:
        return SsnValidation(valid=False, error="SSN is empty")
    if not _ASCII_DIGITS.fullmatch(digits):
        return SsnValidation(valid=False, error="SSN must contain only digits")
    if len(digits) != 9:
        return SsnValidation(valid=False, error=f"SSN must be 9 digits (got {len(digits)})")

    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if area == "000" or area == "666" or area >= "900":
        return SsnValidation(valid=False, error=f"SSN area number {area} is not valid")
    if group == "00":
        return SsnValidation(valid=False, error="SSN group number cannot be 00")
    if serial == "0000":
        return SsnValidation(valid=False, error="SSN serial number cannot be 0000")

    return SsnValidation(valid=True, normalized=digits)


def parse_ssn(value: object) -> str:
    """Return the canonical SSN or raise InvalidSsnError."""
    result = validate_ssn(value)
    if not result.valid:
        raise InvalidSsnError(result.error or "Invalid SSN")
    return result.normalized


def format_ssn(ssn: str) -> str:
    """Display form XXX-XX-XXXX of a canonical SSN."""
    return f"{ssn[:3]}-{ssn[3:5]}-{ssn[5:]}"
