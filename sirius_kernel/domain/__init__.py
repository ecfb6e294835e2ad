"""
sirius_kernel.domain -- Pure value helpers (clock, SSN, dates).

ZERO database I/O.
"""

from sirius_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from sirius_kernel.domain.dates import parse_birth_date
from sirius_kernel.domain.ssn import SsnValidation, normalize_ssn, parse_ssn, validate_ssn

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "SsnValidation",
    "normalize_ssn",
    "parse_ssn",
    "validate_ssn",
    "parse_birth_date",
]
