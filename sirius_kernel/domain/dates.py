"""Birth date parsing for feed rows."""

from __future__ import annotations

import re
from datetime import date, datetime

from sirius_kernel.exceptions import InvalidDateError

# (pattern, group order) -- month/day/year or year/month/day
_FORMATS: tuple[tuple[re.Pattern[str], tuple[str, str, str]], ...] = (
    (re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$"), ("month", "day", "year")),
    (re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$"), ("month", "day", "year")),
    (re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$"), ("year", "month", "day")),
    (re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$"), ("year", "month", "day")),
)


def parse_birth_date(value: object) -> str:
    """
    Normalize a birth date to ``YYYY-MM-DD``.

    Accepts M/D/YYYY, M-D-YYYY, YYYY/MM/DD, YYYY-MM-DD, and date/datetime
    values (spreadsheet cells).  Anything else, including dates that do not
    exist on the calendar, raises InvalidDateError.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip() if value is not None else ""
    for pattern, order in _FORMATS:
        match = pattern.match(text)
        if match is None:
            continue
        parts = dict(zip(order, (int(g) for g in match.groups())))
        try:
            return date(parts["year"], parts["month"], parts["day"]).isoformat()
        except ValueError as exc:
            raise InvalidDateError(value, str(exc)) from exc

    raise InvalidDateError(value)
