"""Tests for birth date parsing."""

from datetime import date, datetime

import pytest

from sirius_kernel.domain.dates import parse_birth_date
from sirius_kernel.exceptions import InvalidDateError


class TestParseBirthDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("3/7/1985", "1985-03-07"),
            ("03/07/1985", "1985-03-07"),
            ("3-7-1985", "1985-03-07"),
            ("1985/03/07", "1985-03-07"),
            ("1985-03-07", "1985-03-07"),
            ("1985-3-7", "1985-03-07"),
            (" 12/31/1999 ", "1999-12-31"),
        ],
    )
    def test_accepted_formats(self, raw, expected):
        assert parse_birth_date(raw) == expected

    def test_date_instance(self):
        assert parse_birth_date(date(1990, 1, 2)) == "1990-01-02"

    def test_datetime_instance(self):
        assert parse_birth_date(datetime(1990, 1, 2, 0, 0)) == "1990-01-02"

    @pytest.mark.parametrize("raw", ["March 7 1985", "85-03-07", "1985.03.07", "", None])
    def test_unrecognized_format(self, raw):
        with pytest.raises(InvalidDateError, match="Invalid date format"):
            parse_birth_date(raw)

    def test_impossible_calendar_date(self):
        with pytest.raises(InvalidDateError) as exc_info:
            parse_birth_date("2/30/1990")
        assert exc_info.value.reason is not None

    def test_month_out_of_range(self):
        with pytest.raises(InvalidDateError):
            parse_birth_date("1990-13-01")
