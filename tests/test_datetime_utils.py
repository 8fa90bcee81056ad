from datetime import date, datetime

import pytest

from student_attendance.common.datetime_utils import normalize_day, optional_day, parse_hhmm
from student_attendance.common.pagination import Page, PageRequest
from student_attendance.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-02-29", date(2024, 2, 29)),
        (" 2024-02-29 ", date(2024, 2, 29)),
        ("2024-02-29T23:59:59.999", date(2024, 2, 29)),
        ("2024-02-29T00:00:00Z", date(2024, 2, 29)),
        ("2024-02-29T22:00:00-05:00", date(2024, 2, 29)),
        (datetime(2024, 2, 29, 12, 0), date(2024, 2, 29)),
        (date(2024, 2, 29), date(2024, 2, 29)),
    ],
)
def test_normalize_day(value, expected):
    assert normalize_day(value) == expected


@pytest.mark.parametrize("value", ["", "   ", None, 20240229, "2023-02-29", "tomorrow"])
def test_normalize_day_rejects(value):
    with pytest.raises(ValidationError):
        normalize_day(value)


def test_optional_day():
    assert optional_day("", "start_date") is None
    assert optional_day(None, "start_date") is None
    assert optional_day("2024-01-05", "start_date") == date(2024, 1, 5)


def test_parse_hhmm():
    assert parse_hhmm("8:05", "start_time") == "08:05"
    with pytest.raises(ValidationError):
        parse_hhmm("25:00", "start_time")


def test_page_request_clamps():
    assert PageRequest.build(None, None) == PageRequest(page=1, limit=10)
    assert PageRequest.build(-2, 500, max_limit=100) == PageRequest(page=1, limit=100)
    assert PageRequest(page=3, limit=20).offset == 40
    assert Page(items=[], total=0, request=PageRequest()).total_pages == 0
