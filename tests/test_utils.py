"""Unit tests for small helpers"""

import datetime as dt

import pytest

from inkwell.utils import as_datetime, iso_date, slugify


@pytest.mark.parametrize("value, expected", [
    (dt.date(2023, 1, 1), "2023-01-01T00:00:00Z"),
    (dt.datetime(2023, 1, 1, 12, 30), "2023-01-01T12:30:00Z"),
    (dt.datetime(2023, 1, 1, 12, 0, tzinfo=dt.timezone(dt.timedelta(hours=2))), "2023-01-01T10:00:00Z"),
    (dt.datetime(2023, 1, 1, 1, 0, tzinfo=dt.timezone(dt.timedelta(hours=3))), "2022-12-31T22:00:00Z"),
])
def test_iso_date_is_utc(value, expected):
    assert iso_date(value) == expected


def test_offset_datetimes_sort_by_instant():
    early = dt.datetime(2023, 1, 1, 12, 0, tzinfo=dt.timezone(dt.timedelta(hours=5)))
    late = dt.datetime(2023, 1, 1, 9, 0)
    assert as_datetime(early) < as_datetime(late)


@pytest.mark.parametrize("text, expected", [
    ("Python", "python"),
    ("C++", "c"),
    ("Hello, World!", "hello-world"),
    ("!!!", "untitled"),
])
def test_slugify(text, expected):
    assert slugify(text) == expected
