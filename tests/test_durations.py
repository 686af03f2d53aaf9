from datetime import timedelta

import pytest

from taskhub.utils.durations import parse_duration


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15m", timedelta(minutes=15)),
        ("7d", timedelta(days=7)),
        ("2 hours", timedelta(hours=2)),
        ("1.5h", timedelta(minutes=90)),
        ("30S", timedelta(seconds=30)),
        ("1w", timedelta(weeks=1)),
        ("250ms", timedelta(milliseconds=250)),
        ("3600000", timedelta(hours=1)),
        ("-1s", timedelta(seconds=-1)),
    ],
)
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


def test_months_and_years_use_average_lengths():
    assert parse_duration("1mo") == timedelta(days=30.4375)
    assert parse_duration("1y") == timedelta(days=365.25)


@pytest.mark.parametrize("raw", ["", "abc", "10 fortnights", "1" * 100])
def test_parse_duration_rejects_invalid_input(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_parse_duration_rejects_out_of_range_values():
    with pytest.raises(ValueError, match="out of range"):
        parse_duration("99999999999999d")
