"""Tests for duration parsing."""

import pytest

from herald.utils.duration import parse_duration, since


@pytest.mark.parametrize(
    "value,expected",
    [
        ("250ms", 250),
        ("30s", 30_000),
        ("30m", 1_800_000),
        ("12h", 43_200_000),
        ("1d", 86_400_000),
        ("1w", 604_800_000),
        ("1h30m", 5_400_000),
        ("1.5h", 5_400_000),
        (" 15M ", 900_000),
    ],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "10", "5 parsecs", "m5", "-5m"])
def test_parse_duration_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_parse_duration_rejects_non_string():
    with pytest.raises(ValueError):
        parse_duration(30)  # type: ignore[arg-type]


def test_since_uses_given_now():
    assert since("30m", now=10_000_000) == 10_000_000 - 1_800_000
