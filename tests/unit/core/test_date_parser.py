"""Unit tests for parse_date."""

from datetime import datetime

import pytest

from bouwdepot.utils.date_parser import parse_date


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-15", datetime(2024, 3, 15)),
        ("2024-03-15T10:30:00", datetime(2024, 3, 15, 10, 30)),
        ("15-03-2024", datetime(2024, 3, 15)),
        ("15/03/2024", datetime(2024, 3, 15)),
        ("15.03.2024", datetime(2024, 3, 15)),
        ("2024/03/15", datetime(2024, 3, 15)),
        ("  2024-03-15  ", datetime(2024, 3, 15)),
    ],
)
def test_parse_supported_formats(value, expected):
    """Test ISO and day-first invoice date formats."""
    assert parse_date(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", "32-13-2024", 20240315])
def test_parse_unusable_values(value):
    """Test that unparseable values yield None."""
    assert parse_date(value) is None


def test_datetime_passthrough():
    value = datetime(2024, 1, 1, 12, 0)
    assert parse_date(value) is value
