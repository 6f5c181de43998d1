"""Tests for numeric and display formatting helpers."""

import pytest

from core.utils.formatting import (
    format_countdown,
    round_half_up,
    round_to,
    truncate_text,
)


@pytest.mark.parametrize("value,expected", [
    (2.5, 3),
    (3.5, 4),
    (2.4999, 2),
    (0.5, 1),
    (0, 0),
    (88.88, 89),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_round_to():
    assert round_to(0.125, 2) == 0.13
    assert round_to(0.3 + 0.2 + 0.2, 2) == 0.7


@pytest.mark.parametrize("seconds,expected", [
    (900, "15:00"),
    (61, "1:01"),
    (9, "0:09"),
    (-3, "0:00"),
])
def test_format_countdown(seconds, expected):
    assert format_countdown(seconds) == expected


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "aaaaaaa..."
