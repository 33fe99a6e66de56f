"""Unit tests for value formatting."""

import math

import pytest

from usage_monitor.formatting import format_bytes, format_number, format_value, progress_bar


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0 Bytes"),
        (-5, "0 Bytes"),
        (math.nan, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1024**3, "1 GB"),
        (2.25 * 1024**4, "2.25 TB"),
        (1024**6, "1024 PB"),
    ],
)
def test_format_bytes(value, expected):
    assert format_bytes(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (1000, "1,000"),
        (1234567.891, "1,234,567.891"),
        (2.5, "2.5"),
        (0.0004, "0"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


class TestFormatValue:
    def test_unlimited(self):
        assert format_value(123, "requests", unlimited=True) == "Unlimited"

    def test_bytes(self):
        assert format_value(1536, "bytes") == "1.5 KB"

    def test_other_units_rounded(self):
        assert format_value(1500.4, "requests") == "1,500 requests"


class TestProgressBar:
    def test_healthy(self):
        assert progress_bar(50) == ":green_square:" * 5 + ":white_large_square:" * 5

    def test_warning(self):
        assert progress_bar(80) == ":orange_square:" * 8 + ":white_large_square:" * 2

    def test_alert(self):
        assert progress_bar(92) == ":red_square:" * 9 + ":white_large_square:"

    def test_clamped(self):
        assert progress_bar(250) == ":red_square:" * 10
        assert progress_bar(0) == ":white_large_square:" * 10

    def test_custom_thresholds(self):
        assert progress_bar(60, alert=50, warning=40).startswith(":red_square:")
