"""Unit tests for utility functions."""

import math

import pytest

from canvasspider.utils import format_size, normalize_extension, parse_size, split_list


class TestParseSize:
    """Tests for parse_size function."""

    def test_units(self):
        """Test every supported unit."""
        assert parse_size("10b") == 10
        assert parse_size("1kb") == 1024
        assert parse_size("500mb") == 500 * 1024**2
        assert parse_size("20gb") == 20 * 1024**3
        assert parse_size("1tb") == 1024**4

    def test_case_and_spaces(self):
        """Test that units are case-insensitive and spaces are allowed."""
        assert parse_size("20 GB") == 20 * 1024**3
        assert parse_size(" 5Mb ") == 5 * 1024**2

    def test_plain_number_is_bytes(self):
        """Test a number without unit."""
        assert parse_size("2048") == 2048
        assert parse_size(4096) == 4096

    def test_fraction(self):
        """Test fractional values."""
        assert parse_size("1.5kb") == 1536

    @pytest.mark.parametrize("value", [None, "Infinity", "inf", "unlimited", ""])
    def test_unlimited(self, value):
        """Test values meaning no limit."""
        assert math.isinf(parse_size(value))

    @pytest.mark.parametrize("value", ["abc", "10 parsecs", "mb", "-5mb"])
    def test_invalid(self, value):
        """Test invalid sizes raise ValueError."""
        with pytest.raises(ValueError):
            parse_size(value)

    def test_negative_number(self):
        """Test negative numbers raise ValueError."""
        with pytest.raises(ValueError):
            parse_size(-1)


class TestFormatSize:
    """Tests for format_size function."""

    def test_format(self):
        assert format_size(256) == "256 B"
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024**2) == "5.0 MB"
        assert format_size(2 * 1024**3) == "2.0 GB"

    def test_infinite(self):
        assert format_size(math.inf) == "unlimited"


def test_normalize_extension():
    """Test extension normalization."""
    assert normalize_extension(".PDF") == "pdf"
    assert normalize_extension(" mp4 ") == "mp4"


def test_split_list():
    """Test comma separated list splitting."""
    assert split_list("a.pdf,b.pdf") == ["a.pdf", "b.pdf"]
    assert split_list("a.pdf, ,b.pdf") == ["a.pdf", "b.pdf"]
    assert split_list(None) == []
    assert split_list("") == []
