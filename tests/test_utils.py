"""Tests for amount formatting and parsing helpers."""

import pytest

from limit_order_cli.errors import ValidationError
from limit_order_cli.utils import format_token_amount, normalize_private_key, parse_units, strip_0x, to_int


class TestFormatTokenAmount:
    """Tests for format_token_amount."""

    def test_strips_trailing_zeros(self):
        assert format_token_amount(1_500_000, 6) == "1.5"

    def test_whole_amount_has_no_point(self):
        assert format_token_amount(100 * 10 ** 6, 6) == "100"

    def test_appends_symbol(self):
        assert format_token_amount(500 * 10 ** 18, 18, "BRLA") == "500 BRLA"

    def test_small_amount_keeps_leading_zeros(self):
        assert format_token_amount(1, 18) == "0.000000000000000001"

    def test_negative(self):
        assert format_token_amount(-2_500_000, 6) == "-2.5"


class TestParseUnits:
    """Tests for parse_units."""

    def test_parses_decimal_string(self):
        assert parse_units("100.25", 6) == 100_250_000

    def test_full_precision_eighteen_decimals(self):
        assert parse_units("123456789.123456789123456789", 18) == 123456789123456789123456789

    def test_rejects_excess_decimals(self):
        with pytest.raises(ValidationError, match="decimal places"):
            parse_units("1.0000001", 6)

    def test_round_down_truncates(self):
        assert parse_units("1.0000019", 6, round_down=True) == 1_000_001

    @pytest.mark.parametrize("value", ["", "   ", "abc", "NaN", "Infinity"])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_units(value, 6)

    def test_format_and_parse_agree(self):
        raw = 123_456_789
        assert parse_units(format_token_amount(raw, 6), 6) == raw


def test_to_int_accepts_hex_and_decimal():
    assert to_int("0x10") == 16
    assert to_int("42") == 42
    assert to_int(7) == 7
    with pytest.raises(ValidationError):
        to_int("0xzz")


def test_key_and_hex_prefix_helpers():
    assert normalize_private_key(" abcd ") == "0xabcd"
    assert normalize_private_key("0xabcd") == "0xabcd"
    assert strip_0x("0xabcd") == "abcd"
    assert strip_0x("abcd") == "abcd"
