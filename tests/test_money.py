from decimal import Decimal

import pytest

from modules.brl_currency.core.money import (
    MAX_AMOUNT_MINOR,
    ensure_minor_units,
    format_brl,
    format_cents,
    format_decimal,
    from_minor_units,
    parse_amount,
    to_minor_units,
)
from trokito.errors import InvalidAmount


class TestToMinorUnits:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("R$ 12,35", 1235),
            ("12,35", 1235),
            ("12.35", 1235),
            ("R$ 10,00", 1000),
            ("1.234,56", 123456),
            ("1,234.56", 123456),
            ("12,3", 1230),
            (12.35, 1235),
            (25, 2500),
            (Decimal("0.285"), 29),
            ("0", 0),
        ],
    )
    def test_normalizes_user_input(self, raw, expected):
        assert to_minor_units(raw) == expected

    def test_float_inputs_do_not_drift(self):
        assert to_minor_units(0.1 + 0.2) == 30
        assert to_minor_units(19.99) == 1999

    @pytest.mark.parametrize(
        "raw",
        [None, "", "   ", "abc", True, "-1", -0.01, float("nan"), float("inf"), "NaN", "-Infinity"],
    )
    def test_rejects_invalid_amounts(self, raw):
        with pytest.raises(InvalidAmount):
            to_minor_units(raw)

    def test_rejects_amounts_above_limit(self):
        assert to_minor_units("999.999,99") == MAX_AMOUNT_MINOR
        with pytest.raises(InvalidAmount, match="too large"):
            to_minor_units("1000000")
        with pytest.raises(InvalidAmount, match="too large"):
            to_minor_units("1e40")

    def test_error_message_uses_label(self):
        with pytest.raises(InvalidAmount, match="Paid amount"):
            to_minor_units("", label="Paid amount")

    def test_error_carries_stable_code(self):
        with pytest.raises(InvalidAmount) as excinfo:
            to_minor_units("x")
        assert excinfo.value.code == "invalid_amount"
        assert excinfo.value.status_code == 400


class TestParseAmount:
    def test_returns_decimal(self):
        assert parse_amount("R$ 7,65") == Decimal("7.65")


class TestEnsureMinorUnits:
    def test_accepts_non_negative_ints(self):
        assert ensure_minor_units(0) == 0
        assert ensure_minor_units(2650) == 2650

    @pytest.mark.parametrize("raw", [True, 1.5, "100", -1, MAX_AMOUNT_MINOR + 1])
    def test_rejects_everything_else(self, raw):
        with pytest.raises(InvalidAmount):
            ensure_minor_units(raw)


class TestFormatting:
    def test_from_minor_units(self):
        assert from_minor_units(1235) == Decimal("12.35")
        assert from_minor_units(5) == Decimal("0.05")

    @pytest.mark.parametrize(
        "cents, expected",
        [
            (0, "R$ 0,00"),
            (5, "R$ 0,05"),
            (2650, "R$ 26,50"),
            (123456, "R$ 1.234,56"),
            (100000000, "R$ 1.000.000,00"),
            (-1, "-R$ 0,01"),
        ],
    )
    def test_format_brl(self, cents, expected):
        assert format_brl(cents) == expected

    def test_format_decimal_has_no_grouping(self):
        assert format_decimal(35500) == "355,00"
        assert format_decimal(123456) == "1234,56"
        assert format_decimal(-5) == "-0,05"

    def test_format_cents(self):
        assert format_cents(1) == "1 cent"
        assert format_cents(5) == "5 cents"
        assert format_cents(-3) == "3 cents"
