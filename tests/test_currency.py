"""Tests for Spanish amount parsing and formatting."""

from datetime import date

import pytest

from models.cell import DateCell, NumberCell, TextCell
from utils.currency import format_currency, format_signed, money2, parse_amount_es, parse_user_amount


class TestParseAmountEs:
    @pytest.mark.parametrize("raw, expected", [
        ("1.234,56", 1234.56),
        ("-1.234,56 EUR", -1234.56),
        ("−12,50", -12.5),
        (" 3,39 € ", 3.39),
        ("1 234,56", 1234.56),
        ("12", 12.0),
    ])
    def test_text_amounts(self, raw, expected):
        assert parse_amount_es(raw) == pytest.approx(expected)

    def test_numbers_pass_through(self):
        assert parse_amount_es(-45.2) == -45.2
        assert parse_amount_es(NumberCell(7.0)) == 7.0

    def test_unparseable_is_zero(self):
        assert parse_amount_es("abc") == 0.0
        assert parse_amount_es("") == 0.0
        assert parse_amount_es(None) == 0.0
        assert parse_amount_es(float("nan")) == 0.0

    def test_dates_are_not_amounts(self):
        assert parse_amount_es(DateCell(date(2025, 1, 1))) == 0.0

    def test_negative_only_drops_positive_and_zero(self):
        assert parse_amount_es("25,00", negative_only=True) == 0.0
        assert parse_amount_es(25.0, negative_only=True) == 0.0
        assert parse_amount_es(0, negative_only=True) == 0.0
        assert parse_amount_es("-25,00", negative_only=True) == -25.0
        assert parse_amount_es(-3.5, negative_only=True) == -3.5

    def test_negative_only_text_without_minus_sign(self):
        assert parse_amount_es(TextCell("(25,00)"), negative_only=True) == 0.0


class TestFormatting:
    def test_format_currency_spanish(self):
        assert format_currency(1234.56) == "1.234,56 €"
        assert format_currency(0) == "0,00 €"
        assert format_currency(-5.5) == "-5,50 €"

    def test_format_signed(self):
        assert format_signed(3) == "+3,00 €"
        assert format_signed(-3) == "-3,00 €"

    def test_money2_rounds_half_up(self):
        assert money2(2.675) == 2.68
        assert money2(0.005) == 0.01
        assert money2(1.234) == 1.23


class TestParseUserAmount:
    @pytest.mark.parametrize("raw, expected", [
        ("3,50", 3.5),
        ("3.50", 3.5),
        ("1.234,56 €", 1234.56),
        ("  12 ", 12.0),
    ])
    def test_accepts_both_decimal_marks(self, raw, expected):
        assert parse_user_amount(raw) == pytest.approx(expected)

    def test_rejects_garbage(self):
        assert parse_user_amount("") is None
        assert parse_user_amount("doce") is None
        assert parse_user_amount("inf") is None
