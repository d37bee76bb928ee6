"""Tests for amount, date and text normalization utilities."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerflow.domain.entities import AmountSign
from ledgerflow.utils.amount_parser import parse_amount, to_magnitude
from ledgerflow.utils.date_parser import parse_date
from ledgerflow.utils.text import collapse_whitespace, title_case


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("123.45", Decimal("123.45")),
            ("$123.45", Decimal("123.45")),
            ("1,234.56", Decimal("1234.56")),
            ("-50.00", Decimal("-50.00")),
            ("-$50.00", Decimal("-50.00")),
            ("$-50.00", Decimal("-50.00")),
            ("€ 9.99", Decimal("9.99")),
            ("+7", Decimal("7")),
            ("  42  ", Decimal("42")),
        ],
    )
    def test_negative_is_expense(self, text, expected):
        assert parse_amount(text) == expected

    def test_parentheses_is_expense(self):
        assert parse_amount("(84.99)", AmountSign.PARENTHESES_IS_EXPENSE) == Decimal("-84.99")
        assert parse_amount("$1,000.00", AmountSign.PARENTHESES_IS_EXPENSE) == Decimal("1000.00")

    @pytest.mark.parametrize("text", ["$(1,234.56)", "($1,234.56)", "$ (1,234.56) "])
    def test_currency_symbol_outside_parentheses(self, text):
        assert parse_amount(text, AmountSign.PARENTHESES_IS_EXPENSE) == Decimal("-1234.56")

    def test_parentheses_rejected_under_minus_convention(self):
        with pytest.raises(ValueError, match="parentheses"):
            parse_amount("(84.99)", AmountSign.NEGATIVE_IS_EXPENSE)

    def test_minus_rejected_under_parentheses_convention(self):
        with pytest.raises(ValueError, match="minus"):
            parse_amount("-84.99", AmountSign.PARENTHESES_IS_EXPENSE)

    @pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)


def test_to_magnitude_rounds_half_up():
    assert to_magnitude(Decimal("-12.345")) == Decimal("12.35")
    assert to_magnitude(Decimal("20")) == Decimal("20.00")
    assert str(to_magnitude(Decimal("-0.5"))) == "0.50"


class TestParseDate:
    """Tests for parse_date."""

    def test_explicit_format(self):
        assert parse_date("01/15/2024", "%m/%d/%Y") == date(2024, 1, 15)

    def test_explicit_format_mismatch(self):
        with pytest.raises(ValueError, match="with format"):
            parse_date("2024-01-15", "%m/%d/%Y")

    @pytest.mark.parametrize("text", ["2024-01-15", "01/15/2024", "Jan 15, 2024", "15 January 2024"])
    def test_flexible(self, text):
        assert parse_date(text) == date(2024, 1, 15)

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_date("  ")

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_date("not a date")


class TestText:
    """Tests for text normalization."""

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  WALMART   SUPERCENTER\t#12 ") == "WALMART SUPERCENTER #12"
        assert collapse_whitespace(None) == ""

    def test_title_case(self):
        assert title_case("WALMART SUPERCENTER #1234") == "Walmart Supercenter #1234"
        assert title_case("mcdonald's") == "Mcdonald's"

    @pytest.mark.parametrize("text", ["UBER   EATS", "shopping/retail", "Already Title", "x"])
    def test_title_case_idempotent(self, text):
        once = title_case(text)
        assert title_case(once) == once
