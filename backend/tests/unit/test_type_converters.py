"""
Unit tests for type_converters.
"""
from decimal import Decimal

import pytest

from app.utils.type_converters import format_money, to_decimal


pytestmark = pytest.mark.unit


class TestToDecimal:

    @pytest.mark.parametrize("value,expected", [
        ("19.99", Decimal("19.99")),
        (19.99, Decimal("19.99")),
        (5, Decimal("5")),
        (" 1.50 ", Decimal("1.50")),
        (Decimal("2.5"), Decimal("2.5")),
    ])
    def test_converts(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", ""])
    def test_invalid_returns_none(self, value):
        assert to_decimal(value) is None


class TestFormatMoney:

    def test_plain_decimal_string(self):
        assert format_money(Decimal("19.99")) == "19.99"

    def test_no_scientific_notation(self):
        assert format_money(Decimal("1E+2")) == "100"
        assert format_money(Decimal("0.0000001")) == "0.0000001"

    def test_float_uses_shortest_repr(self):
        assert format_money(0.1) == "0.1"

    def test_none(self):
        assert format_money(None) is None
