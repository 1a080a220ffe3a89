"""
Price formatter tests.

Covers whole amounts, decimals with trailing zeros stripped, and
None / empty / garbage input.
"""

import pytest

from utils.price_formatter import format_price, format_price_number


class TestFormatPrice:

    @pytest.mark.parametrize("amount,expected", [
        (1740, "₹1740"),
        (1740.0, "₹1740"),
        (12.5, "₹12.5"),
        (12.50, "₹12.5"),
        (99.99, "₹99.99"),
        ("250", "₹250"),
        ("19.90", "₹19.9"),
        (0, "₹0"),
    ])
    def test_formats_amounts(self, amount, expected):
        assert format_price(amount) == expected

    @pytest.mark.parametrize("amount", [None, "", "abc", float("nan")])
    def test_invalid_amounts_format_as_zero(self, amount):
        assert format_price(amount) == "₹0"

    def test_custom_symbol(self):
        assert format_price(10.25, currency_symbol="$") == "$10.25"

    def test_number_only(self):
        assert format_price_number(1500.0) == "1500"
        assert format_price_number(0.5) == "0.5"
