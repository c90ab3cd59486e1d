"""
Test suite for currency module

Tests Decimal conversion, precision and display formatting.
"""

import pytest
from decimal import Decimal

from economy_core.currency import Currency, to_decimal, quantize, format_amount


class TestToDecimal:
    """Test amount conversion"""

    def test_conversions(self):
        assert to_decimal(Decimal('1.5')) == Decimal('1.5')
        assert to_decimal(3) == Decimal('3')
        assert to_decimal("2.75") == Decimal('2.75')
        # Floats go through str()
        assert to_decimal(0.1) == Decimal('0.1')

    def test_invalid_values(self):
        for value in ("abc", None, True, float('nan'), float('inf'), Decimal('NaN')):
            with pytest.raises(ValueError):
                to_decimal(value)


class TestFormatting:
    """Test precision and display"""

    def test_quantize(self):
        assert quantize(Decimal('100.555'), Currency.USD) == Decimal('100.56')
        assert quantize(Decimal('100.5'), Currency.JPY) == Decimal('101')

    def test_format_amount(self):
        assert format_amount(Decimal('1234.5')) == "USD 1,234.50"
        assert format_amount(Decimal('0'), Currency.GBP) == "GBP 0.00"
        assert format_amount(1234567, Currency.JPY) == "JPY 1,234,567"

    def test_currency_precision(self):
        assert Currency.USD.code == "USD"
        assert Currency.USD.precision == 2
        assert Currency.JPY.precision == 0
