"""
Currency Amount Module

Decimal conversion, precision and display formatting for ledger amounts.
NEVER uses float for monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext
from enum import Enum

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places
    CAD = ("CAD", 2)  # Canadian Dollar, 2 decimal places
    CHF = ("CHF", 2)  # Swiss Franc, 2 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision


def to_decimal(value) -> Decimal:
    """
    Convert an amount to Decimal

    Floats go through str() so that 0.1 becomes Decimal('0.1') and not its
    binary expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, TypeError):
            raise ValueError(f"Cannot convert {value!r} to Decimal")
    if not value.is_finite():
        raise ValueError(f"Amount must be finite, got {value}")
    return value


def quantize(value: Decimal, currency: Currency) -> Decimal:
    """Round a Decimal to the currency's precision"""
    return value.quantize(
        Decimal('0.1') ** currency.precision,
        rounding=ROUND_HALF_UP
    )


def format_amount(value: Decimal, currency: Currency = Currency.USD) -> str:
    """Format an amount for display, e.g. 'USD 1,234.50'"""
    amount = quantize(to_decimal(value), currency)
    if currency.precision == 0:
        return f"{currency.code} {amount:,.0f}"
    return f"{currency.code} {amount:,.{currency.precision}f}"
