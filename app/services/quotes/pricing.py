"""
Pricing calculator - subtotal, tax and total for a quote.

Tax is a fixed rate (IGV, 18% by default) applied to the subtotal. Both tax and total
are rounded half-up to 2 decimal places, which is how the figures are printed on the
quote document.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_TAX_RATE = Decimal("0.18")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Pricing:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def round2(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 0.1 don't drag binary noise into the Decimal
    return Decimal(str(value))


def calculate_tax(subtotal: Decimal | int | float | str, rate: Decimal = DEFAULT_TAX_RATE) -> Decimal:
    return round2(_as_decimal(subtotal) * rate)


def calculate_total(subtotal: Decimal | int | float | str, rate: Decimal = DEFAULT_TAX_RATE) -> Decimal:
    amount = _as_decimal(subtotal)
    return round2(amount + calculate_tax(amount, rate))


def calculate_pricing(subtotal: Decimal | int | float | str, rate: Decimal = DEFAULT_TAX_RATE) -> Pricing:
    """
    Price a quote.

    Args:
        subtotal: Operator price before tax (0 for a pre-quote)
        rate: Tax rate as a fraction

    Returns:
        Pricing with subtotal, tax and total, all rounded to 2 places
    """
    amount = _as_decimal(subtotal)
    tax = calculate_tax(amount, rate)
    return Pricing(subtotal=round2(amount), tax=tax, total=round2(amount + tax))
