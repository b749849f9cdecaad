"""Decimal money utilities.

All prices, bids and order totals are Decimal with two fractional digits,
matching the NUMERIC(10, 2) columns. No float anywhere in the money path.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize to 2 decimal places: Decimal('25') -> Decimal('25.00')."""
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def money_to_display(amount: Decimal) -> str:
    """Format for display: Decimal('1234.5') -> '$1,234.50', Decimal('-12') -> '-$12.00'."""
    quantized = to_money(amount)
    if quantized < 0:
        return f"-${-quantized:,.2f}"
    return f"${quantized:,.2f}"
