"""
Toreca Tracker — Minor-Unit & Currency Conversion

PriceCharting reports prices as integer pennies. These helpers turn them
into dollars and into whole yen at a given USD/JPY rate.

All money values use Decimal — never float — so that rounding is exactly
round-half-away-from-zero (ROUND_HALF_UP on the magnitude).
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

_HUNDRED = Decimal("100")


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps float inputs like 149.5 from picking up binary noise
    return Decimal(str(value))


def pennies_to_dollars(pennies: int) -> Decimal:
    """
    Convert a minor-unit amount to major units.

    Examples:
        >>> pennies_to_dollars(1732)
        Decimal('17.32')
    """
    return Decimal(pennies) / _HUNDRED


def dollars_to_pennies(dollars: Number) -> int:
    """
    Convert a major-unit amount back to integer minor units.

    Examples:
        >>> dollars_to_pennies(Decimal("17.32"))
        1732
    """
    return int((_to_decimal(dollars) * _HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pennies_to_jpy(pennies: int, exchange_rate: Number) -> int:
    """
    Convert a USD minor-unit amount to whole yen at exchange_rate (JPY per USD).

    Examples:
        >>> pennies_to_jpy(1732, Decimal("150"))
        2598
        >>> pennies_to_jpy(1, Decimal("50"))   # 0.5 rounds away from zero
        1
    """
    amount = pennies_to_dollars(pennies) * _to_decimal(exchange_rate)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
