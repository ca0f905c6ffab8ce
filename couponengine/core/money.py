"""
Integer money arithmetic shared by every discount strategy.

All amounts are minor currency units (cents). Rates are converted through
Decimal so a float like 0.1 never floors above its exact value.
"""
from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Union

Number = Union[int, float, Decimal]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def floor_amount(value: Number) -> int:
    """Round toward negative infinity and never return a negative amount."""
    floored = int(_to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))
    return max(floored, 0)


def percentage_of(amount: int, rate: Number) -> int:
    """floor(amount * rate / 100)."""
    return floor_amount(Decimal(amount) * _to_decimal(rate) / Decimal(100))


def cap(amount: int, maximum: Optional[Number]) -> int:
    """Limit amount to an optional maximum (None means uncapped)."""
    if maximum is None:
        return amount
    return min(amount, floor_amount(maximum))


def clamp(amount: int, ceiling: int) -> int:
    """Keep a discount within [0, ceiling]."""
    return max(0, min(amount, max(ceiling, 0)))


def per_unit(value: Number, quantity: int) -> int:
    """floor(value * quantity) for a per-unit amount."""
    return floor_amount(_to_decimal(value) * quantity)
