"""
Common Value Objects

Money helpers shared by the booking and referral contexts. Amounts are
``Decimal`` throughout; rounding to minor units is always half-up.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.base import ValueObject

CENTS = Decimal("0.01")
WHOLE = Decimal("1")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Coerce ints, floats, strings and None into a Decimal (None -> 0)."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Round to two decimal places, half-up (2.345 -> 2.35)."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def round_whole(value) -> Decimal:
    """Round to whole currency units, half-up."""
    return to_decimal(value).quantize(WHOLE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Percentage(ValueObject):
    """
    A share expressed as a fraction (0.25 == 25%).

    ``of()`` applies the share to an amount and rounds the result on its
    own, so two shares of the same total are rounded independently.
    """
    value: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'value', to_decimal(self.value))
        if self.value < 0 or self.value > 1:
            raise ValueError(f"Share must be between 0 and 1, got {self.value}")

    def of(self, amount) -> Decimal:
        return round_money(to_decimal(amount) * self.value)

    def __str__(self):
        return f"{self.value * 100:.0f}%"
