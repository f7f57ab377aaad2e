"""
Commission Calculator

Pure functions that split a booking's total between the referrer and the
platform admin. Nothing here touches the database; rates and ratios come
from a ``CommissionPolicy`` that callers may inject (tests) or build from
Django settings.

Rounding policy: each share is rounded to two decimal places on its own
(half-up). ``referrer_amount + admin_amount`` can therefore differ by a
cent from ``total * (referrer_rate + admin_rate)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping

from shared.domain.base import ValueObject
from shared.domain.value_objects import Percentage, ZERO, round_money, to_decimal

PUBLIC = "public"

DEFAULT_RATES: dict[str, tuple[str, str]] = {
    "owner": ("0.25", "0.05"),
    "b2b": ("0.22", "0.08"),
    "owners_b2b": ("0.22", "0.08"),
    PUBLIC: ("0.15", "0.15"),
}


@dataclass(frozen=True)
class CommissionRate(ValueObject):
    referrer: Percentage
    admin: Percentage

    @classmethod
    def of(cls, referrer: Any, admin: Any) -> "CommissionRate":
        return cls(referrer=Percentage(referrer), admin=Percentage(admin))


@dataclass(frozen=True)
class CommissionSplit(ValueObject):
    referrer_amount: Decimal
    admin_amount: Decimal

    @property
    def total(self) -> Decimal:
        return self.referrer_amount + self.admin_amount


def _default_rate_table() -> dict[str, CommissionRate]:
    return {name: CommissionRate.of(*shares) for name, shares in DEFAULT_RATES.items()}


@dataclass(frozen=True)
class CommissionPolicy(ValueObject):
    """Rate table and ratios used by the calculator and the distributor."""

    rates: Mapping[str, CommissionRate] = field(default_factory=_default_rate_table)
    advance_ratio: Decimal = Decimal("0.30")
    no_referral_admin_share: Percentage = Percentage(Decimal("0.30"))

    def __post_init__(self):
        if PUBLIC not in self.rates:
            raise ValueError("Commission rate table must define the 'public' tier")
        if to_decimal(self.advance_ratio) <= 0:
            raise ValueError("Advance ratio must be positive")

    @classmethod
    def from_settings(cls) -> "CommissionPolicy":
        from django.conf import settings  # type: ignore

        configured = getattr(settings, "REFERRAL_COMMISSION_RATES", None) or {}
        rates = _default_rate_table()
        for name, shares in configured.items():
            rates[name.lower()] = CommissionRate.of(shares["referrer"], shares["admin"])
        return cls(
            rates=rates,
            advance_ratio=to_decimal(getattr(settings, "ADVANCE_RATIO", "0.30")),
            no_referral_admin_share=Percentage(getattr(settings, "NO_REFERRAL_ADMIN_SHARE", "0.30")),
        )

    def rate_for(self, referral_type: str | None) -> CommissionRate:
        key = (referral_type or "").strip().lower()
        return self.rates.get(key) or self.rates[PUBLIC]


def calc_commission(
    total_amount: Any,
    referral_type: str | None,
    policy: CommissionPolicy | None = None,
) -> CommissionSplit:
    """Split ``total_amount`` for a referral of the given type.

    Unknown or empty types fall back to the public tier; this never raises
    for a bad type.

    >>> calc_commission(1000, "OWNER")
    CommissionSplit(referrer_amount=Decimal('250.00'), admin_amount=Decimal('50.00'))
    """
    policy = policy or CommissionPolicy()
    rate = policy.rate_for(referral_type)
    return CommissionSplit(
        referrer_amount=rate.referrer.of(total_amount),
        admin_amount=rate.admin.of(total_amount),
    )


def resolve_total_amount(booking: Any, policy: CommissionPolicy | None = None) -> Decimal:
    """Total price of a booking, derived from the advance when missing.

    Returns ``0.00`` when neither amount is usable, which callers treat as
    "cannot settle yet".
    """
    policy = policy or CommissionPolicy()
    total = to_decimal(getattr(booking, "total_amount", None))
    if total > 0:
        return round_money(total)
    advance = to_decimal(getattr(booking, "advance_amount", None))
    if advance > 0:
        return round_money(advance / to_decimal(policy.advance_ratio))
    return ZERO


def no_referral_admin_amount(total_amount: Any, policy: CommissionPolicy | None = None) -> Decimal:
    policy = policy or CommissionPolicy()
    return policy.no_referral_admin_share.of(total_amount)
