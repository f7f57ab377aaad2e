"""Unit tests for the commission calculator."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from apps.referrals.domain.commission import (
    CommissionPolicy,
    CommissionRate,
    calc_commission,
    no_referral_admin_amount,
    resolve_total_amount,
)
from shared.domain.value_objects import Percentage, round_money


@pytest.mark.parametrize(
    ("referral_type", "referrer", "admin"),
    [
        ("owner", "250.00", "50.00"),
        ("b2b", "220.00", "80.00"),
        ("owners_b2b", "220.00", "80.00"),
        ("public", "150.00", "150.00"),
    ],
)
def test_rate_table(referral_type: str, referrer: str, admin: str) -> None:
    split = calc_commission(Decimal("1000"), referral_type)

    assert split.referrer_amount == Decimal(referrer)
    assert split.admin_amount == Decimal(admin)


def test_referral_type_is_case_insensitive() -> None:
    assert calc_commission(1000, "OWNER") == calc_commission(1000, "owner")


@pytest.mark.parametrize("referral_type", ["", None, "influencer", "  "])
def test_unknown_type_falls_back_to_public(referral_type) -> None:
    split = calc_commission(1000, referral_type)

    assert split.referrer_amount == Decimal("150.00")
    assert split.admin_amount == Decimal("150.00")


def test_shares_are_rounded_independently() -> None:
    # 10.10 * 0.25 = 2.525 and 10.10 * 0.05 = 0.505 both round up.
    split = calc_commission(Decimal("10.10"), "owner")

    assert split.referrer_amount == Decimal("2.53")
    assert split.admin_amount == Decimal("0.51")
    assert split.total == Decimal("3.04")
    assert round_money(Decimal("10.10") * Decimal("0.30")) == Decimal("3.03")


def test_half_up_rounding() -> None:
    split = calc_commission(Decimal("333.30"), "public")

    # 333.30 * 0.15 = 49.995
    assert split.referrer_amount == Decimal("50.00")


def test_total_amount_preferred_over_advance() -> None:
    booking = SimpleNamespace(total_amount=Decimal("1200.00"), advance_amount=Decimal("300.00"))

    assert resolve_total_amount(booking) == Decimal("1200.00")


@pytest.mark.parametrize("total", [None, Decimal("0"), ""])
def test_total_derived_from_advance(total) -> None:
    booking = SimpleNamespace(total_amount=total, advance_amount=Decimal("300.00"))

    assert resolve_total_amount(booking) == Decimal("1000.00")


def test_total_unresolvable() -> None:
    booking = SimpleNamespace(total_amount=None, advance_amount=None)

    assert resolve_total_amount(booking) == Decimal("0.00")


def test_no_referral_admin_amount() -> None:
    assert no_referral_admin_amount(Decimal("1000")) == Decimal("300.00")
    assert no_referral_admin_amount(Decimal("999.99")) == Decimal("300.00")


def test_policy_requires_public_tier() -> None:
    with pytest.raises(ValueError):
        CommissionPolicy(rates={"owner": CommissionRate.of("0.25", "0.05")})


def test_share_must_be_a_fraction() -> None:
    with pytest.raises(ValueError):
        Percentage(Decimal("1.5"))
    with pytest.raises(ValueError):
        Percentage(Decimal("-0.01"))


def test_custom_policy_is_used() -> None:
    policy = CommissionPolicy(
        rates={"public": CommissionRate.of("0.10", "0.20")},
        advance_ratio=Decimal("0.50"),
        no_referral_admin_share=Percentage(Decimal("0.40")),
    )

    split = calc_commission(1000, "owner", policy)

    assert (split.referrer_amount, split.admin_amount) == (Decimal("100.00"), Decimal("200.00"))
    assert resolve_total_amount(SimpleNamespace(total_amount=None, advance_amount=300), policy) == Decimal("600.00")
    assert no_referral_admin_amount(1000, policy) == Decimal("400.00")


def test_policy_from_settings(settings) -> None:
    settings.REFERRAL_COMMISSION_RATES = {"VIP": {"referrer": "0.30", "admin": "0.05"}}
    settings.ADVANCE_RATIO = "0.25"
    settings.NO_REFERRAL_ADMIN_SHARE = "0.20"

    policy = CommissionPolicy.from_settings()

    assert calc_commission(1000, "vip", policy).referrer_amount == Decimal("300.00")
    assert calc_commission(1000, "owner", policy).referrer_amount == Decimal("250.00")
    assert policy.advance_ratio == Decimal("0.25")
    assert no_referral_admin_amount(1000, policy) == Decimal("200.00")
