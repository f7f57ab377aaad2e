"""Referral services: checkout commission settlement, stats and withdrawals."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable

from django.db import DatabaseError, transaction  # type: ignore
from django.db.models import Count, DecimalField, F, Q, Sum, Value  # type: ignore
from django.db.models.functions import Coalesce  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.state_machine import BookingStatus
from apps.bookings.models import Booking
from shared.domain.exceptions import NotFound, PersistenceFailure, SettlementSkipped, ValidationError
from shared.domain.value_objects import ZERO, round_money, to_decimal

from .domain.commission import (
    CommissionPolicy,
    calc_commission,
    no_referral_admin_amount,
    resolve_total_amount,
)
from .models import ReferralTransaction, ReferralUser

logger = logging.getLogger(__name__)

MIN_WITHDRAWAL_AMOUNT = Decimal("500")
TOP_EARNERS_LIMIT = 20


class CommissionDistributor:
    """Settles referral/admin commission for ticketed bookings after checkout.

    Every booking is settled in its own transaction. The booking row is
    re-read under ``select_for_update`` and ``commission_paid`` re-checked
    before anything is written, so overlapping cycles pay each booking at
    most once.
    """

    def __init__(self, policy: CommissionPolicy | None = None, clock: Callable[[], datetime] = timezone.now):
        self.policy = policy or CommissionPolicy.from_settings()
        self.clock = clock

    def eligible_bookings(self):
        return (
            Booking.objects.filter(
                booking_status=BookingStatus.TICKET_GENERATED.value,
                checkout_datetime__lt=self.clock(),
            )
            .filter(Q(commission_paid__isnull=True) | Q(commission_paid=False))
            .order_by("checkout_datetime", "pk")
        )

    def run_cycle(self) -> dict[str, int]:
        distributed = 0
        skipped = 0

        bookings = list(self.eligible_bookings())
        logger.info(f"[Commission] Found {len(bookings)} bookings eligible for distribution")

        for booking in bookings:
            try:
                outcome = self.settle(booking)
            except SettlementSkipped as e:
                skipped += 1
                logger.warning(f"[Commission] {e.message}")
                continue
            except Exception as e:
                logger.error(f"[Commission] Error settling booking {booking.booking_id}: {e}", exc_info=True)
                continue
            distributed += 1
            logger.info(f"[Commission] Booking {booking.booking_id} settled: {outcome}")

        logger.info(f"[Commission] Cycle finished: {distributed} distributed, {skipped} skipped")
        return {"distributed": distributed, "skipped": skipped}

    def settle(self, booking: Booking) -> str:
        """Settle one booking; returns the resulting commission status."""
        total = resolve_total_amount(booking, self.policy)
        if total <= 0:
            raise SettlementSkipped(booking.booking_id, "cannot resolve total amount")

        try:
            with transaction.atomic():
                locked = Booking.objects.select_for_update().get(pk=booking.pk)
                if locked.commission_paid:
                    raise SettlementSkipped(locked.booking_id, "already settled by another run")

                paid_at = self.clock()
                if locked.referral_code:
                    referrer = ReferralUser.objects.active().filter(referral_code=locked.referral_code).first()
                    if referrer is None:
                        locked.mark_commission_paid(
                            Booking.CommissionStatus.DISTRIBUTED_NO_REFERRER, ZERO, ZERO, paid_at
                        )
                        return locked.commission_status

                    split = calc_commission(total, locked.referral_type, self.policy)
                    ReferralTransaction.objects.create(
                        referral_user=referrer,
                        booking=locked,
                        amount=split.referrer_amount,
                        type=ReferralTransaction.Type.EARNING,
                        status=ReferralTransaction.Status.COMPLETED,
                        source=ReferralTransaction.Source.BOOKING_CHECKOUT,
                    )
                    ReferralUser.objects.filter(pk=referrer.pk).update(
                        balance=F("balance") + split.referrer_amount,
                        updated_at=paid_at,
                    )
                    locked.mark_commission_paid(
                        Booking.CommissionStatus.DISTRIBUTED, split.admin_amount, split.referrer_amount, paid_at
                    )
                    return locked.commission_status

                admin_amount = no_referral_admin_amount(total, self.policy)
                locked.mark_commission_paid(Booking.CommissionStatus.DISTRIBUTED, admin_amount, ZERO, paid_at)
                return locked.commission_status
        except DatabaseError as e:
            raise PersistenceFailure(f"Could not settle booking {booking.booking_id}: {e}") from e


def distribute_checkout_commissions(policy: CommissionPolicy | None = None) -> dict[str, int]:
    return CommissionDistributor(policy=policy).run_cycle()


# --- Referrer dashboard ------------------------------------------------------

def _money_sum(condition: Q) -> Coalesce:
    return Coalesce(
        Sum("amount", filter=condition),
        Value(ZERO),
        output_field=DecimalField(max_digits=12, decimal_places=2),
    )


EARNED = Q(type=ReferralTransaction.Type.EARNING, status=ReferralTransaction.Status.COMPLETED)
WITHDRAWN = Q(type=ReferralTransaction.Type.WITHDRAWAL, status=ReferralTransaction.Status.COMPLETED)
WITHDRAWAL_PENDING = Q(type=ReferralTransaction.Type.WITHDRAWAL, status=ReferralTransaction.Status.PENDING)


def get_referrer_for_user(user) -> ReferralUser:
    referrer = ReferralUser.objects.filter(user=user).first() if user and user.is_authenticated else None
    if referrer is None:
        raise NotFound("Referral account not found")
    if referrer.status == ReferralUser.Status.BLOCKED:
        raise ValidationError("Account is blocked")
    return referrer


def dashboard_stats(referrer: ReferralUser) -> dict[str, Any]:
    totals = referrer.transactions.aggregate(
        total_earnings=_money_sum(EARNED),
        total_withdrawals=_money_sum(WITHDRAWN),
        pending_withdrawals=_money_sum(WITHDRAWAL_PENDING),
        total_referrals=Count(
            "id",
            filter=Q(type=ReferralTransaction.Type.EARNING, source=ReferralTransaction.Source.BOOKING_CHECKOUT),
        ),
    )
    totals["available_balance"] = round_money(totals["total_earnings"] - totals["total_withdrawals"])
    totals["balance"] = referrer.balance
    totals["referral_code"] = referrer.referral_code
    totals["referral_type"] = referrer.referral_type
    return totals


def top_earners(period: str = "all", now=None) -> list[dict[str, Any]]:
    """Leaderboard of active referrers.

    ``month``: completed earnings since the first of the current month.
    ``all``: completed earnings minus completed withdrawals. Anything else
    is treated as ``all``.
    """
    if period not in ("month", "all"):
        period = "all"
    transactions = ReferralTransaction.objects.filter(
        referral_user__status=ReferralUser.Status.ACTIVE,
        status=ReferralTransaction.Status.COMPLETED,
    )
    if period == "month":
        now = now or timezone.now()
        month_start = timezone.localtime(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        rows = (
            transactions.filter(type=ReferralTransaction.Type.EARNING, created_at__gte=month_start)
            .values("referral_user__username")
            .annotate(earnings=Sum("amount"))
        )
    else:
        rows = (
            transactions.values("referral_user__username")
            .annotate(earnings=_money_sum(Q(type=ReferralTransaction.Type.EARNING)) - _money_sum(
                Q(type=ReferralTransaction.Type.WITHDRAWAL)
            ))
        )
    rows = rows.order_by("-earnings")[:TOP_EARNERS_LIMIT]
    return [{"username": row["referral_user__username"], "earnings": row["earnings"]} for row in rows]


def request_withdrawal(referrer: ReferralUser, amount: Any, upi_id: str) -> ReferralTransaction:
    """Create a pending withdrawal after checking status, minimum and balance."""
    amount = round_money(amount)
    with transaction.atomic():
        referrer = ReferralUser.objects.select_for_update().get(pk=referrer.pk)
        if referrer.status != ReferralUser.Status.ACTIVE:
            raise ValidationError("User is not active or not found")
        if amount < MIN_WITHDRAWAL_AMOUNT:
            raise ValidationError(f"Minimum withdrawal amount is ₹{MIN_WITHDRAWAL_AMOUNT}")
        stats = referrer.transactions.aggregate(earned=_money_sum(EARNED), withdrawn=_money_sum(WITHDRAWN))
        available = to_decimal(stats["earned"]) - to_decimal(stats["withdrawn"])
        if amount > available:
            raise ValidationError("Insufficient balance", available_balance=str(round_money(available)))
        if referrer.transactions.filter(WITHDRAWAL_PENDING).exists():
            raise ValidationError("You already have a pending withdrawal request")
        withdrawal = ReferralTransaction.objects.create(
            referral_user=referrer,
            amount=amount,
            type=ReferralTransaction.Type.WITHDRAWAL,
            status=ReferralTransaction.Status.PENDING,
            source=ReferralTransaction.Source.MANUAL,
            upi_id=upi_id,
        )
    logger.info(f"Withdrawal of {amount} requested by referrer {referrer.referral_code}")
    return withdrawal
