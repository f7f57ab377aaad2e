"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.uow import AbstractUnitOfWork, DjangoUnitOfWork
from shared.domain.exceptions import NotFound, ValidationError
from shared.domain.value_objects import ZERO, round_whole, to_decimal

from .domain.events import BookingInitiated, BookingStatusChanged
from .domain.state_machine import BookingStatus, check_transition

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .models import Booking

logger = logging.getLogger(__name__)

OWNER_ACTIONS = ("CONFIRM", "CANCEL")
OWNER_ACTIONABLE_STATUSES = (
    BookingStatus.PENDING_OWNER_CONFIRMATION.value,
    BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value,
)
UPDATABLE_FIELDS = ("payment_status", "order_id", "transaction_id")


@dataclass
class TransitionResult:
    booking: "Booking"
    previous_status: str
    changed: bool

    @property
    def message(self) -> str:
        if not self.changed:
            return "Booking already in requested status"
        return "Booking status updated successfully"


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def get_booking(booking_id: str | None = None, *, for_update: bool = False, **lookup: Any) -> "Booking":
    from .models import Booking  # Local import to prevent circular dependency

    if booking_id is not None:
        lookup["booking_id"] = booking_id
    if not lookup or any(value in (None, "") for value in lookup.values()):
        raise ValidationError("Booking ID is required")
    queryset = Booking.objects.all()
    if for_update:
        queryset = _lock_queryset_if_possible(queryset)
    try:
        return queryset.get(**lookup)
    except Booking.DoesNotExist:
        raise NotFound("Booking not found", **{key: str(value) for key, value in lookup.items()}) from None


def find_active_referrer(referral_code: str | None):
    if not referral_code:
        return None
    from apps.referrals.models import ReferralUser

    return ReferralUser.objects.active().filter(referral_code=referral_code.strip().upper()).first()


def initiate_booking(data: dict[str, Any], *, uow: AbstractUnitOfWork | None = None) -> "Booking":
    """Create a booking in PAYMENT_PENDING from already-validated input.

    An active referral code knocks a share of the advance off (rounded to
    whole currency units) and copies the referrer's type onto the booking.
    """
    from .models import Booking

    data = dict(data)
    referral_code = (data.pop("referral_code", "") or "").strip().upper()
    advance = to_decimal(data.pop("advance_amount"))
    discount = ZERO

    referrer = find_active_referrer(referral_code)
    if referrer is not None:
        discount = round_whole(advance * to_decimal(settings.REFERRAL_DISCOUNT_RATE))
        advance -= discount
        data["referral_type"] = referrer.referral_type

    if data.get("property_type") == Booking.PropertyType.VILLA:
        data["veg_guest_count"] = None
        data["nonveg_guest_count"] = None
    else:
        data["persons"] = (data.get("veg_guest_count") or 0) + (data.get("nonveg_guest_count") or 0)
        data["max_capacity"] = None

    with (uow or DjangoUnitOfWork()) as unit:
        booking = Booking.objects.create(
            **data,
            advance_amount=advance,
            referral_code=referral_code,
            referral_discount=discount,
            booking_status=BookingStatus.PAYMENT_PENDING.value,
            payment_status=Booking.PaymentStatus.INITIATED,
        )
        unit.record(BookingInitiated(aggregate_id=booking.booking_id, booking_id=booking.booking_id))

    logger.info(
        f"Booking {booking.booking_id} initiated for {booking.property_name}, "
        f"advance {booking.advance_amount}, referral {referral_code or '-'} (discount {discount})"
    )
    return booking


def transition(
    booking: "Booking",
    requested_status: str,
    uow: AbstractUnitOfWork,
    **fields: Any,
) -> TransitionResult:
    """Move an already-locked booking to ``requested_status``.

    Extra model ``fields`` are written in the same save. A request for the
    current status changes nothing.
    """
    previous = booking.booking_status
    check = check_transition(previous, requested_status)
    if not check.changed:
        return TransitionResult(booking=booking, previous_status=previous, changed=False)

    booking.booking_status = check.requested
    for name, value in fields.items():
        setattr(booking, name, value)
    booking.save(update_fields=["booking_status", *fields.keys(), "updated_at"])
    uow.record(
        BookingStatusChanged(
            aggregate_id=booking.booking_id,
            booking_id=booking.booking_id,
            old_status=previous,
            new_status=check.requested,
        )
    )
    logger.info(f"Booking {booking.booking_id}: {previous} -> {check.requested}")
    return TransitionResult(booking=booking, previous_status=previous, changed=True)


def apply_transition(
    booking_id: str,
    requested_status: str | None = None,
    *,
    payment_status: str | None = None,
    order_id: str | None = None,
    transaction_id: str | None = None,
) -> TransitionResult:
    """Validate and persist a status change (and/or payment fields) for one booking.

    The booking row is locked for the duration of the transaction. With no
    requested status, only the supplied payment fields are updated.
    """
    from .models import Booking

    if requested_status is not None:
        BookingStatus.parse(requested_status)
    if payment_status is not None and payment_status not in Booking.PaymentStatus.values:
        raise ValidationError(
            f"Unknown payment status: {payment_status}",
            allowed_payment_statuses=list(Booking.PaymentStatus.values),
        )
    supplied = {
        name: value
        for name, value in (
            ("payment_status", payment_status),
            ("order_id", order_id),
            ("transaction_id", transaction_id),
        )
        if value is not None
    }
    if requested_status is None and not supplied:
        raise ValidationError("No fields to update")

    with DjangoUnitOfWork() as uow:
        booking = get_booking(booking_id, for_update=True)
        if requested_status is None:
            for name, value in supplied.items():
                setattr(booking, name, value)
            booking.save(update_fields=[*supplied.keys(), "updated_at"])
            logger.info(f"Booking {booking.booking_id}: updated {', '.join(supplied)}")
            return TransitionResult(booking=booking, previous_status=booking.booking_status, changed=True)
        return transition(booking, requested_status, uow, **supplied)


def forward_to_owner(booking: "Booking", uow: AbstractUnitOfWork, now=None) -> TransitionResult:
    """PAYMENT_SUCCESS -> BOOKING_REQUEST_SENT_TO_OWNER with a fresh owner action token."""
    from .models import Booking, generate_token

    now = now or timezone.now()
    return transition(
        booking,
        BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value,
        uow,
        commission_status=Booking.CommissionStatus.PENDING,
        action_token=generate_token(),
        action_token_used=False,
        action_token_expires_at=now + timedelta(minutes=settings.OWNER_ACTION_TOKEN_TTL_MINUTES),
    )


def _owner_commission_status(booking: "Booking", target: str) -> str | None:
    if booking.commission_status == booking.CommissionStatus.PENDING:
        return target
    return booking.commission_status


def handle_owner_action(token: str, action: str, now=None) -> TransitionResult:
    """Apply an owner's CONFIRM/CANCEL decision delivered through a one-time link."""
    from .models import Booking

    if not token or not action:
        raise ValidationError("Token and action are required")
    action = action.strip().upper()
    if action not in OWNER_ACTIONS:
        raise ValidationError("Invalid action. Must be CONFIRM or CANCEL")
    now = now or timezone.now()

    with DjangoUnitOfWork() as uow:
        try:
            booking = _lock_queryset_if_possible(Booking.objects.all()).get(action_token=token)
        except Booking.DoesNotExist:
            raise NotFound("Invalid or expired token") from None

        if booking.action_token_used:
            raise ValidationError("This action has already been taken", booking_status=booking.booking_status)
        if booking.action_token_expired(now):
            raise ValidationError("Action token has expired")
        if booking.booking_status not in OWNER_ACTIONABLE_STATUSES:
            raise ValidationError(
                "Booking is not in a state that allows this action",
                current_status=booking.booking_status,
            )
        if not booking.is_paid:
            raise ValidationError(
                "Cannot process action - payment not confirmed",
                payment_status=booking.payment_status,
            )

        if booking.booking_status == BookingStatus.PENDING_OWNER_CONFIRMATION.value:
            # Legacy rows: bring them onto the table before applying the action.
            booking.booking_status = BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value

        if action == "CONFIRM":
            transition(
                booking,
                BookingStatus.OWNER_CONFIRMED.value,
                uow,
                action_token_used=True,
                commission_status=_owner_commission_status(booking, Booking.CommissionStatus.CONFIRMED),
            )
            result = transition(booking, BookingStatus.TICKET_GENERATED.value, uow)
        else:
            result = transition(
                booking,
                BookingStatus.OWNER_CANCELLED.value,
                uow,
                action_token_used=True,
                commission_status=_owner_commission_status(booking, Booking.CommissionStatus.CANCELLED),
                refund_amount=booking.advance_amount,
            )
        result.previous_status = BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value

    logger.info(f"Owner {action} applied to booking {booking.booking_id}")
    return result


def process_confirmed_booking(booking_id: str) -> TransitionResult:
    """OWNER_CONFIRMED -> TICKET_GENERATED."""
    with DjangoUnitOfWork() as uow:
        booking = get_booking(booking_id, for_update=True)
        if booking.booking_status != BookingStatus.OWNER_CONFIRMED.value:
            raise ValidationError(
                "Booking must be in OWNER_CONFIRMED status",
                current_status=booking.booking_status,
            )
        return transition(booking, BookingStatus.TICKET_GENERATED.value, uow)


def process_cancelled_booking(booking_id: str) -> tuple["Booking", bool]:
    """OWNER_CANCELLED -> REFUND_REQUIRED.

    Returns the booking and whether a refund is owed. Calling it again on a
    booking that already reached REFUND_REQUIRED reports the same refund.
    """
    with DjangoUnitOfWork() as uow:
        booking = get_booking(booking_id, for_update=True)
        if booking.booking_status == BookingStatus.REFUND_REQUIRED.value:
            return booking, bool(booking.refund_amount)
        if booking.booking_status != BookingStatus.OWNER_CANCELLED.value:
            raise ValidationError(
                "Booking must be in OWNER_CANCELLED status",
                current_status=booking.booking_status,
            )
        refund: Decimal | None = booking.advance_amount if booking.is_paid else None
        transition(booking, BookingStatus.REFUND_REQUIRED.value, uow, refund_amount=refund)
        return booking, refund is not None


REFUND_STATUSES = (
    BookingStatus.OWNER_CANCELLED.value,
    BookingStatus.REFUND_REQUIRED.value,
    BookingStatus.CANCELLED_BY_OWNER.value,
)


def refund_requests():
    """Paid bookings cancelled by the owner, most recently updated first."""
    from .models import Booking

    return Booking.objects.filter(
        booking_status__in=REFUND_STATUSES,
        payment_status=Booking.PaymentStatus.SUCCESS,
    ).order_by("-updated_at")
