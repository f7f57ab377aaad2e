"""Payment gateway callback processing."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings  # type: ignore

from apps.bookings.domain.state_machine import BookingStatus
from apps.bookings.models import Booking
from apps.bookings.services import forward_to_owner, get_booking, transition
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import DomainError, ValidationError
from shared.domain.value_objects import round_money

from .models import PaymentEvent

logger = logging.getLogger(__name__)

TXN_SUCCESS = "TXN_SUCCESS"
TXN_PENDING = "PENDING"
TXN_FAILURE = "TXN_FAILURE"
GATEWAY_STATUSES = (TXN_SUCCESS, TXN_PENDING, TXN_FAILURE)


@dataclass
class CallbackResult:
    booking: Booking
    duplicate: bool = False

    @property
    def status(self) -> str:
        return "already_processed" if self.duplicate else "processed"


def verify_webhook_secret(provided: str | None) -> bool:
    """Compare the shared webhook secret when one is configured."""
    expected = settings.PAYMENT_WEBHOOK_SECRET
    if not expected:
        return True
    return bool(provided) and hmac.compare_digest(str(provided), expected)


def _record(payload: dict[str, Any]) -> PaymentEvent:
    return PaymentEvent.objects.create(
        order_id=str(payload.get("order_id") or ""),
        booking_ref=str(payload.get("booking_id") or ""),
        status=str(payload.get("status") or "").upper(),
        payload=payload,
    )


def process_gateway_callback(payload: dict[str, Any], now=None) -> CallbackResult:
    """Apply a gateway callback to its booking.

    TXN_SUCCESS moves PAYMENT_PENDING through PAYMENT_SUCCESS to
    BOOKING_REQUEST_SENT_TO_OWNER and issues the owner action token.
    PENDING and TXN_FAILURE only update ``payment_status``. A callback for
    a booking that is already paid is acknowledged without changes.
    """
    event = _record(payload)
    try:
        result = _apply_callback(payload, now)
    except DomainError as e:
        PaymentEvent.objects.filter(pk=event.pk).update(
            outcome=PaymentEvent.Outcome.REJECTED,
            error=e.message[:255],
        )
        logger.warning(f"Payment callback {event.pk} rejected: {e.message}")
        raise
    PaymentEvent.objects.filter(pk=event.pk).update(
        booking=result.booking,
        outcome=PaymentEvent.Outcome.DUPLICATE if result.duplicate else PaymentEvent.Outcome.PROCESSED,
    )
    return result


def _apply_callback(payload: dict[str, Any], now=None) -> CallbackResult:
    order_id = payload.get("order_id")
    booking_id = payload.get("booking_id")
    status = str(payload.get("status") or "").upper()
    txn_id = str(payload.get("txn_id") or "")
    payment_mode = str(payload.get("payment_mode") or "")

    if not order_id and not booking_id:
        raise ValidationError("order_id or booking_id is required")
    if status not in GATEWAY_STATUSES:
        raise ValidationError(f"Unknown gateway status: {status or '-'}", allowed_statuses=list(GATEWAY_STATUSES))

    with DjangoUnitOfWork() as uow:
        if order_id:
            booking = get_booking(order_id=order_id, for_update=True)
        else:
            booking = get_booking(booking_id, for_update=True)

        if booking.is_paid:
            logger.info(f"Payment callback for {booking.booking_id} already processed")
            return CallbackResult(booking=booking, duplicate=True)

        if status == TXN_SUCCESS:
            received = payload.get("txn_amount")
            try:
                amount = round_money(received)
            except ArithmeticError:
                raise ValidationError("Invalid txn_amount", received=str(received)) from None
            if amount != round_money(booking.advance_amount):
                raise ValidationError(
                    "Amount mismatch",
                    expected=str(booking.advance_amount),
                    received=str(received),
                )
            transition(
                booking,
                BookingStatus.PAYMENT_SUCCESS.value,
                uow,
                payment_status=Booking.PaymentStatus.SUCCESS,
                transaction_id=txn_id,
                payment_method=payment_mode,
                order_id=order_id or booking.order_id,
            )
            forward_to_owner(booking, uow, now=now)
            logger.info(f"Payment confirmed for booking {booking.booking_id} ({txn_id})")
            return CallbackResult(booking=booking)

        booking.payment_status = (
            Booking.PaymentStatus.PENDING if status == TXN_PENDING else Booking.PaymentStatus.FAILED
        )
        booking.transaction_id = txn_id or booking.transaction_id
        booking.payment_method = payment_mode or booking.payment_method
        booking.save(update_fields=["payment_status", "transaction_id", "payment_method", "updated_at"])
        logger.info(f"Payment {status} recorded for booking {booking.booking_id}")
        return CallbackResult(booking=booking)
