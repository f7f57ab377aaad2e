"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications import services as notifications

from .domain.state_machine import BookingStatus
from .models import Booking

logger = logging.getLogger(__name__)


@shared_task(name="bookings.notify_booking_status_changed")
def notify_booking_status_changed(booking_id: str, new_status: str) -> int:
    """WhatsApp the guest/owner/admin about a status change."""

    try:
        booking = Booking.objects.get(booking_id=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Booking {booking_id} not found for status notification")
        return 0

    messages = notifications.status_change_messages(booking, new_status)
    sent = notifications.deliver(messages)
    if new_status == BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value:
        notifications.send_owner_action_buttons(booking)
    return sent


@shared_task(name="bookings.send_payment_pending_alert")
def send_payment_pending_alert(booking_id: str) -> bool:
    """Alert the admin if the booking is still waiting for payment."""

    try:
        booking = Booking.objects.get(booking_id=booking_id)
    except Booking.DoesNotExist:
        return False

    if booking.booking_status != BookingStatus.PAYMENT_PENDING.value or booking.payment_pending_alert_sent:
        return False
    # The gateway already reported a failure; nothing is pending any more.
    if booking.payment_status == Booking.PaymentStatus.FAILED:
        return False

    notifications.deliver(notifications.payment_pending_alert(booking))
    Booking.objects.filter(pk=booking.pk).update(payment_pending_alert_sent=True)
    logger.info(f"Payment pending alert sent for booking {booking.booking_id}")
    return True


# ============================================================================
# PERIODIC TASKS (запускаются автоматически через Celery Beat)
# ============================================================================

@shared_task(name="bookings.sweep_payment_pending_alerts")
def sweep_payment_pending_alerts() -> dict[str, int]:
    """
    Catch bookings whose delayed alert never ran (worker restart, lost countdown).

    Returns:
        dict: {"alerted": number of alerts sent}
    """
    cutoff = timezone.now() - timedelta(minutes=settings.PAYMENT_PENDING_ALERT_MINUTES)
    alerted = 0

    stale = Booking.objects.filter(
        booking_status=BookingStatus.PAYMENT_PENDING.value,
        payment_pending_alert_sent=False,
        created_at__lte=cutoff,
    ).exclude(payment_status=Booking.PaymentStatus.FAILED).values_list("booking_id", flat=True)

    for booking_id in list(stale):
        try:
            if send_payment_pending_alert(booking_id):
                alerted += 1
        except Exception as e:
            logger.error(f"Error sending payment pending alert for {booking_id}: {e}", exc_info=True)

    if alerted:
        logger.info(f"Sent {alerted} payment pending alerts")
    return {"alerted": alerted}
