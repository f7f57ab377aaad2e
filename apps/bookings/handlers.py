"""Domain event handlers wiring booking events to background tasks."""

from __future__ import annotations

from django.conf import settings  # type: ignore

from shared.application.message_bus import message_bus

from .domain.events import BookingInitiated, BookingStatusChanged


def schedule_payment_pending_alert(event: BookingInitiated) -> None:
    from .tasks import send_payment_pending_alert

    send_payment_pending_alert.apply_async(
        args=[event.booking_id],
        countdown=settings.PAYMENT_PENDING_ALERT_MINUTES * 60,
    )


def notify_status_change(event: BookingStatusChanged) -> None:
    from .tasks import notify_booking_status_changed

    notify_booking_status_changed.delay(event.booking_id, event.new_status)


def register() -> None:
    message_bus.register_event_handler(BookingInitiated, schedule_payment_pending_alert)
    message_bus.register_event_handler(BookingStatusChanged, notify_status_change)
