"""WhatsApp notifications for guests, owners and admins."""

from __future__ import annotations

import hmac
import json
import logging
import re
from typing import Any, TYPE_CHECKING

import requests  # type: ignore
from django.conf import settings  # type: ignore

from apps.bookings.domain.state_machine import BookingStatus

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)

Message = tuple[str, str]


# ============================================================================
# TRANSPORT
# ============================================================================

def format_phone(phone: str) -> str:
    """Strip formatting; bare 10-digit numbers get the default country code."""
    cleaned = re.sub(r"[\s\-()]", "", phone or "").lstrip("+")
    if len(cleaned) == 10:
        cleaned = f"{settings.WHATSAPP_DEFAULT_COUNTRY_CODE}{cleaned}"
    return cleaned


def whatsapp_configured() -> bool:
    return bool(
        settings.WHATSAPP_ENABLED and settings.WHATSAPP_PHONE_NUMBER_ID and settings.WHATSAPP_ACCESS_TOKEN
    )


def send_whatsapp_message(phone_number: str, text: str, preview_url: bool = False) -> dict | None:
    """Send a text message through the WhatsApp Cloud API.

    Returns the API response, or None when sending is disabled or fails.
    Failures are logged and never raised.
    """
    to = format_phone(phone_number)
    if not to:
        logger.warning("WhatsApp message skipped: empty recipient")
        return None
    if not whatsapp_configured():
        logger.info(f"[WhatsApp] Not configured, would send to {to}: {text[:60]!r}")
        return None

    url = f"{settings.WHATSAPP_API_URL}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"
    headers = {
        "Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}",
        "Content-Type": "application/json",
    }
    payload = {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "text",
        "text": {"preview_url": preview_url, "body": text},
    }

    try:
        response = requests.post(url, headers=headers, json=payload, timeout=settings.WHATSAPP_TIMEOUT)
        response.raise_for_status()
        logger.info(f"[WhatsApp] Message sent to {to}")
        return response.json()
    except requests.RequestException as e:
        logger.error(f"Error sending WhatsApp message to {to}: {e}", exc_info=True)
        return None


def send_whatsapp_buttons(phone_number: str, text: str, buttons: list[tuple[str, str]]) -> dict | None:
    """Send an interactive message with up to three reply buttons.

    ``buttons`` is a list of ``(button_id, title)``; the id comes back in the
    webhook when the recipient taps the button.
    """
    to = format_phone(phone_number)
    if not to:
        logger.warning("WhatsApp buttons skipped: empty recipient")
        return None
    if not whatsapp_configured():
        logger.info(f"[WhatsApp] Not configured, would send buttons to {to}")
        return None

    url = f"{settings.WHATSAPP_API_URL}/{settings.WHATSAPP_PHONE_NUMBER_ID}/messages"
    headers = {
        "Authorization": f"Bearer {settings.WHATSAPP_ACCESS_TOKEN}",
        "Content-Type": "application/json",
    }
    payload = {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "interactive",
        "interactive": {
            "type": "button",
            "body": {"text": text},
            "action": {
                "buttons": [
                    {"type": "reply", "reply": {"id": button_id, "title": title[:20]}}
                    for button_id, title in buttons[:3]
                ]
            },
        },
    }

    try:
        response = requests.post(url, headers=headers, json=payload, timeout=settings.WHATSAPP_TIMEOUT)
        response.raise_for_status()
        logger.info(f"[WhatsApp] Buttons sent to {to}")
        return response.json()
    except requests.RequestException as e:
        logger.error(f"Error sending WhatsApp buttons to {to}: {e}", exc_info=True)
        return None


# ============================================================================
# WEBHOOK
# ============================================================================

def verify_webhook(mode: str | None, token: str | None, challenge: str | None) -> str | None:
    """Return the challenge to echo when Meta's subscription handshake is valid."""
    expected = settings.WHATSAPP_VERIFY_TOKEN
    if mode == "subscribe" and expected and token and hmac.compare_digest(str(token), expected):
        return challenge or ""
    return None


def extract_button_reply(payload: Any) -> dict[str, str] | None:
    """Pull ``{"from", "button_id", "message_id"}`` out of a webhook body.

    Returns None for anything that is not an interactive button reply.
    """
    try:
        message = payload["entry"][0]["changes"][0]["value"]["messages"][0]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(message, dict) or message.get("type") != "interactive":
        return None
    reply = (message.get("interactive") or {}).get("button_reply")
    if not reply or not reply.get("id"):
        return None
    return {
        "from": str(message.get("from") or ""),
        "button_id": str(reply["id"]),
        "message_id": str(message.get("id") or ""),
    }


def owner_button_id(booking: "Booking", action: str) -> str:
    return json.dumps({"token": booking.action_token, "action": action}, separators=(",", ":"))


def parse_owner_button_id(button_id: str) -> tuple[str, str] | None:
    """``(token, action)`` from a button id built by ``owner_button_id``."""
    try:
        data = json.loads(button_id)
    except ValueError:
        return None
    if not isinstance(data, dict) or not data.get("token") or not data.get("action"):
        return None
    return str(data["token"]), str(data["action"])


# ============================================================================
# MESSAGES
# ============================================================================

def ticket_url(booking: "Booking") -> str:
    return f"{settings.FRONTEND_URL}/ticket?token={booking.ticket_token}"


def owner_action_url(booking: "Booking", action: str) -> str:
    return f"{settings.FRONTEND_URL}/api/v1/bookings/owner-action/?token={booking.action_token}&action={action}"


def _stay(booking: "Booking") -> str:
    return (
        f"Check-in: {booking.checkin_datetime:%d %b %Y, %H:%M}\n"
        f"Check-out: {booking.checkout_datetime:%d %b %Y, %H:%M}"
    )


def _guests(booking: "Booking") -> str:
    if booking.property_type == booking.PropertyType.VILLA:
        return f"Persons: {booking.persons}"
    return f"Veg: {booking.veg_guest_count or 0}, Non-veg: {booking.nonveg_guest_count or 0}"


def payment_pending_alert(booking: "Booking") -> list[Message]:
    minutes = settings.PAYMENT_PENDING_ALERT_MINUTES
    return [
        (
            booking.admin_phone,
            f"⚠️ Payment Pending Alert\n\nBooking ID: {booking.booking_id}\n"
            f"Guest: {booking.guest_name} ({booking.guest_phone})\n"
            f"Property: {booking.property_name}\nAmount: ₹{booking.advance_amount}\n\n"
            f"Payment has been pending for {minutes} minutes.",
        )
    ]


def status_change_messages(booking: "Booking", new_status: str) -> list[Message]:
    """Messages to send when ``booking`` reaches ``new_status`` (may be empty)."""
    if new_status == BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER.value:
        return [
            (
                booking.guest_phone,
                f"✅ Payment Successful!\n\nBooking ID: {booking.booking_id}\n"
                f"Amount Paid: ₹{booking.advance_amount}\n\n"
                "Your booking request has been received.\nOwner confirmation is pending.",
            ),
            (
                booking.owner_phone,
                f"🏕️ New Booking Request\n\nBooking ID: {booking.booking_id}\n"
                f"Property: {booking.property_name}\nGuest: {booking.guest_name} ({booking.guest_phone})\n"
                f"{_stay(booking)}\n{_guests(booking)}\nAdvance paid: ₹{booking.advance_amount}\n\n"
                f"Confirm: {owner_action_url(booking, 'CONFIRM')}\n"
                f"Cancel: {owner_action_url(booking, 'CANCEL')}",
            ),
            (
                booking.admin_phone,
                f"💰 Payment Received\n\nBooking ID: {booking.booking_id}\n"
                f"Property: {booking.property_name}\nGuest: {booking.guest_name} ({booking.guest_phone})\n"
                f"Advance: ₹{booking.advance_amount}\nReferral: {booking.referral_code or '-'}\n\n"
                "Waiting for owner confirmation.",
            ),
        ]

    if new_status == BookingStatus.TICKET_GENERATED.value:
        url = ticket_url(booking)
        return [
            (
                booking.guest_phone,
                f"🎉 Booking Confirmed!\n\nYour booking has been confirmed by the property owner.\n\n"
                f"Booking ID: {booking.booking_id}\nProperty: {booking.property_name}\n\n"
                f"View your e-ticket:\n{url}",
            ),
            (
                booking.admin_phone,
                f"✅ Booking Confirmed & Ticket Generated\n\nBooking ID: {booking.booking_id}\n"
                f"Property: {booking.property_name}\nGuest: {booking.guest_name} ({booking.guest_phone})\n"
                f"Advance: ₹{booking.advance_amount}\nDue: ₹{booking.due_amount}\n\nE-ticket: {url}",
            ),
        ]

    if new_status == BookingStatus.OWNER_CANCELLED.value:
        return [
            (
                booking.guest_phone,
                f"❌ Booking Cancelled\n\nYour booking for {booking.property_name} has been cancelled "
                f"by the property owner.\n\nBooking ID: {booking.booking_id}\n"
                f"Refund Amount: ₹{booking.refund_amount or booking.advance_amount}\n\n"
                "Your refund will be processed shortly.",
            ),
            (
                booking.admin_phone,
                f"❌ Booking Cancelled by Owner - Refund Required\n\nBooking ID: {booking.booking_id}\n"
                f"Property: {booking.property_name}\nGuest: {booking.guest_name} ({booking.guest_phone})\n"
                f"Refund Amount: ₹{booking.refund_amount or booking.advance_amount}",
            ),
        ]

    if new_status == BookingStatus.REFUND_REQUIRED.value and booking.refund_amount:
        return [
            (
                booking.admin_phone,
                f"💸 Refund Required\n\nBooking ID: {booking.booking_id}\n"
                f"Guest: {booking.guest_name} ({booking.guest_phone})\n"
                f"Refund Amount: ₹{booking.refund_amount}",
            ),
        ]

    return []


def deliver(messages: list[Message]) -> int:
    """Send every message; returns how many the API accepted."""
    sent = 0
    for phone, text in messages:
        if send_whatsapp_message(phone, text) is not None:
            sent += 1
    return sent


def send_owner_action_buttons(booking: "Booking") -> bool:
    """Offer the owner Confirm/Cancel reply buttons for a forwarded booking."""
    if not booking.action_token:
        return False
    text = (
        f"Booking {booking.booking_id} for {booking.property_name}\n"
        f"Guest: {booking.guest_name}\n{_stay(booking)}\n\nPlease confirm or cancel."
    )
    buttons = [
        (owner_button_id(booking, "CONFIRM"), "✅ Confirm"),
        (owner_button_id(booking, "CANCEL"), "❌ Cancel"),
    ]
    return send_whatsapp_buttons(booking.owner_phone, text, buttons) is not None


def owner_action_reply(booking: "Booking", action: str) -> str:
    """Acknowledgement sent back to the owner after a button reply was applied."""
    if action == "CONFIRM":
        return f"✅ Booking {booking.booking_id} confirmed! Guest has been notified."
    return f"❌ Booking {booking.booking_id} cancelled. Customer notified."
