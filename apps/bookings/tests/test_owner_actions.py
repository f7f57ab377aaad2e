"""Tests for owner action links and the confirm/cancel follow-up endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any
from unittest import mock

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.services import forward_to_owner, handle_owner_action
from apps.bookings.tasks import notify_booking_status_changed
from apps.notifications import services as notifications
from apps.users.models import User
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ValidationError


def make_booking(**overrides: Any) -> Booking:
    now = timezone.now()
    data: dict[str, Any] = {
        "property_id": "cottage-1",
        "property_name": "Riverside Cottage",
        "property_type": Booking.PropertyType.COTTAGE,
        "owner_phone": "9876543210",
        "admin_phone": "9123456780",
        "guest_name": "Vikram",
        "guest_phone": "9988776655",
        "veg_guest_count": 1,
        "nonveg_guest_count": 1,
        "persons": 2,
        "checkin_datetime": now + timedelta(days=5),
        "checkout_datetime": now + timedelta(days=6),
        "total_amount": Decimal("2000.00"),
        "advance_amount": Decimal("600.00"),
        "booking_status": "PAYMENT_SUCCESS",
        "payment_status": "SUCCESS",
    }
    data.update(overrides)
    return Booking.objects.create(**data)


def forwarded_booking(**overrides: Any) -> Booking:
    booking = make_booking(**overrides)
    with DjangoUnitOfWork() as uow:
        forward_to_owner(booking, uow)
    booking.refresh_from_db()
    return booking


class OwnerActionAPITests(APITestCase):
    def setUp(self) -> None:
        self.url = reverse("booking-owner-action")
        self.booking = forwarded_booking()

    def test_forwarding_issues_a_token(self) -> None:
        self.assertEqual(self.booking.booking_status, "BOOKING_REQUEST_SENT_TO_OWNER")
        self.assertEqual(self.booking.commission_status, "PENDING")
        self.assertEqual(len(self.booking.action_token), 64)
        self.assertFalse(self.booking.action_token_used)
        remaining = self.booking.action_token_expires_at - timezone.now()
        self.assertTrue(timedelta(minutes=59) < remaining <= timedelta(minutes=60))

    def test_confirm_generates_ticket(self) -> None:
        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "confirm"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking_status"], "TICKET_GENERATED")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "TICKET_GENERATED")
        self.assertEqual(self.booking.commission_status, "CONFIRMED")
        self.assertTrue(self.booking.action_token_used)
        self.assertIsNone(self.booking.refund_amount)

    def test_cancel_records_refund(self) -> None:
        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "CANCEL"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "OWNER_CANCELLED")
        self.assertEqual(self.booking.commission_status, "CANCELLED")
        self.assertEqual(self.booking.refund_amount, Decimal("600.00"))

    def test_token_is_single_use(self) -> None:
        self.client.get(self.url, {"token": self.booking.action_token, "action": "CONFIRM"})

        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "CANCEL"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "This action has already been taken")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "TICKET_GENERATED")

    def test_invalid_action(self) -> None:
        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "MAYBE"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Invalid action. Must be CONFIRM or CANCEL")

    def test_missing_token(self) -> None:
        response = self.client.get(self.url, {"action": "CONFIRM"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Token and action are required")

    def test_unknown_token(self) -> None:
        response = self.client.get(self.url, {"token": "0" * 64, "action": "CONFIRM"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["message"], "Invalid or expired token")

    def test_wrong_status(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(booking_status="OWNER_CONFIRMED")

        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "CONFIRM"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["current_status"], "OWNER_CONFIRMED")

    def test_unpaid_booking(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(payment_status="PENDING")

        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "CONFIRM"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Cannot process action - payment not confirmed")

    def test_legacy_pending_confirmation_status(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(booking_status="PENDING_OWNER_CONFIRMATION")

        response = self.client.get(self.url, {"token": self.booking.action_token, "action": "CONFIRM"})

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "TICKET_GENERATED")

    def test_status_changes_are_notified_after_commit(self) -> None:
        with mock.patch.object(notify_booking_status_changed, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self.client.get(self.url, {"token": self.booking.action_token, "action": "CONFIRM"})

        delay.assert_has_calls(
            [
                mock.call(self.booking.booking_id, "OWNER_CONFIRMED"),
                mock.call(self.booking.booking_id, "TICKET_GENERATED"),
            ]
        )


class OwnerActionServiceTests(APITestCase):
    def test_expired_token(self) -> None:
        booking = forwarded_booking()
        later = booking.action_token_expires_at + timedelta(seconds=1)

        with self.assertRaises(ValidationError) as ctx:
            handle_owner_action(booking.action_token, "CONFIRM", now=later)

        self.assertEqual(ctx.exception.message, "Action token has expired")

    def test_commission_status_only_moves_from_pending(self) -> None:
        booking = forwarded_booking()
        Booking.objects.filter(pk=booking.pk).update(commission_status=None)

        handle_owner_action(booking.action_token, "CANCEL")

        booking.refresh_from_db()
        self.assertIsNone(booking.commission_status)


class ProcessOwnerDecisionAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )
        self.client.force_authenticate(self.admin)

    def test_process_confirmed(self) -> None:
        booking = make_booking(booking_status="OWNER_CONFIRMED")

        response = self.client.post(
            reverse("booking-process-confirmed"), {"booking_id": booking.booking_id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "TICKET_GENERATED")
        self.assertTrue(response.data["ticket_url"].endswith(f"/ticket?token={booking.ticket_token}"))

    def test_process_confirmed_wrong_status(self) -> None:
        booking = make_booking(booking_status="OWNER_CANCELLED")

        response = self.client.post(
            reverse("booking-process-confirmed"), {"booking_id": booking.booking_id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Booking must be in OWNER_CONFIRMED status")

    def test_process_cancelled_paid_booking(self) -> None:
        booking = make_booking(booking_status="OWNER_CANCELLED")
        url = reverse("booking-process-cancelled")

        first = self.client.post(url, {"booking_id": booking.booking_id}, format="json")
        again = self.client.post(url, {"booking_id": booking.booking_id}, format="json")

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(first.data["status"], "REFUND_REQUIRED")
        self.assertEqual(first.data["refund_amount"], Decimal("600.00"))
        self.assertEqual(first.data["message"], "Refund required")
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(again.data["refund_amount"], Decimal("600.00"))

    def test_process_cancelled_unpaid_booking(self) -> None:
        booking = make_booking(booking_status="OWNER_CANCELLED", payment_status="FAILED")

        response = self.client.post(
            reverse("booking-process-cancelled"), {"booking_id": booking.booking_id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIsNone(response.data["refund_amount"])
        self.assertEqual(response.data["message"], "No refund required - payment was not successful")

    def test_requires_admin(self) -> None:
        guest = User.objects.create_user(email="guest@example.com", password="x")
        self.client.force_authenticate(guest)

        response = self.client.post(reverse("booking-process-confirmed"), {"booking_id": "PHC-x"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


def button_reply(button_id: str, sender: str = "919876543210") -> dict[str, Any]:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "changes": [
                    {
                        "value": {
                            "messages": [
                                {
                                    "from": sender,
                                    "id": "wamid.1",
                                    "type": "interactive",
                                    "interactive": {
                                        "type": "button_reply",
                                        "button_reply": {"id": button_id, "title": "Confirm"},
                                    },
                                }
                            ]
                        }
                    }
                ]
            }
        ],
    }


@mock.patch("apps.notifications.services.send_whatsapp_message", return_value=None)
class WhatsAppWebhookAPITests(APITestCase):
    def setUp(self) -> None:
        self.url = reverse("booking-whatsapp-webhook")
        self.booking = forwarded_booking()

    def test_subscription_handshake(self, send: mock.Mock) -> None:
        response = self.client.get(
            self.url,
            {"hub.mode": "subscribe", "hub.verify_token": "test-verify-token", "hub.challenge": "1158201444"},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, b"1158201444")

    def test_handshake_with_wrong_token(self, send: mock.Mock) -> None:
        response = self.client.get(
            self.url, {"hub.mode": "subscribe", "hub.verify_token": "guess", "hub.challenge": "1"}
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_confirm_button(self, send: mock.Mock) -> None:
        button_id = notifications.owner_button_id(self.booking, "CONFIRM")

        response = self.client.post(self.url, button_reply(button_id), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "ok")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "TICKET_GENERATED")
        self.assertTrue(self.booking.action_token_used)
        send.assert_called_once()
        self.assertEqual(send.call_args.args[0], "919876543210")
        self.assertIn("confirmed", send.call_args.args[1])

    def test_cancel_button(self, send: mock.Mock) -> None:
        button_id = notifications.owner_button_id(self.booking, "CANCEL")

        response = self.client.post(self.url, button_reply(button_id), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "OWNER_CANCELLED")
        self.assertEqual(self.booking.refund_amount, Decimal("600.00"))

    def test_used_token_is_reported_back(self, send: mock.Mock) -> None:
        handle_owner_action(self.booking.action_token, "CONFIRM")
        button_id = notifications.owner_button_id(self.booking, "CANCEL")

        response = self.client.post(self.url, button_reply(button_id), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "rejected")
        self.assertEqual(response.data["error"], "This action has already been taken")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "TICKET_GENERATED")
        self.assertIn("already been taken", send.call_args.args[1])

    def test_expired_token_is_rejected(self, send: mock.Mock) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(action_token_expires_at=timezone.now() - timedelta(minutes=1))
        button_id = notifications.owner_button_id(self.booking, "CONFIRM")

        response = self.client.post(self.url, button_reply(button_id), format="json")

        self.assertEqual(response.data["status"], "rejected")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "BOOKING_REQUEST_SENT_TO_OWNER")

    def test_other_messages_are_ignored(self, send: mock.Mock) -> None:
        text_message = {"entry": [{"changes": [{"value": {"messages": [{"type": "text", "from": "1"}]}}]}]}

        for body in (text_message, {"entry": []}, button_reply("not-json")):
            response = self.client.post(self.url, body, format="json")
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data["status"], "ignored")
        send.assert_not_called()


class RefundRequestsAPITests(APITestCase):
    def setUp(self) -> None:
        self.url = reverse("booking-refunds")
        self.admin = User.objects.create_user(
            email="admin@example.com",
            password="AdminPass123",
            role=User.RoleChoices.ADMIN,
        )

    def test_lists_paid_owner_cancellations(self) -> None:
        cancelled = make_booking(booking_status="OWNER_CANCELLED", refund_amount=Decimal("600.00"))
        refund_due = make_booking(booking_status="REFUND_REQUIRED", refund_amount=Decimal("600.00"))
        make_booking(booking_status="OWNER_CANCELLED", payment_status="FAILED")
        make_booking(booking_status="TICKET_GENERATED")
        self.client.force_authenticate(self.admin)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 2)
        self.assertEqual(
            {row["booking_id"] for row in response.data["results"]},
            {cancelled.booking_id, refund_due.booking_id},
        )

    def test_requires_admin(self) -> None:
        guest = User.objects.create_user(email="guest@example.com", password="x")
        self.client.force_authenticate(guest)

        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)
