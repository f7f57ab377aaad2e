"""Tests for the payment gateway webhook."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any
from unittest import mock

from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.bookings.tasks import notify_booking_status_changed
from apps.finances.models import PaymentEvent


def make_booking(**overrides: Any) -> Booking:
    now = timezone.now()
    data: dict[str, Any] = {
        "property_id": "villa-3",
        "property_name": "Hilltop Villa",
        "property_type": Booking.PropertyType.VILLA,
        "owner_phone": "9876543210",
        "admin_phone": "9123456780",
        "guest_name": "Neha",
        "guest_phone": "9988776655",
        "persons": 4,
        "max_capacity": 6,
        "checkin_datetime": now + timedelta(days=1),
        "checkout_datetime": now + timedelta(days=2),
        "total_amount": Decimal("5000.00"),
        "advance_amount": Decimal("1500.00"),
        "order_id": "ORD-1001",
    }
    data.update(overrides)
    return Booking.objects.create(**data)


class PaymentWebhookAPITests(APITestCase):
    def setUp(self) -> None:
        self.url = reverse("payment-webhook")
        self.booking = make_booking()
        self.success: dict[str, Any] = {
            "order_id": "ORD-1001",
            "status": "TXN_SUCCESS",
            "txn_id": "TXN-77",
            "txn_amount": "1500.00",
            "payment_mode": "UPI",
        }

    def test_success_forwards_booking_to_owner(self) -> None:
        response = self.client.post(self.url, self.success, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "processed")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "BOOKING_REQUEST_SENT_TO_OWNER")
        self.assertEqual(self.booking.payment_status, "SUCCESS")
        self.assertEqual(self.booking.transaction_id, "TXN-77")
        self.assertEqual(self.booking.payment_method, "UPI")
        self.assertEqual(self.booking.commission_status, "PENDING")
        self.assertIsNotNone(self.booking.action_token)
        event = PaymentEvent.objects.get()
        self.assertEqual(event.outcome, PaymentEvent.Outcome.PROCESSED)
        self.assertEqual(event.booking, self.booking)
        self.assertEqual(event.payload["txn_id"], "TXN-77")

    def test_replay_is_acknowledged_without_changes(self) -> None:
        self.client.post(self.url, self.success, format="json")
        self.booking.refresh_from_db()
        token = self.booking.action_token

        response = self.client.post(self.url, self.success, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "already_processed")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.action_token, token)
        self.assertEqual(
            list(PaymentEvent.objects.order_by("pk").values_list("outcome", flat=True)),
            ["processed", "duplicate"],
        )

    def test_amount_mismatch(self) -> None:
        response = self.client.post(self.url, {**self.success, "txn_amount": "150.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Amount mismatch")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.booking_status, "PAYMENT_PENDING")
        self.assertEqual(self.booking.payment_status, "INITIATED")
        event = PaymentEvent.objects.get()
        self.assertEqual(event.outcome, PaymentEvent.Outcome.REJECTED)
        self.assertEqual(event.error, "Amount mismatch")

    def test_numeric_amount(self) -> None:
        response = self.client.post(self.url, {**self.success, "txn_amount": 1500}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_failure_records_payment_status_only(self) -> None:
        response = self.client.post(
            self.url,
            {"order_id": "ORD-1001", "status": "TXN_FAILURE", "txn_id": "TXN-78"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "FAILED")
        self.assertEqual(self.booking.transaction_id, "TXN-78")
        self.assertEqual(self.booking.booking_status, "PAYMENT_PENDING")

    def test_pending_callback(self) -> None:
        response = self.client.post(self.url, {"order_id": "ORD-1001", "status": "PENDING"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.payment_status, "PENDING")

    def test_lookup_by_booking_id(self) -> None:
        payload = {**self.success, "booking_id": self.booking.booking_id}
        del payload["order_id"]

        response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["booking_id"], self.booking.booking_id)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.order_id, "ORD-1001")

    def test_unknown_order(self) -> None:
        response = self.client.post(self.url, {**self.success, "order_id": "ORD-404"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(PaymentEvent.objects.get().outcome, PaymentEvent.Outcome.REJECTED)

    def test_unknown_gateway_status(self) -> None:
        response = self.client.post(self.url, {**self.success, "status": "REVERSED"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("TXN_SUCCESS", response.data["allowed_statuses"])

    def test_missing_reference(self) -> None:
        response = self.client.post(self.url, {"status": "TXN_SUCCESS"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_payload(self) -> None:
        response = self.client.post(self.url, {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PaymentEvent.objects.exists())

    def test_success_notifies_each_transition(self) -> None:
        with mock.patch.object(notify_booking_status_changed, "delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self.client.post(self.url, self.success, format="json")

        delay.assert_has_calls(
            [
                mock.call(self.booking.booking_id, "PAYMENT_SUCCESS"),
                mock.call(self.booking.booking_id, "BOOKING_REQUEST_SENT_TO_OWNER"),
            ]
        )

    @override_settings(PAYMENT_WEBHOOK_SECRET="s3cret")
    def test_shared_secret(self) -> None:
        rejected = self.client.post(self.url, self.success, format="json")
        accepted = self.client.post(self.url, self.success, format="json", HTTP_X_WEBHOOK_SECRET="s3cret")

        self.assertEqual(rejected.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(accepted.status_code, status.HTTP_200_OK, accepted.data)
