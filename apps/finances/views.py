"""Payment gateway webhook."""

from __future__ import annotations

import logging

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.exceptions import DomainError

from .services import process_gateway_callback, verify_webhook_secret

logger = logging.getLogger(__name__)


class PaymentWebhookView(APIView):
    """Server-to-server callback from the payment gateway."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        if not verify_webhook_secret(request.headers.get("X-Webhook-Secret")):
            logger.warning("Payment webhook rejected: bad secret")
            return Response({"error": "Invalid webhook secret"}, status=status.HTTP_403_FORBIDDEN)
        if not request.data:
            return Response({"error": "Empty webhook payload"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = process_gateway_callback(dict(request.data.items()))
        except DomainError as exc:
            return Response(exc.to_dict(), status=exc.status_code)

        booking = result.booking
        return Response(
            {
                "status": result.status,
                "booking_id": booking.booking_id,
                "booking_status": booking.booking_status,
                "payment_status": booking.payment_status,
            },
            status=status.HTTP_200_OK,
        )
