"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.http import HttpResponse  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.notifications import services as notifications
from apps.users.permissions import IsPlatformAdmin
from shared.domain.exceptions import DomainError

from .models import Booking
from .serializers import (
    BookingInitiateSerializer,
    BookingReferenceSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
)
from .services import (
    apply_transition,
    get_booking,
    handle_owner_action,
    initiate_booking,
    process_cancelled_booking,
    process_confirmed_booking,
    refund_requests,
)
from .tickets import get_ticket

logger = logging.getLogger(__name__)


def error_response(exc: DomainError) -> Response:
    return Response(exc.to_dict(), status=exc.status_code)


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Bookings by their external ``booking_id``.

    Anyone holding a booking id may read it; the list is for admins only.
    """

    queryset = Booking.objects.all()
    serializer_class = BookingSerializer
    lookup_field = "booking_id"
    filterset_fields = ["booking_status", "payment_status", "property_type", "commission_status", "referral_code"]

    def get_permissions(self):  # type: ignore
        if self.action == "retrieve":
            return [permissions.AllowAny()]
        return [IsPlatformAdmin()]

    def retrieve(self, request, *args, **kwargs):  # type: ignore
        try:
            booking = get_booking(kwargs[self.lookup_field])
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=False, methods=["get"], url_path="refunds", url_name="refunds")
    def refunds(self, request):  # type: ignore
        """Paid bookings the owner cancelled, waiting on a refund."""
        queryset = refund_requests()
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(BookingSerializer(page, many=True).data)
        return Response(BookingSerializer(queryset, many=True).data)


class BookingInitiateView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = BookingInitiateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = initiate_booking(serializer.validated_data)
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "success": True,
                "booking": BookingSerializer(booking).data,
                "message": "Booking initiated successfully",
            },
            status=status.HTTP_201_CREATED,
        )


class BookingStatusUpdateView(APIView):
    """State machine endpoint used by the payment flow and the admin panel."""

    permission_classes = [IsPlatformAdmin]

    def put(self, request):  # type: ignore
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = apply_transition(
                data["booking_id"],
                data.get("booking_status"),
                payment_status=data.get("payment_status"),
                order_id=data.get("order_id"),
                transaction_id=data.get("transaction_id"),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "success": True,
                "message": result.message,
                "previous_status": result.previous_status,
                "booking": BookingSerializer(result.booking).data,
            },
            status=status.HTTP_200_OK,
        )

    post = put


class TicketView(APIView):
    """Guest e-ticket by ``booking_id`` or ``token`` query parameter."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        try:
            ticket = get_ticket(
                booking_id=request.query_params.get("booking_id"),
                token=request.query_params.get("token"),
                credential=request.headers.get("Authorization"),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(ticket, status=status.HTTP_200_OK)


class OwnerActionView(APIView):
    """One-time CONFIRM/CANCEL link sent to the owner over WhatsApp."""

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        action = (request.query_params.get("action") or "").upper()
        try:
            result = handle_owner_action(request.query_params.get("token"), action)
        except DomainError as exc:
            return error_response(exc)
        booking = result.booking
        return Response(
            {
                "success": True,
                "action": action,
                "booking_id": booking.booking_id,
                "booking_status": booking.booking_status,
                "refund_amount": booking.refund_amount,
                "message": "Ticket has been sent to the customer."
                if action == "CONFIRM"
                else "Customer and admin have been notified.",
            },
            status=status.HTTP_200_OK,
        )


class WhatsAppWebhookView(APIView):
    """Meta WhatsApp webhook: subscription handshake and owner button replies.

    Button replies always get a 200 so Meta does not redeliver them; the
    outcome is reported back to the owner over WhatsApp instead.
    """

    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        challenge = notifications.verify_webhook(
            request.query_params.get("hub.mode"),
            request.query_params.get("hub.verify_token"),
            request.query_params.get("hub.challenge"),
        )
        if challenge is None:
            logger.warning("WhatsApp webhook verification failed")
            return HttpResponse("Forbidden", status=status.HTTP_403_FORBIDDEN, content_type="text/plain")
        return HttpResponse(challenge, content_type="text/plain")

    def post(self, request):  # type: ignore
        reply = notifications.extract_button_reply(request.data)
        parsed = notifications.parse_owner_button_id(reply["button_id"]) if reply else None
        if parsed is None:
            return Response({"status": "ignored"}, status=status.HTTP_200_OK)

        token, owner_action = parsed
        owner_action = owner_action.upper()
        try:
            result = handle_owner_action(token, owner_action)
        except DomainError as exc:
            logger.warning(f"WhatsApp owner {owner_action} rejected: {exc.message}")
            notifications.send_whatsapp_message(reply["from"], f"⚠️ {exc.message}")
            return Response({"status": "rejected", "error": exc.message}, status=status.HTTP_200_OK)

        booking = result.booking
        notifications.send_whatsapp_message(reply["from"], notifications.owner_action_reply(booking, owner_action))
        return Response(
            {"status": "ok", "booking_id": booking.booking_id, "booking_status": booking.booking_status},
            status=status.HTTP_200_OK,
        )


class ProcessConfirmedView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request):  # type: ignore
        serializer = BookingReferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = process_confirmed_booking(serializer.validated_data["booking_id"])
        except DomainError as exc:
            return error_response(exc)
        booking = result.booking
        return Response(
            {
                "success": True,
                "booking_id": booking.booking_id,
                "status": booking.booking_status,
                "ticket_url": f"{settings.FRONTEND_URL}/ticket?token={booking.ticket_token}",
            },
            status=status.HTTP_200_OK,
        )


class ProcessCancelledView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request):  # type: ignore
        serializer = BookingReferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking, refund_owed = process_cancelled_booking(serializer.validated_data["booking_id"])
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "success": True,
                "booking_id": booking.booking_id,
                "status": booking.booking_status,
                "refund_amount": booking.refund_amount,
                "message": "Refund required" if refund_owed else "No refund required - payment was not successful",
            },
            status=status.HTTP_200_OK,
        )
