"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import SimpleRouter  # type: ignore

from .views import (
    BookingInitiateView,
    BookingStatusUpdateView,
    BookingViewSet,
    OwnerActionView,
    ProcessCancelledView,
    ProcessConfirmedView,
    TicketView,
    WhatsAppWebhookView,
)

router = SimpleRouter()
router.register(r"", BookingViewSet, basename="booking")

# Fixed paths must come before the router's ``<booking_id>/`` pattern.
urlpatterns = [
    path("initiate/", BookingInitiateView.as_view(), name="booking-initiate"),
    path("update-status/", BookingStatusUpdateView.as_view(), name="booking-update-status"),
    path("ticket/", TicketView.as_view(), name="booking-ticket"),
    path("owner-action/", OwnerActionView.as_view(), name="booking-owner-action"),
    path("whatsapp-webhook/", WhatsAppWebhookView.as_view(), name="booking-whatsapp-webhook"),
    path("process-confirmed/", ProcessConfirmedView.as_view(), name="booking-process-confirmed"),
    path("process-cancelled/", ProcessCancelledView.as_view(), name="booking-process-cancelled"),
    path("", include(router.urls)),
]
