"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_id",
        "property_name",
        "property_type",
        "guest_name",
        "booking_status",
        "payment_status",
        "checkin_datetime",
        "checkout_datetime",
        "advance_amount",
        "commission_status",
        "created_at",
    )
    list_filter = ("booking_status", "payment_status", "property_type", "commission_status", "commission_paid")
    search_fields = ("booking_id", "property_name", "guest_name", "guest_phone", "order_id", "referral_code")
    readonly_fields = (
        "booking_id",
        "ticket_token",
        "booking_status",
        "commission_paid",
        "commission_status",
        "admin_commission",
        "referrer_commission",
        "commission_paid_at",
        "action_token",
        "action_token_used",
        "action_token_expires_at",
        "created_at",
        "updated_at",
    )

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
