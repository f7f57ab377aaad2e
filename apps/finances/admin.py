"""Admin registration for payment events."""

from __future__ import annotations

from django.contrib import admin

from .models import PaymentEvent


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ("created_at", "event", "order_id", "booking_ref", "status", "outcome", "booking")
    list_filter = ("status", "outcome", "event")
    search_fields = ("order_id", "booking_ref", "booking__booking_id")
    readonly_fields = [field.name for field in PaymentEvent._meta.fields]

    def has_add_permission(self, request):  # type: ignore
        return False
