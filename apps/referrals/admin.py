"""Admin registrations for the referral program."""

from __future__ import annotations

from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from .models import ReferralTransaction, ReferralUser


@admin.register(ReferralUser)
class ReferralUserAdmin(admin.ModelAdmin):
    list_display = ("username", "referral_code", "referral_type", "mobile_number", "status", "balance", "created_at")
    list_filter = ("referral_type", "status")
    search_fields = ("username", "referral_code", "mobile_number", "user__email")
    readonly_fields = ("balance", "created_at", "updated_at")
    raw_id_fields = ("user",)


@admin.register(ReferralTransaction)
class ReferralTransactionAdmin(admin.ModelAdmin):
    list_display = ("referral_user", "type", "amount", "status", "source", "booking", "upi_id", "created_at")
    list_filter = ("type", "status", "source")
    search_fields = ("referral_user__username", "referral_user__referral_code", "booking__booking_id", "upi_id")
    readonly_fields = [field.name for field in ReferralTransaction._meta.fields]
    actions = ["complete_withdrawals"]

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False

    @admin.action(description="Mark selected withdrawals as completed")
    def complete_withdrawals(self, request, queryset):  # type: ignore
        completed = 0
        for withdrawal in queryset.filter(type=ReferralTransaction.Type.WITHDRAWAL):
            try:
                withdrawal.complete()
            except ValidationError as e:
                self.message_user(request, f"{withdrawal}: {e.messages[0]}", level=messages.WARNING)
                continue
            completed += 1
        self.message_user(request, f"Completed {completed} withdrawals.")
