"""Booking models for the vacation-property platform."""

from __future__ import annotations

import secrets
import time
from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import ZERO, to_decimal

from .domain.state_machine import BookingStatus

BOOKING_ID_PREFIX = "PHC"
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_booking_id() -> str:
    """External booking identifier, e.g. ``PHC-m1x2k9ab-3f9a1c``."""
    return f"{BOOKING_ID_PREFIX}-{_to_base36(int(time.time() * 1000))}-{secrets.token_hex(3)}"


def generate_token() -> str:
    return secrets.token_hex(32)


class Booking(models.Model):
    """Бронирование: снимок объекта, гостя, оплаты и комиссии."""

    Status = BookingStatus

    class PaymentStatus(models.TextChoices):
        INITIATED = "INITIATED", _("Initiated")
        SUCCESS = "SUCCESS", _("Success")
        FAILED = "FAILED", _("Failed")
        PENDING = "PENDING", _("Pending")

    class PropertyType(models.TextChoices):
        VILLA = "VILLA", _("Villa")
        CAMPING = "CAMPING", _("Camping")
        COTTAGE = "COTTAGE", _("Cottage")

    class CommissionStatus(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        CANCELLED = "CANCELLED", _("Cancelled")
        DISTRIBUTED = "DISTRIBUTED", _("Distributed")
        DISTRIBUTED_NO_REFERRER = "DISTRIBUTED_NO_REFERRER", _("Distributed, no referrer")

    booking_id = models.CharField(max_length=40, unique=True, editable=False)
    ticket_token = models.CharField(max_length=64, unique=True, null=True, blank=True, editable=False)

    booking_status = models.CharField(
        max_length=40,
        choices=BookingStatus.choices(),
        default=BookingStatus.PAYMENT_PENDING.value,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.INITIATED,
    )

    property_id = models.CharField(max_length=64)
    property_name = models.CharField(max_length=255)
    property_type = models.CharField(max_length=10, choices=PropertyType.choices)
    owner_name = models.CharField(max_length=255, blank=True)
    owner_phone = models.CharField(max_length=20)
    admin_phone = models.CharField(max_length=20)
    map_link = models.URLField(max_length=500, blank=True)
    property_address = models.CharField(max_length=500, blank=True)

    guest_name = models.CharField(max_length=255)
    guest_phone = models.CharField(max_length=20)
    persons = models.PositiveSmallIntegerField(null=True, blank=True)
    max_capacity = models.PositiveSmallIntegerField(null=True, blank=True)
    veg_guest_count = models.PositiveSmallIntegerField(null=True, blank=True)
    nonveg_guest_count = models.PositiveSmallIntegerField(null=True, blank=True)

    checkin_datetime = models.DateTimeField()
    checkout_datetime = models.DateTimeField()

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    advance_amount = models.DecimalField(max_digits=12, decimal_places=2)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    referral_code = models.CharField(max_length=32, blank=True, db_index=True)
    referral_type = models.CharField(max_length=20, default="public")
    referral_discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    commission_paid = models.BooleanField(null=True, blank=True)
    commission_status = models.CharField(
        max_length=32,
        choices=CommissionStatus.choices,
        null=True,
        blank=True,
    )
    admin_commission = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    referrer_commission = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    commission_paid_at = models.DateTimeField(null=True, blank=True)

    order_id = models.CharField(max_length=64, blank=True, db_index=True)
    transaction_id = models.CharField(max_length=128, blank=True)
    payment_method = models.CharField(max_length=50, blank=True)
    payment_pending_alert_sent = models.BooleanField(default=False)

    action_token = models.CharField(max_length=64, unique=True, null=True, blank=True)
    action_token_used = models.BooleanField(default=False)
    action_token_expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(checkout_datetime__gt=models.F("checkin_datetime")),
                name="booking_checkout_after_checkin",
            ),
            models.CheckConstraint(
                condition=(
                    ~models.Q(commission_paid=True)
                    | (models.Q(admin_commission__isnull=False) & models.Q(referrer_commission__isnull=False))
                ),
                name="booking_paid_commission_amounts_set",
            ),
        ]
        indexes = [
            models.Index(fields=["booking_status", "checkout_datetime"], name="booking_status_checkout_idx"),
            models.Index(fields=["payment_status"], name="booking_payment_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.booking_id} ({self.booking_status})"

    def clean(self) -> None:
        if self.checkin_datetime and self.checkout_datetime and self.checkout_datetime <= self.checkin_datetime:
            raise ValidationError(_("Checkout must be after checkin"))

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding:
            if not self.booking_id:
                self.booking_id = generate_booking_id()
            if not self.ticket_token:
                self.ticket_token = generate_token()
        if self.referral_code:
            self.referral_code = self.referral_code.strip().upper()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise ValidationError(_("Bookings are audit records and cannot be deleted."))

    @property
    def due_amount(self) -> Decimal:
        return to_decimal(self.total_amount) - to_decimal(self.advance_amount)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PaymentStatus.SUCCESS

    def action_token_expired(self, now=None) -> bool:
        now = now or timezone.now()
        return bool(self.action_token_expires_at and now > self.action_token_expires_at)

    def mark_commission_paid(self, status: str, admin_amount: Decimal, referrer_amount: Decimal, paid_at=None) -> None:
        self.commission_paid = True
        self.commission_status = status
        self.admin_commission = admin_amount if admin_amount is not None else ZERO
        self.referrer_commission = referrer_amount if referrer_amount is not None else ZERO
        self.commission_paid_at = paid_at or timezone.now()
        self.save(
            update_fields=[
                "commission_paid",
                "commission_status",
                "admin_commission",
                "referrer_commission",
                "commission_paid_at",
                "updated_at",
            ]
        )
