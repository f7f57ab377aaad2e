"""Payment gateway journal."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentEvent(models.Model):
    """One callback received from the payment gateway, stored verbatim."""

    class Outcome(models.TextChoices):
        RECEIVED = "received", _("Received")
        PROCESSED = "processed", _("Processed")
        DUPLICATE = "duplicate", _("Already processed")
        REJECTED = "rejected", _("Rejected")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_events",
    )
    event = models.CharField(max_length=50, default="callback")
    order_id = models.CharField(max_length=64, blank=True, db_index=True)
    booking_ref = models.CharField(max_length=40, blank=True)
    status = models.CharField(max_length=20, blank=True)
    payload = models.JSONField(default=dict)
    outcome = models.CharField(max_length=20, choices=Outcome.choices, default=Outcome.RECEIVED)
    error = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Payment event")
        verbose_name_plural = _("Payment events")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.event} {self.status} for {self.order_id or self.booking_ref}"
