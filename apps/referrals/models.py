"""Referral program models: referrers and their ledger."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class ReferralUserQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=ReferralUser.Status.ACTIVE)


class ReferralUser(models.Model):
    """Referrer whose code guests enter at booking time."""

    class ReferralType(models.TextChoices):
        OWNER = "owner", _("Owner")
        B2B = "b2b", _("B2B")
        OWNERS_B2B = "owners_b2b", _("Owners B2B")
        PUBLIC = "public", _("Public")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")
        BLOCKED = "blocked", _("Blocked")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referral_profile",
    )
    username = models.CharField(max_length=150)
    mobile_number = models.CharField(max_length=20, unique=True)
    referral_code = models.CharField(max_length=32, unique=True)
    referral_type = models.CharField(
        max_length=20,
        choices=ReferralType.choices,
        default=ReferralType.PUBLIC,
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReferralUserQuerySet.as_manager()

    class Meta:
        db_table = "referral_users"
        verbose_name = _("Referral user")
        verbose_name_plural = _("Referral users")
        ordering = ["username"]

    def __str__(self) -> str:
        return f"{self.username} ({self.referral_code})"

    def save(self, *args, **kwargs):  # type: ignore
        self.referral_code = self.referral_code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class ReferralTransaction(models.Model):
    """Append-only ledger row: an earning from a booking or a withdrawal."""

    class Type(models.TextChoices):
        EARNING = "earning", _("Earning")
        WITHDRAWAL = "withdrawal", _("Withdrawal")

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        COMPLETED = "completed", _("Completed")

    class Source(models.TextChoices):
        BOOKING_CHECKOUT = "booking_checkout", _("Booking checkout")
        MANUAL = "manual", _("Manual")

    referral_user = models.ForeignKey(
        ReferralUser,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="referral_transactions",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    type = models.CharField(max_length=20, choices=Type.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    source = models.CharField(max_length=20, choices=Source.choices)
    upi_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "referral_transactions"
        verbose_name = _("Referral transaction")
        verbose_name_plural = _("Referral transactions")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking"],
                condition=models.Q(type="earning"),
                name="referral_one_earning_per_booking",
            ),
        ]
        indexes = [
            models.Index(fields=["referral_user", "type", "status"], name="referral_txn_user_type_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()} {self.amount} for {self.referral_user_id}"

    @property
    def is_earning(self) -> bool:
        return self.type == self.Type.EARNING

    def save(self, *args, **kwargs):  # type: ignore
        if self.is_earning and not self._state.adding:
            raise ValidationError(_("Earnings are immutable once recorded."))
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        if self.is_earning:
            raise ValidationError(_("Earnings cannot be deleted."))
        return super().delete(*args, **kwargs)

    def complete(self) -> None:
        """Mark a pending withdrawal as paid out."""
        if self.is_earning or self.status != self.Status.PENDING:
            raise ValidationError(_("Only pending withdrawals can be completed."))
        self.status = self.Status.COMPLETED
        self.save(update_fields=["status"])
