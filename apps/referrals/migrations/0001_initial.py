from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReferralUser",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("username", models.CharField(max_length=150)),
                ("mobile_number", models.CharField(max_length=20, unique=True)),
                ("referral_code", models.CharField(max_length=32, unique=True)),
                (
                    "referral_type",
                    models.CharField(
                        choices=[
                            ("owner", "Owner"),
                            ("b2b", "B2B"),
                            ("owners_b2b", "Owners B2B"),
                            ("public", "Public"),
                        ],
                        default="public",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive"), ("blocked", "Blocked")],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referral_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral user",
                "verbose_name_plural": "Referral users",
                "db_table": "referral_users",
                "ordering": ["username"],
            },
        ),
        migrations.CreateModel(
            name="ReferralTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "type",
                    models.CharField(choices=[("earning", "Earning"), ("withdrawal", "Withdrawal")], max_length=20),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[("booking_checkout", "Booking checkout"), ("manual", "Manual")],
                        max_length=20,
                    ),
                ),
                ("upi_id", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_transactions",
                        to="bookings.booking",
                    ),
                ),
                (
                    "referral_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transactions",
                        to="referrals.referraluser",
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral transaction",
                "verbose_name_plural": "Referral transactions",
                "db_table": "referral_transactions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["referral_user", "type", "status"], name="referral_txn_user_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("type", "earning")),
                        fields=("booking",),
                        name="referral_one_earning_per_booking",
                    ),
                ],
            },
        ),
    ]
