from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_id", models.CharField(editable=False, max_length=40, unique=True)),
                ("ticket_token", models.CharField(blank=True, editable=False, max_length=64, null=True, unique=True)),
                (
                    "booking_status",
                    models.CharField(
                        choices=[
                            ("PAYMENT_PENDING", "Payment pending"),
                            ("PAYMENT_SUCCESS", "Payment success"),
                            ("BOOKING_REQUEST_SENT_TO_OWNER", "Booking request sent to owner"),
                            ("OWNER_CONFIRMED", "Owner confirmed"),
                            ("OWNER_CANCELLED", "Owner cancelled"),
                            ("TICKET_GENERATED", "Ticket generated"),
                            ("REFUND_REQUIRED", "Refund required"),
                            ("PAYMENT_FAILED", "Payment failed"),
                            ("CANCELLED_BY_OWNER", "Cancelled by owner"),
                            ("CANCELLED_NO_REFUND", "Cancelled no refund"),
                            ("CONFIRMED", "Confirmed"),
                            ("PENDING_OWNER_CONFIRMATION", "Pending owner confirmation"),
                        ],
                        default="PAYMENT_PENDING",
                        max_length=40,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("INITIATED", "Initiated"),
                            ("SUCCESS", "Success"),
                            ("FAILED", "Failed"),
                            ("PENDING", "Pending"),
                        ],
                        default="INITIATED",
                        max_length=20,
                    ),
                ),
                ("property_id", models.CharField(max_length=64)),
                ("property_name", models.CharField(max_length=255)),
                (
                    "property_type",
                    models.CharField(
                        choices=[("VILLA", "Villa"), ("CAMPING", "Camping"), ("COTTAGE", "Cottage")],
                        max_length=10,
                    ),
                ),
                ("owner_name", models.CharField(blank=True, max_length=255)),
                ("owner_phone", models.CharField(max_length=20)),
                ("admin_phone", models.CharField(max_length=20)),
                ("map_link", models.URLField(blank=True, max_length=500)),
                ("property_address", models.CharField(blank=True, max_length=500)),
                ("guest_name", models.CharField(max_length=255)),
                ("guest_phone", models.CharField(max_length=20)),
                ("persons", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("max_capacity", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("veg_guest_count", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("nonveg_guest_count", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("checkin_datetime", models.DateTimeField()),
                ("checkout_datetime", models.DateTimeField()),
                ("total_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("advance_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("refund_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("referral_code", models.CharField(blank=True, db_index=True, max_length=32)),
                ("referral_type", models.CharField(default="public", max_length=20)),
                (
                    "referral_discount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
                ),
                ("commission_paid", models.BooleanField(blank=True, null=True)),
                (
                    "commission_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PENDING", "Pending"),
                            ("CONFIRMED", "Confirmed"),
                            ("CANCELLED", "Cancelled"),
                            ("DISTRIBUTED", "Distributed"),
                            ("DISTRIBUTED_NO_REFERRER", "Distributed, no referrer"),
                        ],
                        max_length=32,
                        null=True,
                    ),
                ),
                ("admin_commission", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("referrer_commission", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("commission_paid_at", models.DateTimeField(blank=True, null=True)),
                ("order_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("transaction_id", models.CharField(blank=True, max_length=128)),
                ("payment_method", models.CharField(blank=True, max_length=50)),
                ("payment_pending_alert_sent", models.BooleanField(default=False)),
                ("action_token", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("action_token_used", models.BooleanField(default=False)),
                ("action_token_expires_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["booking_status", "checkout_datetime"], name="booking_status_checkout_idx"),
                    models.Index(fields=["payment_status"], name="booking_payment_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("checkout_datetime__gt", models.F("checkin_datetime"))),
                        name="booking_checkout_after_checkin",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("commission_paid", True), _negated=True),
                            models.Q(("admin_commission__isnull", False), ("referrer_commission__isnull", False)),
                            _connector="OR",
                        ),
                        name="booking_paid_commission_amounts_set",
                    ),
                ],
            },
        ),
    ]
