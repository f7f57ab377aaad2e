"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from rest_framework import serializers  # type: ignore

from .domain.state_machine import BookingStatus
from .models import Booking

VILLA_FIELDS = ("persons", "max_capacity")
GROUP_FIELDS = ("veg_guest_count", "nonveg_guest_count")


class BookingSerializer(serializers.ModelSerializer):
    due_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        exclude = ["id", "action_token", "action_token_used", "action_token_expires_at", "payment_pending_alert_sent"]
        read_only_fields = [field.name for field in Booking._meta.fields]


class BookingInitiateSerializer(serializers.Serializer):
    """Booking request from the guest-facing site.

    VILLA bookings carry ``persons``/``max_capacity``; CAMPING and COTTAGE
    bookings carry veg/non-veg guest counts. Sending the other type's
    fields is rejected.
    """

    property_id = serializers.CharField(max_length=64)
    property_name = serializers.CharField(max_length=255)
    property_type = serializers.ChoiceField(
        choices=Booking.PropertyType.choices,
        error_messages={"invalid_choice": "Invalid property_type"},
    )
    guest_name = serializers.CharField(max_length=255)
    guest_phone = serializers.CharField(max_length=20)
    owner_phone = serializers.CharField(max_length=20)
    admin_phone = serializers.CharField(max_length=20)
    owner_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    map_link = serializers.URLField(max_length=500, required=False, allow_blank=True)
    property_address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    checkin_datetime = serializers.DateTimeField()
    checkout_datetime = serializers.DateTimeField()
    advance_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    persons = serializers.IntegerField(required=False, allow_null=True)
    max_capacity = serializers.IntegerField(required=False, allow_null=True)
    veg_guest_count = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    nonveg_guest_count = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    referral_code = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate_advance_amount(self, value: Decimal) -> Decimal:
        if value <= 0:
            raise serializers.ValidationError("Advance amount must be greater than 0")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs["checkout_datetime"] <= attrs["checkin_datetime"]:
            raise serializers.ValidationError({"checkout_datetime": "Checkout must be after checkin"})

        supplied = {name for name, value in attrs.items() if value is not None}
        if attrs["property_type"] == Booking.PropertyType.VILLA:
            if not set(VILLA_FIELDS) <= supplied:
                raise serializers.ValidationError("VILLA bookings require persons and max_capacity")
            if supplied & set(GROUP_FIELDS):
                raise serializers.ValidationError("VILLA bookings do not accept veg/nonveg guest counts")
            if not 1 <= attrs["persons"] <= attrs["max_capacity"]:
                raise serializers.ValidationError({"persons": "Persons must be between 1 and max_capacity"})
        else:
            if not set(GROUP_FIELDS) <= supplied:
                raise serializers.ValidationError("CAMPING/COTTAGE bookings require veg and nonveg guest counts")
            if supplied & set(VILLA_FIELDS):
                raise serializers.ValidationError("CAMPING/COTTAGE bookings do not accept persons or max_capacity")
            if attrs["veg_guest_count"] + attrs["nonveg_guest_count"] <= 0:
                raise serializers.ValidationError("Total guest count must be greater than 0")
        return attrs


class BookingStatusUpdateSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    booking_status = serializers.CharField(required=False, allow_null=True)
    payment_status = serializers.ChoiceField(choices=Booking.PaymentStatus.choices, required=False, allow_null=True)
    order_id = serializers.CharField(max_length=64, required=False, allow_null=True)
    transaction_id = serializers.CharField(max_length=128, required=False, allow_null=True)

    def validate_booking_status(self, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        if value not in BookingStatus._value2member_map_:
            raise serializers.ValidationError(f"Unknown booking status: {value}")
        return value


class BookingReferenceSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
