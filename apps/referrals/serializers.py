"""Serializers for the referral domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import ReferralTransaction


class ReferralTransactionSerializer(serializers.ModelSerializer):
    booking_id = serializers.CharField(source="booking.booking_id", read_only=True, default=None)

    class Meta:
        model = ReferralTransaction
        fields = ["id", "booking_id", "amount", "type", "status", "source", "upi_id", "created_at"]
        read_only_fields = fields


class DashboardStatsSerializer(serializers.Serializer):
    referral_code = serializers.CharField()
    referral_type = serializers.CharField()
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    available_balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_withdrawals = serializers.DecimalField(max_digits=12, decimal_places=2)
    pending_withdrawals = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_referrals = serializers.IntegerField()


class TopEarnerSerializer(serializers.Serializer):
    username = serializers.CharField()
    earnings = serializers.DecimalField(max_digits=12, decimal_places=2)


class WithdrawalRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.01"))
    upi_id = serializers.CharField(max_length=100)
