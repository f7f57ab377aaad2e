"""API views for the referral program."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsPlatformAdmin
from shared.domain.exceptions import DomainError

from .serializers import (
    DashboardStatsSerializer,
    ReferralTransactionSerializer,
    TopEarnerSerializer,
    WithdrawalRequestSerializer,
)
from .services import (
    CommissionDistributor,
    dashboard_stats,
    get_referrer_for_user,
    request_withdrawal,
    top_earners,
)


class DistributeCommissionsView(APIView):
    """Run a settlement cycle on demand."""

    permission_classes = [IsPlatformAdmin]

    def post(self, request):  # type: ignore
        result = CommissionDistributor().run_cycle()
        return Response(result, status=status.HTTP_200_OK)


class ReferralDashboardView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        try:
            referrer = get_referrer_for_user(request.user)
        except DomainError as exc:
            return Response(exc.to_dict(), status=exc.status_code)
        stats = DashboardStatsSerializer(dashboard_stats(referrer)).data
        recent = referrer.transactions.select_related("booking")[:20]
        return Response(
            {"stats": stats, "transactions": ReferralTransactionSerializer(recent, many=True).data},
            status=status.HTTP_200_OK,
        )


class TopEarnersView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        period = request.query_params.get("period", "all")
        rows = top_earners(period)
        return Response(
            {"period": period if period in ("month", "all") else "all", "earners": TopEarnerSerializer(rows, many=True).data},
            status=status.HTTP_200_OK,
        )


class WithdrawalRequestView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):  # type: ignore
        serializer = WithdrawalRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            referrer = get_referrer_for_user(request.user)
            withdrawal = request_withdrawal(
                referrer,
                serializer.validated_data["amount"],
                serializer.validated_data["upi_id"],
            )
        except DomainError as exc:
            return Response(exc.to_dict(), status=exc.status_code)
        return Response(ReferralTransactionSerializer(withdrawal).data, status=status.HTTP_201_CREATED)
