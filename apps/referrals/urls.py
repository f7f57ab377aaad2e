"""URL routing for the referral domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    DistributeCommissionsView,
    ReferralDashboardView,
    TopEarnersView,
    WithdrawalRequestView,
)

urlpatterns = [
    path("distribute/", DistributeCommissionsView.as_view(), name="referral-distribute"),
    path("dashboard/", ReferralDashboardView.as_view(), name="referral-dashboard"),
    path("top-earners/", TopEarnersView.as_view(), name="referral-top-earners"),
    path("withdrawals/", WithdrawalRequestView.as_view(), name="referral-withdrawal"),
]
