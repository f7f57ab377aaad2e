"""Celery tasks for the referral domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import CommissionDistributor

logger = logging.getLogger(__name__)


@shared_task(name="referrals.distribute_checkout_commissions")
def distribute_checkout_commissions() -> dict[str, int]:
    """
    Settle commissions for ticketed bookings whose checkout has passed.

    Runs on the beat schedule; overlapping runs are safe because each
    booking is re-checked under a row lock before it is paid.

    Returns:
        dict: {"distributed": ..., "skipped": ...}
    """
    result = CommissionDistributor().run_cycle()
    if result["distributed"] or result["skipped"]:
        logger.info(f"Commission cycle: {result}")
    return result
