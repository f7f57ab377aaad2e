import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("booking_platform")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

COMMISSION_DISTRIBUTION_INTERVAL = max(int(os.environ.get("COMMISSION_DISTRIBUTION_INTERVAL", 10 * 60)), 1)


def run_expiry(interval: int) -> int:
    """Seconds before a queued run is dropped. Never zero or negative."""
    return max(interval - 30, interval // 2, 1)


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Settle commissions for bookings whose checkout has passed
    "distribute-checkout-commissions": {
        "task": "referrals.distribute_checkout_commissions",
        "schedule": float(COMMISSION_DISTRIBUTION_INTERVAL),
        "options": {"expires": run_expiry(COMMISSION_DISTRIBUTION_INTERVAL)},
    },
    # Catch payment-pending alerts missed by the countdown task
    "sweep-payment-pending-alerts": {
        "task": "bookings.sweep_payment_pending_alerts",
        "schedule": 5 * 60.0,
        "options": {"expires": 4 * 60},
    },
}
