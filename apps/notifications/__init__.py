"""Notifications app package.

Sends WhatsApp Cloud API text messages to guests, owners and admins.
Delivery runs in Celery tasks triggered by booking events; failures are
logged and never reach the booking flow.
"""
