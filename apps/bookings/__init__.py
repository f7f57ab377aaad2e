"""Bookings app package.

This app encapsulates the booking lifecycle: creation in PAYMENT_PENDING,
status transitions driven by payment callbacks and owner decisions, and
the guest-facing e-ticket. Status changes take a row lock and publish
domain events once the transaction commits.
"""
