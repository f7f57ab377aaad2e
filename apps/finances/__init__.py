"""Finances app package.

Receives asynchronous payment-gateway callbacks, journals each one as a
``PaymentEvent`` and feeds the result into the booking state machine.
"""
