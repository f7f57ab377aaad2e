"""Referrals app package.

Referrers, their append-only earnings/withdrawal ledger, and the
post-checkout commission settlement that pays them.
"""
