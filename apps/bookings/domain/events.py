"""
Booking Domain Events

Published by the unit of work after the surrounding transaction commits.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingInitiated(DomainEvent):
    """
    Event: A booking was created in PAYMENT_PENDING

    Triggers:
    - Schedule the payment-pending alert to the admin
    """
    booking_id: str


@dataclass(kw_only=True)
class BookingStatusChanged(DomainEvent):
    """
    Event: booking_status moved from one value to another

    Triggers:
    - WhatsApp messages to guest, owner and admin
    """
    booking_id: str
    old_status: str
    new_status: str

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            booking_id=self.booking_id,
            old_status=self.old_status,
            new_status=self.new_status,
        )
        return data

