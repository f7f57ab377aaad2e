"""
Booking State Machine

Pure transition rules for ``Booking.booking_status``. Persistence and row
locking live in ``apps.bookings.services.apply_transition``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from shared.domain.exceptions import InvalidTransition, ValidationError


class BookingStatus(str, Enum):
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    BOOKING_REQUEST_SENT_TO_OWNER = "BOOKING_REQUEST_SENT_TO_OWNER"
    OWNER_CONFIRMED = "OWNER_CONFIRMED"
    OWNER_CANCELLED = "OWNER_CANCELLED"
    TICKET_GENERATED = "TICKET_GENERATED"
    REFUND_REQUIRED = "REFUND_REQUIRED"
    # Statuses written by older flows; readers handle them, the table never targets them.
    PAYMENT_FAILED = "PAYMENT_FAILED"
    CANCELLED_BY_OWNER = "CANCELLED_BY_OWNER"
    CANCELLED_NO_REFUND = "CANCELLED_NO_REFUND"
    CONFIRMED = "CONFIRMED"
    PENDING_OWNER_CONFIRMATION = "PENDING_OWNER_CONFIRMATION"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()

    @classmethod
    def choices(cls) -> list[tuple[str, str]]:
        return [(member.value, member.label) for member in cls]

    @classmethod
    def parse(cls, value: str) -> "BookingStatus":
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown booking status: {value}",
                allowed_statuses=[member.value for member in cls],
            ) from None


VALID_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PAYMENT_PENDING: frozenset({BookingStatus.PAYMENT_SUCCESS}),
    BookingStatus.PAYMENT_SUCCESS: frozenset({BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER}),
    BookingStatus.BOOKING_REQUEST_SENT_TO_OWNER: frozenset(
        {BookingStatus.OWNER_CONFIRMED, BookingStatus.OWNER_CANCELLED}
    ),
    BookingStatus.OWNER_CONFIRMED: frozenset({BookingStatus.TICKET_GENERATED}),
    BookingStatus.OWNER_CANCELLED: frozenset({BookingStatus.REFUND_REQUIRED}),
    BookingStatus.TICKET_GENERATED: frozenset(),
    BookingStatus.REFUND_REQUIRED: frozenset(),
}


def allowed_transitions(current: str) -> list[str]:
    """Sorted list of statuses reachable from ``current`` (empty if unknown)."""
    try:
        key = BookingStatus(current)
    except ValueError:
        return []
    return sorted(status.value for status in VALID_TRANSITIONS.get(key, frozenset()))


def is_valid_transition(current: str, requested: str) -> bool:
    return requested in allowed_transitions(current)


@dataclass(frozen=True)
class TransitionCheck:
    current: str
    requested: str
    changed: bool


def check_transition(current: str, requested: str) -> TransitionCheck:
    """Validate a move from ``current`` to ``requested``.

    Same status is an idempotent no-op (``changed`` is False). Anything not
    in the table raises ``InvalidTransition``; an unknown requested value
    raises ``ValidationError``.
    """
    target = BookingStatus.parse(requested).value
    if target == current:
        return TransitionCheck(current=current, requested=target, changed=False)
    allowed = allowed_transitions(current)
    if target not in allowed:
        raise InvalidTransition(current, target, allowed)
    return TransitionCheck(current=current, requested=target, changed=True)
