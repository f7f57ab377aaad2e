"""
Domain Exceptions

Errors raised by domain services. Each one carries the HTTP status code
views should answer with and a structured body via ``to_dict()``.
"""

from __future__ import annotations

from typing import Any, Iterable


class DomainError(Exception):
    """Base class for all booking-core errors."""

    status_code = 400
    error = "Domain error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload = {"error": self.error, "message": self.message}
        payload.update(self.details)
        return payload


class ValidationError(DomainError):
    """Malformed or contradictory input, rejected before any mutation."""

    status_code = 400
    error = "Validation error"


class NotFound(DomainError):
    status_code = 404
    error = "Not found"


class InvalidTransition(DomainError):
    """Requested status is not reachable from the current one."""

    status_code = 400
    error = "Invalid state transition"

    def __init__(self, current: str, requested: str, allowed: Iterable[str]):
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        super().__init__(
            f"Cannot transition from {current} to {requested}",
            current_status=current,
            requested_status=requested,
            allowed_transitions=self.allowed,
        )


class Expired(DomainError):
    status_code = 410
    error = "Booking expired"


class TicketUnavailable(DomainError):
    """Status-gated denial of the e-ticket."""

    status_code = 403
    error = "Ticket not available"

    CANCELLED_BY_OWNER = "cancelled_by_owner"
    UNAVAILABLE = "unavailable"
    NOT_READY = "not_ready"

    def __init__(self, message: str, reason: str, **details: Any):
        self.reason = reason
        super().__init__(message, reason=reason, **details)


class SettlementSkipped(DomainError):
    """Non-fatal: the booking is left untouched for a later cycle."""

    status_code = 409
    error = "Settlement skipped"

    def __init__(self, booking_id: str, reason: str):
        self.booking_id = booking_id
        self.reason = reason
        super().__init__(f"Booking {booking_id} skipped: {reason}", booking_id=booking_id)


class PersistenceFailure(DomainError):
    """Storage fault wrapped at the transaction boundary."""

    status_code = 503
    error = "Persistence failure"
