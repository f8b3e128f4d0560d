"""Domain error codes for the ticketing module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    REGISTRATION_NOT_FOUND = "REGISTRATION_NOT_FOUND"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    SOLD_OUT = "SOLD_OUT"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_TIMEOUT = "PAYMENT_TIMEOUT"
    ISSUANCE_PENDING = "ISSUANCE_PENDING"
    INVALID_CODE = "INVALID_CODE"
    TICKET_NOT_ACTIVE = "TICKET_NOT_ACTIVE"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"


# Messages shown to scanning operators and attendees.
MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.SOLD_OUT: "This event is sold out",
    ErrorCode.ALREADY_REGISTERED: "You are already registered for this event",
    ErrorCode.INVALID_CODE: "Unknown ticket code",
    ErrorCode.TICKET_NOT_ACTIVE: "This ticket is no longer valid",
    ErrorCode.ALREADY_CHECKED_IN: "This ticket has already been checked in",
}


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class EventNotFoundError(DomainError):
    """Raised when no capacity record exists for an event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class RegistrationNotFoundError(DomainError):
    """Raised when a registration is not found."""

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.REGISTRATION_NOT_FOUND,
            message="Registration not found",
        )
        self.registration_id = registration_id


class TicketNotFoundError(DomainError):
    """Raised when a ticket is not found."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_FOUND,
            message="Ticket not found",
        )
        self.ticket_id = ticket_id


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str = "ID") -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} format",
        )


class SoldOutError(DomainError):
    """Raised when no seat could be reserved for an event."""

    def __init__(self, event_id: str) -> None:
        super().__init__(code=ErrorCode.SOLD_OUT, message=MESSAGES[ErrorCode.SOLD_OUT])
        self.event_id = event_id


class AlreadyRegisteredError(DomainError):
    """Raised when the attendee already holds an active registration for the event."""

    def __init__(self, event_id: str, attendee_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_REGISTERED,
            message=MESSAGES[ErrorCode.ALREADY_REGISTERED],
        )
        self.event_id = event_id
        self.attendee_id = attendee_id


class InvalidTransitionError(DomainError):
    """Raised when a registration cannot move to the requested status."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot move a {current} registration to {target}",
        )
        self.current = current
        self.target = target


class PaymentFailedError(DomainError):
    """Raised after a failed payment reverted the registration."""

    GENERIC_MESSAGE = "Payment could not be completed"

    def __init__(self, reason: str | None = None, disclose: bool = False) -> None:
        super().__init__(
            code=ErrorCode.PAYMENT_FAILED,
            message=reason if (reason and disclose) else self.GENERIC_MESSAGE,
        )
        self.reason = reason


class PaymentTimeoutError(DomainError):
    """Raised when the gateway did not answer in time.

    The registration stays pending and keeps its seat.
    """

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.PAYMENT_TIMEOUT,
            message="Payment is still being processed, please try again later",
        )
        self.registration_id = registration_id


class IssuancePendingError(DomainError):
    """Raised when payment succeeded but the ticket could not be minted yet."""

    def __init__(self, registration_id: str) -> None:
        super().__init__(
            code=ErrorCode.ISSUANCE_PENDING,
            message="Your payment was received, the ticket is being issued",
        )
        self.registration_id = registration_id


class TicketNotActiveError(DomainError):
    """Raised when a cancelled or refunded ticket is modified again."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_NOT_ACTIVE,
            message=MESSAGES[ErrorCode.TICKET_NOT_ACTIVE],
        )
        self.ticket_id = ticket_id


class AlreadyCheckedInError(DomainError):
    """Raised when a checked-in ticket would be cancelled or refunded."""

    def __init__(self, ticket_id: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_CHECKED_IN,
            message=MESSAGES[ErrorCode.ALREADY_CHECKED_IN],
        )
        self.ticket_id = ticket_id
