"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in ticketing/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ticketing.domain.errors import ErrorCode
from ticketing.domain.value_objects import (
    AttendeeId,
    Capacity,
    EventId,
    Money,
    QrToken,
    RegistrationId,
    TicketId,
)


class TicketType(Enum):
    """Ticket tiers an attendee can register for."""

    ALL_ACCESS = "all_access"
    CORE = "core"
    EXHIBITOR = "exhibitor"
    SPEAKER = "speaker"
    VENDOR = "vendor"
    EVENT_ORGANIZER = "event_organizer"
    ADMINISTRATOR = "administrator"


class RegistrationStatus(Enum):
    """Lifecycle of a registration.

    pending -> confirmed, pending -> cancelled, confirmed -> cancelled.
    Nothing leaves cancelled.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in (RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED)

    def can_transition_to(self, target: "RegistrationStatus") -> bool:
        return target in _REGISTRATION_TRANSITIONS[self]

    @classmethod
    def sources_of(cls, target: "RegistrationStatus") -> frozenset["RegistrationStatus"]:
        """Statuses from which target can be reached."""
        return frozenset(status for status, targets in _REGISTRATION_TRANSITIONS.items() if target in targets)


_REGISTRATION_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    RegistrationStatus.PENDING: frozenset({RegistrationStatus.CONFIRMED, RegistrationStatus.CANCELLED}),
    RegistrationStatus.CONFIRMED: frozenset({RegistrationStatus.CANCELLED}),
    RegistrationStatus.CANCELLED: frozenset(),
}


class TicketStatus(Enum):
    """Status of an issued ticket. Only active tickets admit."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    """Payment states reported by the payment gateway."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class CapacityRecord:
    """Sold-vs-capacity snapshot of an event."""

    event_id: EventId
    capacity: Capacity
    tickets_sold: int

    def __post_init__(self) -> None:
        if not 0 <= self.tickets_sold <= self.capacity.value:
            raise ValueError("tickets_sold must be between 0 and capacity")

    @property
    def available(self) -> int:
        return self.capacity.value - self.tickets_sold

    @property
    def is_sold_out(self) -> bool:
        return self.tickets_sold >= self.capacity.value


@dataclass(frozen=True)
class ReservationResult:
    """Outcome of a seat reservation attempt."""

    event_id: EventId
    granted: bool


@dataclass(frozen=True)
class Registration:
    """Domain representation of a Registration."""

    id: RegistrationId
    event_id: EventId
    attendee_id: AttendeeId
    ticket_type: TicketType
    status: RegistrationStatus
    registered_at: datetime
    ticket_id: TicketId | None = None
    payment_reference: str | None = None
    cancelled_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class Ticket:
    """Domain representation of a Ticket."""

    id: TicketId
    event_id: EventId
    attendee_id: AttendeeId
    ticket_type: TicketType
    price: Money
    qr_token: QrToken
    status: TicketStatus
    is_checked_in: bool
    checked_in_at: datetime | None
    created_at: datetime

    def __post_init__(self) -> None:
        if self.is_checked_in and self.checked_in_at is None:
            raise ValueError("A checked-in ticket must carry checked_in_at")

    @property
    def is_active(self) -> bool:
        return self.status is TicketStatus.ACTIVE


@dataclass(frozen=True)
class TicketDraft:
    """Everything needed to mint a ticket, before it has an id."""

    event_id: EventId
    attendee_id: AttendeeId
    ticket_type: TicketType
    price: Money
    qr_token: QrToken


@dataclass(frozen=True)
class Issuance:
    """Result of Ticket Issuer.issue.

    already_issued is True when the registration was bound to a ticket
    before this call and no new ticket was minted.
    """

    ticket: Ticket
    already_issued: bool


@dataclass(frozen=True)
class Confirmation:
    """A confirmed registration together with its ticket."""

    registration: Registration
    ticket: Ticket


@dataclass(frozen=True)
class PaymentResult:
    """What the payment gateway reported for a charge."""

    status: PaymentStatus
    reference_id: str | None = None
    amount: Money | None = None
    reason: str | None = None
    disclose_reason: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status is PaymentStatus.COMPLETED


@dataclass(frozen=True)
class CheckInResult:
    """Outcome of a check-in scan. Denials are values, not exceptions."""

    ticket: Ticket | None
    error: ErrorCode | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
