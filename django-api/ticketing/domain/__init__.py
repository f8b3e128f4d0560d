from ticketing.domain.models import (
    CapacityRecord,
    CheckInResult,
    Confirmation,
    Issuance,
    PaymentResult,
    PaymentStatus,
    Registration,
    RegistrationStatus,
    ReservationResult,
    Ticket,
    TicketDraft,
    TicketStatus,
    TicketType,
)
from ticketing.domain.value_objects import (
    AttendeeId,
    Capacity,
    EventId,
    Money,
    QrToken,
    RegistrationId,
    TicketId,
)

__all__ = [
    "CapacityRecord",
    "CheckInResult",
    "Confirmation",
    "Issuance",
    "PaymentResult",
    "PaymentStatus",
    "Registration",
    "RegistrationStatus",
    "ReservationResult",
    "Ticket",
    "TicketDraft",
    "TicketStatus",
    "TicketType",
    "AttendeeId",
    "Capacity",
    "EventId",
    "Money",
    "QrToken",
    "RegistrationId",
    "TicketId",
]
