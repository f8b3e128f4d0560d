"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutating method is
a single atomic primitive (conditional update or one transaction); callers
never read-modify-write persisted state themselves.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime

from ticketing.domain import (
    AttendeeId,
    Capacity,
    CapacityRecord,
    EventId,
    QrToken,
    Registration,
    RegistrationId,
    RegistrationStatus,
    Ticket,
    TicketDraft,
    TicketId,
    TicketStatus,
    TicketType,
)


class QrTokenCollision(Exception):
    """Raised by a store when a generated QR token is already taken."""


class CapacityStore(ABC):
    """Interface for the capacity ledger rows."""

    @abstractmethod
    def create_capacity(self, event_id: EventId, capacity: Capacity) -> CapacityRecord:
        """Create the capacity record, or return the existing one for this event."""
        ...

    @abstractmethod
    def get_capacity(self, event_id: EventId) -> CapacityRecord | None:
        """Return the capacity record, or None if the event is unknown."""
        ...

    @abstractmethod
    def increment_sold_if_available(self, event_id: EventId) -> bool:
        """Atomically add one sold ticket iff tickets_sold < capacity.

        Returns True when the row was updated.
        """
        ...

    @abstractmethod
    def decrement_sold_if_positive(self, event_id: EventId) -> bool:
        """Atomically remove one sold ticket iff tickets_sold > 0."""
        ...


class RegistrationStore(ABC):
    """Interface for registration persistence operations."""

    @abstractmethod
    def create_pending(
        self,
        event_id: EventId,
        attendee_id: AttendeeId,
        ticket_type: TicketType,
        registered_at: datetime,
    ) -> Registration:
        """Insert a pending registration.

        Raises:
            AlreadyRegisteredError: If another active registration exists for
                the same event and attendee.
        """
        ...

    @abstractmethod
    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        """Return a registration by ID, or None if not found."""
        ...

    @abstractmethod
    def find_active(self, event_id: EventId, attendee_id: AttendeeId) -> Registration | None:
        """Return the pending or confirmed registration of an attendee for an event."""
        ...

    @abstractmethod
    def find_by_ticket(self, ticket_id: TicketId) -> Registration | None:
        """Return the registration a ticket is bound to."""
        ...

    @abstractmethod
    def transition(
        self,
        registration_id: RegistrationId,
        from_statuses: Iterable[RegistrationStatus],
        to_status: RegistrationStatus,
        *,
        payment_reference: str | None = None,
        at: datetime | None = None,
    ) -> bool:
        """Conditionally move a registration to to_status.

        The update only applies while the current status is one of
        from_statuses. Returns True when this call changed the row.
        """
        ...

    @abstractmethod
    def list_registrations_for_attendee(self, attendee_id: AttendeeId) -> list[Registration]:
        """Return an attendee's registrations, newest first."""
        ...

    @abstractmethod
    def list_registrations_for_event(self, event_id: EventId) -> list[Registration]:
        """Return an event's registrations ordered by registered_at ascending."""
        ...

    @abstractmethod
    def list_pending_before(self, cutoff: datetime) -> list[Registration]:
        """Return pending registrations registered before cutoff."""
        ...


class TicketStore(ABC):
    """Interface for ticket persistence operations."""

    @abstractmethod
    def create_and_bind(self, registration_id: RegistrationId, draft: TicketDraft) -> tuple[Ticket, bool]:
        """Create a ticket and bind it to the registration in one transaction.

        If the registration is already bound, nothing is created and the
        bound ticket is returned. The flag is True when a ticket was created.

        Raises:
            QrTokenCollision: If draft.qr_token is already in use.
            RegistrationNotFoundError: If the registration does not exist.
            InvalidTransitionError: If the registration is not confirmed.
        """
        ...

    @abstractmethod
    def get_ticket(self, ticket_id: TicketId) -> Ticket | None:
        """Return a ticket by ID, or None if not found."""
        ...

    @abstractmethod
    def get_by_qr_token(self, qr_token: QrToken) -> Ticket | None:
        """Return the ticket a QR token belongs to, or None."""
        ...

    @abstractmethod
    def mark_checked_in(self, qr_token: QrToken, at: datetime) -> bool:
        """Atomically latch is_checked_in for an active, not checked-in ticket.

        Returns True only for the call that flipped the latch.
        """
        ...

    @abstractmethod
    def close_ticket(self, ticket_id: TicketId, to_status: TicketStatus) -> bool:
        """Move an active, not checked-in ticket to to_status.

        Returns True when this call changed the row.
        """
        ...

    @abstractmethod
    def list_tickets_for_attendee(self, attendee_id: AttendeeId) -> list[Ticket]:
        """Return an attendee's tickets ordered by created_at ascending."""
        ...


class TicketingStore(CapacityStore, RegistrationStore, TicketStore):
    """All engine persistence behind one unit of work."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Return a context manager; writes inside it commit or roll back together."""
        ...
