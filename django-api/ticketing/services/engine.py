"""Ticket lifecycle engine - the surface the rest of the application calls.

Accepts identifiers as strings, parses them into domain primitives, and
delegates to the capacity ledger, registration state machine, ticket
issuer and check-in processor.
"""

from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from typing import TypeVar

from ticketing.domain import (
    AttendeeId,
    Capacity,
    CapacityRecord,
    CheckInResult,
    Confirmation,
    EventId,
    Issuance,
    PaymentResult,
    QrToken,
    Registration,
    RegistrationId,
    Ticket,
    TicketId,
    TicketStatus,
    TicketType,
)
from ticketing.domain.errors import InvalidIdError, TicketNotActiveError, TicketNotFoundError
from ticketing.services.capacity_ledger import CapacityLedger
from ticketing.services.check_in import CheckInProcessor
from ticketing.services.payment_gateway import PaymentGateway, load_gateway
from ticketing.services.pricing import PriceList
from ticketing.services.registration_service import RegistrationService
from ticketing.services.ticket_issuer import TicketIssuer, generate_qr_token
from ticketing.stores.django_store import DjangoTicketingStore
from ticketing.stores.interfaces import TicketingStore

IdT = TypeVar("IdT", EventId, AttendeeId, RegistrationId, TicketId)


def _parse(id_type: type[IdT], value: str, kind: str) -> IdT:
    try:
        return id_type.from_string(str(value))
    except ValueError as exc:
        raise InvalidIdError(kind) from exc


class TicketLifecycleEngine:
    """Registration, payment, issuance and check-in behind one facade."""

    def __init__(
        self,
        store: TicketingStore,
        gateway: PaymentGateway,
        prices: PriceList | None = None,
        token_factory: Callable[[], QrToken] = generate_qr_token,
    ) -> None:
        prices = prices or PriceList()
        self._store = store
        self.ledger = CapacityLedger(store)
        self.issuer = TicketIssuer(store, prices, token_factory=token_factory)
        self.check_in_processor = CheckInProcessor(store)
        self.registrations = RegistrationService(store, self.ledger, self.issuer, gateway, prices)

    # Capacity

    def open_event(self, event_id: str, capacity: int) -> CapacityRecord:
        return self.ledger.open_event(_parse(EventId, event_id, "event ID"), Capacity(capacity))

    def is_sold_out(self, event_id: str) -> bool:
        return self.ledger.is_sold_out(_parse(EventId, event_id, "event ID"))

    def available_seats(self, event_id: str) -> int:
        return self.ledger.available_seats(_parse(EventId, event_id, "event ID"))

    def get_capacity(self, event_id: str) -> CapacityRecord:
        return self.ledger.snapshot(_parse(EventId, event_id, "event ID"))

    # Registrations

    def register(self, event_id: str, attendee_id: str, ticket_type: TicketType | str) -> Registration:
        return self.registrations.register(
            _parse(EventId, event_id, "event ID"),
            _parse(AttendeeId, attendee_id, "attendee ID"),
            TicketType(ticket_type),
        )

    def confirm(self, registration_id: str, payment: PaymentResult) -> Confirmation:
        return self.registrations.confirm(_parse(RegistrationId, registration_id, "registration ID"), payment)

    def checkout(self, registration_id: str) -> Confirmation:
        return self.registrations.checkout(_parse(RegistrationId, registration_id, "registration ID"))

    def cancel_registration(self, registration_id: str) -> Registration:
        return self.registrations.cancel(_parse(RegistrationId, registration_id, "registration ID"))

    def get_registration(self, registration_id: str) -> Registration:
        return self.registrations.get(_parse(RegistrationId, registration_id, "registration ID"))

    def registrations_for_attendee(self, attendee_id: str) -> list[Registration]:
        return self.registrations.for_attendee(_parse(AttendeeId, attendee_id, "attendee ID"))

    def registrations_for_event(self, event_id: str) -> list[Registration]:
        return self.registrations.for_event(_parse(EventId, event_id, "event ID"))

    def expire_stale_registrations(self, hold: timedelta) -> list[Registration]:
        return self.registrations.expire_stale(hold)

    # Tickets

    def issue_ticket(self, registration_id: str) -> Issuance:
        return self.registrations.issue_ticket(_parse(RegistrationId, registration_id, "registration ID"))

    def cancel_ticket(self, ticket_id: str) -> Ticket:
        return self._close_ticket(ticket_id, TicketStatus.CANCELLED)

    def refund_ticket(self, ticket_id: str) -> Ticket:
        return self._close_ticket(ticket_id, TicketStatus.REFUNDED)

    def get_ticket(self, ticket_id: str) -> Ticket:
        parsed = _parse(TicketId, ticket_id, "ticket ID")
        ticket = self._store.get_ticket(parsed)
        if ticket is None:
            raise TicketNotFoundError(ticket_id)
        return ticket

    def lookup_ticket(self, qr_token: str) -> Ticket | None:
        try:
            return self.issuer.lookup(QrToken(qr_token))
        except ValueError:
            return None

    def tickets_for_attendee(self, attendee_id: str) -> list[Ticket]:
        return self._store.list_tickets_for_attendee(_parse(AttendeeId, attendee_id, "attendee ID"))

    def check_in(self, qr_token: str) -> CheckInResult:
        return self.check_in_processor.check_in(qr_token)

    def _close_ticket(self, ticket_id: str, outcome: TicketStatus) -> Ticket:
        # A closed ticket gives its seat back, so the owning registration is
        # cancelled with it.
        ticket = self.get_ticket(ticket_id)
        if not ticket.is_active:
            raise TicketNotActiveError(ticket_id)
        registration = self._store.find_by_ticket(ticket.id)
        if registration is None:
            close = self.issuer.refund if outcome is TicketStatus.REFUNDED else self.issuer.cancel
            return close(ticket.id)
        self.registrations.cancel(registration.id, ticket_outcome=outcome)
        closed = self.get_ticket(ticket_id)
        if closed.status is not outcome:
            # Someone else closed the ticket between the check above and the cancellation.
            raise TicketNotActiveError(ticket_id)
        return closed


@lru_cache(maxsize=1)
def get_engine() -> TicketLifecycleEngine:
    """Engine wired to the Django store and the configured payment gateway."""
    return TicketLifecycleEngine(
        store=DjangoTicketingStore(),
        gateway=load_gateway(),
        prices=PriceList.from_settings(),
    )
