"""Django ORM implementation of the TicketingStore.

Each mutation is a conditional UPDATE or runs inside transaction.atomic, so
the database arbitrates concurrent requests touching the same row.
"""

from collections.abc import Iterable
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import F

from ticketing import models as orm
from ticketing.domain import (
    AttendeeId,
    Capacity,
    CapacityRecord,
    EventId,
    Money,
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
from ticketing.domain.errors import (
    AlreadyRegisteredError,
    InvalidTransitionError,
    RegistrationNotFoundError,
)
from ticketing.stores.interfaces import QrTokenCollision, TicketingStore


class _AlreadyBound(Exception):
    """Internal signal to roll back a ticket that lost the bind race."""


def _capacity_to_domain(row: orm.EventCapacity) -> CapacityRecord:
    return CapacityRecord(
        event_id=EventId(row.event_id),
        capacity=Capacity(row.capacity),
        tickets_sold=row.tickets_sold,
    )


def _registration_to_domain(row: orm.Registration) -> Registration:
    return Registration(
        id=RegistrationId(row.id),
        event_id=EventId(row.event_id),
        attendee_id=AttendeeId(row.attendee_id),
        ticket_type=TicketType(row.ticket_type),
        status=RegistrationStatus(row.status),
        registered_at=row.registered_at,
        ticket_id=TicketId(row.ticket_id) if row.ticket_id else None,
        payment_reference=row.payment_reference,
        cancelled_at=row.cancelled_at,
    )


def _ticket_to_domain(row: orm.Ticket) -> Ticket:
    return Ticket(
        id=TicketId(row.id),
        event_id=EventId(row.event_id),
        attendee_id=AttendeeId(row.attendee_id),
        ticket_type=TicketType(row.ticket_type),
        price=Money(Decimal(row.price)),
        qr_token=QrToken(row.qr_token),
        status=TicketStatus(row.status),
        is_checked_in=row.is_checked_in,
        checked_in_at=row.checked_in_at,
        created_at=row.created_at,
    )


class DjangoTicketingStore(TicketingStore):
    """PostgreSQL-backed ticketing store using Django ORM."""

    def atomic(self) -> AbstractContextManager[None]:
        return transaction.atomic()

    # Capacity ledger rows

    def create_capacity(self, event_id: EventId, capacity: Capacity) -> CapacityRecord:
        row, _ = orm.EventCapacity.objects.get_or_create(
            event_id=event_id.value,
            defaults={"capacity": capacity.value},
        )
        return _capacity_to_domain(row)

    def get_capacity(self, event_id: EventId) -> CapacityRecord | None:
        row = orm.EventCapacity.objects.filter(event_id=event_id.value).first()
        return _capacity_to_domain(row) if row else None

    def increment_sold_if_available(self, event_id: EventId) -> bool:
        updated = orm.EventCapacity.objects.filter(
            event_id=event_id.value,
            tickets_sold__lt=F("capacity"),
        ).update(tickets_sold=F("tickets_sold") + 1)
        return updated == 1

    def decrement_sold_if_positive(self, event_id: EventId) -> bool:
        updated = orm.EventCapacity.objects.filter(
            event_id=event_id.value,
            tickets_sold__gt=0,
        ).update(tickets_sold=F("tickets_sold") - 1)
        return updated == 1

    # Registrations

    def create_pending(
        self,
        event_id: EventId,
        attendee_id: AttendeeId,
        ticket_type: TicketType,
        registered_at: datetime,
    ) -> Registration:
        try:
            with transaction.atomic():
                row = orm.Registration.objects.create(
                    event_id=event_id.value,
                    attendee_id=attendee_id.value,
                    ticket_type=ticket_type.value,
                    status=orm.Registration.Status.PENDING,
                    registered_at=registered_at,
                )
        except IntegrityError as exc:
            raise AlreadyRegisteredError(str(event_id), str(attendee_id)) from exc
        return _registration_to_domain(row)

    def get_registration(self, registration_id: RegistrationId) -> Registration | None:
        row = orm.Registration.objects.filter(pk=registration_id.value).first()
        return _registration_to_domain(row) if row else None

    def find_active(self, event_id: EventId, attendee_id: AttendeeId) -> Registration | None:
        row = orm.Registration.objects.filter(
            event_id=event_id.value,
            attendee_id=attendee_id.value,
            status__in=orm.Registration.ACTIVE_STATUSES,
        ).first()
        return _registration_to_domain(row) if row else None

    def find_by_ticket(self, ticket_id: TicketId) -> Registration | None:
        row = orm.Registration.objects.filter(ticket_id=ticket_id.value).first()
        return _registration_to_domain(row) if row else None

    def transition(
        self,
        registration_id: RegistrationId,
        from_statuses: Iterable[RegistrationStatus],
        to_status: RegistrationStatus,
        *,
        payment_reference: str | None = None,
        at: datetime | None = None,
    ) -> bool:
        updates: dict[str, object] = {"status": to_status.value}
        if payment_reference is not None:
            updates["payment_reference"] = payment_reference
        if to_status is RegistrationStatus.CANCELLED and at is not None:
            updates["cancelled_at"] = at
        updated = orm.Registration.objects.filter(
            pk=registration_id.value,
            status__in=[status.value for status in from_statuses],
        ).update(**updates)
        return updated == 1

    def list_registrations_for_attendee(self, attendee_id: AttendeeId) -> list[Registration]:
        rows = orm.Registration.objects.filter(attendee_id=attendee_id.value).order_by("-registered_at")
        return [_registration_to_domain(row) for row in rows]

    def list_registrations_for_event(self, event_id: EventId) -> list[Registration]:
        rows = orm.Registration.objects.filter(event_id=event_id.value).order_by("registered_at")
        return [_registration_to_domain(row) for row in rows]

    def list_pending_before(self, cutoff: datetime) -> list[Registration]:
        rows = orm.Registration.objects.filter(
            status=orm.Registration.Status.PENDING,
            registered_at__lt=cutoff,
        ).order_by("registered_at")
        return [_registration_to_domain(row) for row in rows]

    # Tickets

    def create_and_bind(self, registration_id: RegistrationId, draft: TicketDraft) -> tuple[Ticket, bool]:
        try:
            with transaction.atomic():
                registration = orm.Registration.objects.select_for_update().filter(pk=registration_id.value).first()
                if registration is None:
                    raise RegistrationNotFoundError(str(registration_id))
                if registration.ticket_id is not None:
                    return _ticket_to_domain(orm.Ticket.objects.get(pk=registration.ticket_id)), False
                if registration.status != orm.Registration.Status.CONFIRMED:
                    raise InvalidTransitionError(registration.status, "issued")

                try:
                    with transaction.atomic():
                        ticket = orm.Ticket.objects.create(
                            event_id=draft.event_id.value,
                            attendee_id=draft.attendee_id.value,
                            ticket_type=draft.ticket_type.value,
                            price=draft.price.amount,
                            qr_token=draft.qr_token.value,
                        )
                except IntegrityError as exc:
                    raise QrTokenCollision(draft.qr_token.masked()) from exc

                bound = orm.Registration.objects.filter(
                    pk=registration_id.value,
                    ticket__isnull=True,
                ).update(ticket=ticket)
                if bound != 1:
                    raise _AlreadyBound
                return _ticket_to_domain(ticket), True
        except _AlreadyBound:
            row = orm.Registration.objects.select_related("ticket").get(pk=registration_id.value)
            return _ticket_to_domain(row.ticket), False

    def get_ticket(self, ticket_id: TicketId) -> Ticket | None:
        row = orm.Ticket.objects.filter(pk=ticket_id.value).first()
        return _ticket_to_domain(row) if row else None

    def get_by_qr_token(self, qr_token: QrToken) -> Ticket | None:
        row = orm.Ticket.objects.filter(qr_token=qr_token.value).first()
        return _ticket_to_domain(row) if row else None

    def mark_checked_in(self, qr_token: QrToken, at: datetime) -> bool:
        updated = orm.Ticket.objects.filter(
            qr_token=qr_token.value,
            status=orm.Ticket.Status.ACTIVE,
            is_checked_in=False,
        ).update(is_checked_in=True, checked_in_at=at)
        return updated == 1

    def close_ticket(self, ticket_id: TicketId, to_status: TicketStatus) -> bool:
        updated = orm.Ticket.objects.filter(
            pk=ticket_id.value,
            status=orm.Ticket.Status.ACTIVE,
            is_checked_in=False,
        ).update(status=to_status.value)
        return updated == 1

    def list_tickets_for_attendee(self, attendee_id: AttendeeId) -> list[Ticket]:
        rows = orm.Ticket.objects.filter(attendee_id=attendee_id.value).order_by("created_at")
        return [_ticket_to_domain(row) for row in rows]
