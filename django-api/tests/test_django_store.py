"""Integration tests for the Django ORM store.

These run against the test database and check that the conditional
updates and constraints behave like the in-memory store.
Run with: pytest tests/test_django_store.py -v
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from fakes import completed_payment, failed_payment

from ticketing import models as orm
from ticketing.domain import (
    AttendeeId,
    Capacity,
    EventId,
    Money,
    QrToken,
    RegistrationStatus,
    TicketDraft,
    TicketStatus,
    TicketType,
)
from ticketing.domain.errors import (
    AlreadyCheckedInError,
    AlreadyRegisteredError,
    ErrorCode,
    InvalidTransitionError,
    PaymentFailedError,
    SoldOutError,
)
from ticketing.services.engine import TicketLifecycleEngine, get_engine
from ticketing.services.payment_gateway import SimulatedGateway
from ticketing.stores.django_store import DjangoTicketingStore
from ticketing.stores.interfaces import QrTokenCollision

pytestmark = pytest.mark.django_db


@pytest.fixture
def db_store():
    return DjangoTicketingStore()


@pytest.fixture
def db_engine(db_store, token_factory):
    return TicketLifecycleEngine(store=db_store, gateway=SimulatedGateway(), token_factory=token_factory)


@pytest.fixture
def db_event(db_engine):
    event_id = str(uuid4())
    db_engine.open_event(event_id, 2)
    return event_id


def _draft(event_id: str, token: str) -> TicketDraft:
    return TicketDraft(
        event_id=EventId.from_string(event_id),
        attendee_id=AttendeeId(uuid4()),
        ticket_type=TicketType.CORE,
        price=Money(Decimal("25.00")),
        qr_token=QrToken(token),
    )


class TestCapacityRows:
    """Tests for the capacity ledger rows."""

    def test_increment_stops_at_capacity(self, db_store, db_event):
        event_id = EventId.from_string(db_event)

        assert db_store.increment_sold_if_available(event_id)
        assert db_store.increment_sold_if_available(event_id)
        assert not db_store.increment_sold_if_available(event_id)
        assert orm.EventCapacity.objects.get(pk=event_id.value).tickets_sold == 2

    def test_decrement_stops_at_zero(self, db_store, db_event):
        assert not db_store.decrement_sold_if_positive(EventId.from_string(db_event))

    def test_create_capacity_is_idempotent(self, db_store, db_event):
        record = db_store.create_capacity(EventId.from_string(db_event), Capacity(50))
        assert record.capacity == Capacity(2)

    def test_database_rejects_overselling(self, db_event):
        with pytest.raises(IntegrityError), transaction.atomic():
            orm.EventCapacity.objects.filter(pk=db_event).update(tickets_sold=F("capacity") + 1)


class TestRegistrationRows:
    """Tests for registration persistence."""

    def test_second_active_registration_is_rejected(self, db_store, db_event):
        event_id = EventId.from_string(db_event)
        attendee_id = AttendeeId(uuid4())
        db_store.create_pending(event_id, attendee_id, TicketType.CORE, timezone.now())

        with pytest.raises(AlreadyRegisteredError):
            db_store.create_pending(event_id, attendee_id, TicketType.CORE, timezone.now())

    def test_cancelled_registration_allows_a_new_one(self, db_store, db_event):
        event_id = EventId.from_string(db_event)
        attendee_id = AttendeeId(uuid4())
        first = db_store.create_pending(event_id, attendee_id, TicketType.CORE, timezone.now())
        db_store.transition(first.id, [RegistrationStatus.PENDING], RegistrationStatus.CANCELLED, at=timezone.now())

        second = db_store.create_pending(event_id, attendee_id, TicketType.CORE, timezone.now())

        assert second.id != first.id
        assert db_store.find_active(event_id, attendee_id).id == second.id

    def test_transition_only_applies_from_expected_status(self, db_store, db_event):
        registration = db_store.create_pending(
            EventId.from_string(db_event), AttendeeId(uuid4()), TicketType.CORE, timezone.now()
        )

        assert db_store.transition(
            registration.id, [RegistrationStatus.PENDING], RegistrationStatus.CONFIRMED, payment_reference="pay_1"
        )
        assert not db_store.transition(
            registration.id, [RegistrationStatus.PENDING], RegistrationStatus.CANCELLED, at=timezone.now()
        )
        stored = db_store.get_registration(registration.id)
        assert stored.status is RegistrationStatus.CONFIRMED
        assert stored.payment_reference == "pay_1"
        assert stored.cancelled_at is None


class TestTicketRows:
    """Tests for ticket persistence."""

    def test_create_and_bind_refuses_pending_registration(self, db_store, db_event):
        registration = db_store.create_pending(
            EventId.from_string(db_event), AttendeeId(uuid4()), TicketType.CORE, timezone.now()
        )

        with pytest.raises(InvalidTransitionError):
            db_store.create_and_bind(registration.id, _draft(db_event, "T-pending"))
        assert not orm.Ticket.objects.exists()

    def test_create_and_bind_once(self, db_store, db_event):
        registration = db_store.create_pending(
            EventId.from_string(db_event), AttendeeId(uuid4()), TicketType.CORE, timezone.now()
        )
        db_store.transition(registration.id, [RegistrationStatus.PENDING], RegistrationStatus.CONFIRMED)

        ticket, created = db_store.create_and_bind(registration.id, _draft(db_event, "T-first"))
        again, created_again = db_store.create_and_bind(registration.id, _draft(db_event, "T-second"))

        assert created and not created_again
        assert again.id == ticket.id
        assert orm.Ticket.objects.count() == 1

    def test_duplicate_qr_token_raises_collision(self, db_engine, db_store, db_event, qr_tokens):
        qr_tokens.append("T-abc123")
        db_engine.confirm(str(db_engine.register(db_event, str(uuid4()), "core").id), completed_payment())
        registration = db_store.create_pending(
            EventId.from_string(db_event), AttendeeId(uuid4()), TicketType.CORE, timezone.now()
        )
        db_store.transition(registration.id, [RegistrationStatus.PENDING], RegistrationStatus.CONFIRMED)

        with pytest.raises(QrTokenCollision):
            db_store.create_and_bind(registration.id, _draft(db_event, "T-abc123"))
        assert db_store.get_registration(registration.id).ticket_id is None


class TestEngineOnDatabase:
    """End-to-end lifecycle through the ORM store."""

    def test_full_lifecycle(self, db_engine, db_event, qr_tokens):
        qr_tokens.append("T-abc123")
        registration = db_engine.register(db_event, str(uuid4()), "exhibitor")

        confirmation = db_engine.checkout(str(registration.id))

        assert confirmation.registration.status is RegistrationStatus.CONFIRMED
        assert confirmation.registration.payment_reference.startswith("sim_")
        assert confirmation.ticket.price == Money(Decimal("30.00"))
        assert db_engine.check_in("T-abc123").succeeded
        assert db_engine.check_in("T-abc123").error is ErrorCode.ALREADY_CHECKED_IN
        with pytest.raises(AlreadyCheckedInError):
            db_engine.refund_ticket(str(confirmation.ticket.id))
        assert db_engine.get_registration(str(registration.id)).status is RegistrationStatus.CONFIRMED
        assert db_engine.get_ticket(str(confirmation.ticket.id)).status is TicketStatus.ACTIVE

    def test_failed_payment_releases_seat(self, db_engine, db_event):
        registration = db_engine.register(db_event, str(uuid4()), "core")

        with pytest.raises(PaymentFailedError):
            db_engine.confirm(str(registration.id), failed_payment())

        assert db_engine.available_seats(db_event) == 2

    def test_sold_out_then_seat_returns_after_refund(self, db_engine, db_event):
        first = db_engine.confirm(str(db_engine.register(db_event, str(uuid4()), "core").id), completed_payment())
        db_engine.register(db_event, str(uuid4()), "core")
        with pytest.raises(SoldOutError):
            db_engine.register(db_event, str(uuid4()), "core")

        db_engine.refund_ticket(str(first.ticket.id))

        assert db_engine.available_seats(db_event) == 1
        assert orm.Registration.objects.get(pk=first.registration.id.value).cancelled_at is not None
        assert orm.Ticket.objects.get(pk=first.ticket.id.value).status == TicketStatus.REFUNDED.value

    def test_expire_stale_registrations(self, db_engine, db_event):
        stale = db_engine.register(db_event, str(uuid4()), "core")
        orm.Registration.objects.filter(pk=stale.id.value).update(
            registered_at=timezone.now() - timedelta(hours=2)
        )
        fresh = db_engine.register(db_event, str(uuid4()), "core")

        expired = db_engine.expire_stale_registrations(timedelta(minutes=15))

        assert [r.id for r in expired] == [stale.id]
        assert db_engine.get_registration(str(fresh.id)).status is RegistrationStatus.PENDING
        assert db_engine.available_seats(db_event) == 1

    def test_get_engine_uses_database_store(self):
        engine = get_engine()

        event_id = str(uuid4())
        engine.open_event(event_id, 1)

        assert orm.EventCapacity.objects.filter(pk=event_id).exists()
        assert get_engine() is engine
