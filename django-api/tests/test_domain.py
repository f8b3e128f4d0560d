"""Unit tests for domain primitives.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ticketing.domain import (
    AttendeeId,
    Capacity,
    CapacityRecord,
    CheckInResult,
    EventId,
    Money,
    PaymentResult,
    PaymentStatus,
    QrToken,
    RegistrationStatus,
    Ticket,
    TicketId,
    TicketStatus,
    TicketType,
)
from ticketing.domain.errors import ErrorCode, PaymentFailedError


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_positive_amount(self):
        """Money can be created with positive amount."""
        assert Money(Decimal("25.00")).amount == Decimal("25.00")

    def test_money_accepts_zero(self):
        """Money can be created with zero."""
        assert Money(Decimal("0")).amount == Decimal("0")

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("15"))) == "15.00"


class TestCapacity:
    """Tests for Capacity value object."""

    def test_capacity_accepts_positive_value(self):
        assert Capacity(1).value == 1

    @pytest.mark.parametrize("value", [0, -1])
    def test_capacity_rejects_non_positive_value(self, value):
        """An event needs at least one seat."""
        with pytest.raises(ValueError):
            Capacity(value)


class TestIdentifiers:
    """Tests for the UUID-backed identifiers."""

    @pytest.mark.parametrize("id_type", [EventId, AttendeeId, TicketId])
    def test_from_string_valid_uuid(self, id_type):
        raw = str(uuid4())
        parsed = id_type.from_string(raw)
        assert parsed.value == UUID(raw)
        assert str(parsed) == raw

    def test_from_string_invalid_uuid(self):
        """from_string raises ValueError for invalid UUID."""
        with pytest.raises(ValueError):
            EventId.from_string("not-a-uuid")

    def test_equal_values_compare_equal(self):
        raw = str(uuid4())
        assert EventId.from_string(raw) == EventId.from_string(raw)


class TestQrToken:
    """Tests for QrToken value object."""

    @pytest.mark.parametrize("value", ["", "   "])
    def test_rejects_blank_token(self, value):
        with pytest.raises(ValueError):
            QrToken(value)

    def test_masked_hides_most_of_the_token(self):
        token = QrToken("T-abcdefghijkl")
        assert token.masked() == "T-abcd..."
        assert "efgh" not in token.masked()


class TestRegistrationStatus:
    """Tests for the registration transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (RegistrationStatus.PENDING, RegistrationStatus.CONFIRMED),
            (RegistrationStatus.PENDING, RegistrationStatus.CANCELLED),
            (RegistrationStatus.CONFIRMED, RegistrationStatus.CANCELLED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (RegistrationStatus.CONFIRMED, RegistrationStatus.PENDING),
            (RegistrationStatus.CANCELLED, RegistrationStatus.PENDING),
            (RegistrationStatus.CANCELLED, RegistrationStatus.CONFIRMED),
            (RegistrationStatus.PENDING, RegistrationStatus.PENDING),
        ],
    )
    def test_forbidden_transitions(self, current, target):
        assert not current.can_transition_to(target)

    def test_only_pending_and_confirmed_are_active(self):
        assert RegistrationStatus.PENDING.is_active
        assert RegistrationStatus.CONFIRMED.is_active
        assert not RegistrationStatus.CANCELLED.is_active

    def test_sources_of_reads_the_table(self):
        assert RegistrationStatus.sources_of(RegistrationStatus.CONFIRMED) == {RegistrationStatus.PENDING}
        assert RegistrationStatus.sources_of(RegistrationStatus.CANCELLED) == {
            RegistrationStatus.PENDING,
            RegistrationStatus.CONFIRMED,
        }
        assert RegistrationStatus.sources_of(RegistrationStatus.PENDING) == frozenset()


class TestCapacityRecord:
    """Tests for CapacityRecord."""

    def test_available_and_sold_out(self):
        event_id = EventId(uuid4())
        assert CapacityRecord(event_id, Capacity(3), 1).available == 2
        assert not CapacityRecord(event_id, Capacity(3), 2).is_sold_out
        assert CapacityRecord(event_id, Capacity(3), 3).is_sold_out

    @pytest.mark.parametrize("sold", [-1, 4])
    def test_rejects_sold_outside_bounds(self, sold):
        with pytest.raises(ValueError):
            CapacityRecord(EventId(uuid4()), Capacity(3), sold)


class TestTicket:
    """Tests for the Ticket domain model."""

    def _ticket(self, **overrides):
        fields = dict(
            id=TicketId(uuid4()),
            event_id=EventId(uuid4()),
            attendee_id=AttendeeId(uuid4()),
            ticket_type=TicketType.CORE,
            price=Money(Decimal("25.00")),
            qr_token=QrToken("T-abc123"),
            status=TicketStatus.ACTIVE,
            is_checked_in=False,
            checked_in_at=None,
            created_at=datetime.now(timezone.utc),
        )
        fields.update(overrides)
        return Ticket(**fields)

    def test_checked_in_ticket_requires_timestamp(self):
        with pytest.raises(ValueError):
            self._ticket(is_checked_in=True, checked_in_at=None)

    def test_only_active_ticket_is_active(self):
        assert self._ticket().is_active
        assert not self._ticket(status=TicketStatus.REFUNDED).is_active


class TestResults:
    """Tests for payment and check-in result values."""

    @pytest.mark.parametrize("status", [s for s in PaymentStatus if s is not PaymentStatus.COMPLETED])
    def test_only_completed_payment_succeeds(self, status):
        assert not PaymentResult(status=status).succeeded
        assert PaymentResult(status=PaymentStatus.COMPLETED).succeeded

    def test_check_in_result_with_error_is_a_denial(self):
        assert not CheckInResult(ticket=None, error=ErrorCode.INVALID_CODE).succeeded


class TestPaymentFailedError:
    """Provider failure reasons are shown only when the adapter allows it."""

    def test_reason_hidden_by_default(self):
        error = PaymentFailedError("insufficient funds on card 4242")
        assert error.message == PaymentFailedError.GENERIC_MESSAGE
        assert error.reason == "insufficient funds on card 4242"

    def test_reason_disclosed_when_allowed(self):
        assert PaymentFailedError("Card declined", disclose=True).message == "Card declined"
