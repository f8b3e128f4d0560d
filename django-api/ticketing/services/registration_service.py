"""Registration state machine - all registration business logic lives here.

Services:
- Depend only on interfaces (stores, payment gateway)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or raise domain errors

Every status change is a conditional transition in the store, so a retried
or concurrent request either performs the change or observes that someone
else did. Seats are released only by the call that performed the change.
"""

from datetime import timedelta

import structlog
from django.utils import timezone

from ticketing.domain import (
    AttendeeId,
    Confirmation,
    EventId,
    Issuance,
    PaymentResult,
    Registration,
    RegistrationId,
    RegistrationStatus,
    TicketStatus,
    TicketType,
)
from ticketing.domain.errors import (
    AlreadyRegisteredError,
    DomainError,
    InvalidTransitionError,
    IssuancePendingError,
    PaymentFailedError,
    PaymentTimeoutError,
    RegistrationNotFoundError,
    SoldOutError,
)
from ticketing.services.capacity_ledger import CapacityLedger
from ticketing.services.payment_gateway import PaymentGateway
from ticketing.services.pricing import PriceList
from ticketing.services.ticket_issuer import TicketIssuer
from ticketing.stores.interfaces import TicketingStore

logger = structlog.get_logger(__name__)

PENDING = RegistrationStatus.PENDING
CONFIRMED = RegistrationStatus.CONFIRMED
CANCELLED = RegistrationStatus.CANCELLED


class RegistrationService:
    """Takes a registration from intent to a confirmed, ticketed seat."""

    def __init__(
        self,
        store: TicketingStore,
        ledger: CapacityLedger,
        issuer: TicketIssuer,
        gateway: PaymentGateway,
        prices: PriceList,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._issuer = issuer
        self._gateway = gateway
        self._prices = prices

    def register(self, event_id: EventId, attendee_id: AttendeeId, ticket_type: TicketType) -> Registration:
        """Reserve a seat and create a pending registration.

        Raises:
            AlreadyRegisteredError: If the attendee has an active registration for the event.
            SoldOutError: If the event is at capacity.
            EventNotFoundError: If the event has no capacity record.
        """
        if self._store.find_active(event_id, attendee_id) is not None:
            raise AlreadyRegisteredError(str(event_id), str(attendee_id))

        reservation = self._ledger.try_reserve(event_id)
        if not reservation.granted:
            raise SoldOutError(str(event_id))

        try:
            registration = self._store.create_pending(event_id, attendee_id, ticket_type, timezone.now())
        except Exception:
            # The seat was taken but no registration holds it.
            self._ledger.release(event_id)
            raise

        logger.info(
            "registration_created",
            registration_id=str(registration.id),
            event_id=str(event_id),
            ticket_type=ticket_type.value,
        )
        return registration

    def confirm(self, registration_id: RegistrationId, payment: PaymentResult) -> Confirmation:
        """Apply a payment outcome to a registration.

        Re-confirming a confirmed registration is a no-op that returns its
        ticket, issuing it first if an earlier issuance failed.

        Raises:
            PaymentFailedError: If the payment failed; the registration is cancelled and its seat released.
            InvalidTransitionError: If the registration was cancelled.
            IssuancePendingError: If the payment succeeded but the ticket could not be issued yet.
        """
        registration = self._require(registration_id)
        if registration.status is not CONFIRMED:
            self._check_transition(registration, CONFIRMED)
            registration = self._apply_payment(registration, payment)
        if registration.status is not CONFIRMED:
            # A concurrent cancellation won the race.
            raise InvalidTransitionError(registration.status.value, CONFIRMED.value)
        return self._complete(registration)

    def checkout(self, registration_id: RegistrationId) -> Confirmation:
        """Charge the attendee through the gateway, then confirm.

        A registration that is already confirmed is never charged again.

        Raises:
            PaymentTimeoutError: If the gateway timed out; the registration stays pending.
            PaymentFailedError: See confirm.
            InvalidTransitionError: If the registration was cancelled.
        """
        registration = self._require(registration_id)
        if registration.status is CONFIRMED:
            return self._complete(registration)
        self._check_transition(registration, CONFIRMED)

        amount = self._prices.price_for(registration.ticket_type)
        metadata = {
            "registration_id": str(registration.id),
            "event_id": str(registration.event_id),
            "ticket_type": registration.ticket_type.value,
        }
        try:
            payment = self._gateway.charge(amount, registration.attendee_id, metadata)
        except TimeoutError as exc:
            logger.warning("payment_timeout", registration_id=str(registration.id))
            raise PaymentTimeoutError(str(registration.id)) from exc

        return self.confirm(registration.id, payment)

    def issue_ticket(self, registration_id: RegistrationId) -> Issuance:
        """Issue (or return) the ticket of a confirmed registration."""
        return self._issuer.issue(self._require(registration_id))

    def cancel(
        self,
        registration_id: RegistrationId,
        ticket_outcome: TicketStatus = TicketStatus.CANCELLED,
    ) -> Registration:
        """Cancel a pending or confirmed registration and release its seat.

        A bound ticket is closed as ticket_outcome in the same transaction.
        Cancelling a cancelled registration returns it unchanged.

        Raises:
            AlreadyCheckedInError: If the ticket was already used; nothing changes.
        """
        while True:
            registration = self._require(registration_id)
            if registration.status is CANCELLED:
                return registration
            self._check_transition(registration, CANCELLED)

            with self._store.atomic():
                if not self._store.transition(registration.id, [registration.status], CANCELLED, at=timezone.now()):
                    # Status moved under us, evaluate again.
                    continue
                current = self._require(registration.id)
                if current.ticket_id is not None:
                    self._issuer.close(current.ticket_id, ticket_outcome)
                self._ledger.release(current.event_id)
            break

        logger.info(
            "registration_cancelled",
            registration_id=str(registration_id),
            previous_status=registration.status.value,
            ticket_outcome=ticket_outcome.value,
        )
        return self._require(registration_id)

    def expire_stale(self, hold: timedelta) -> list[Registration]:
        """Cancel pending registrations older than hold and release their seats."""
        cutoff = timezone.now() - hold
        expired: list[Registration] = []
        for registration in self._store.list_pending_before(cutoff):
            self._check_transition(registration, CANCELLED)
            with self._store.atomic():
                if not self._store.transition(registration.id, [PENDING], CANCELLED, at=timezone.now()):
                    continue
                self._ledger.release(registration.event_id)
            logger.info("registration_expired", registration_id=str(registration.id))
            expired.append(self._require(registration.id))
        return expired

    def get(self, registration_id: RegistrationId) -> Registration:
        return self._require(registration_id)

    def for_attendee(self, attendee_id: AttendeeId) -> list[Registration]:
        return self._store.list_registrations_for_attendee(attendee_id)

    def for_event(self, event_id: EventId) -> list[Registration]:
        return self._store.list_registrations_for_event(event_id)

    def _apply_payment(self, registration: Registration, payment: PaymentResult) -> Registration:
        if not payment.succeeded:
            if self._store.transition(registration.id, [PENDING], CANCELLED, at=timezone.now()):
                self._ledger.release(registration.event_id)
                logger.info(
                    "registration_payment_failed",
                    registration_id=str(registration.id),
                    payment_status=payment.status.value,
                )
                raise PaymentFailedError(payment.reason, payment.disclose_reason)
            current = self._require(registration.id)
            if current.status is CANCELLED:
                raise PaymentFailedError(payment.reason, payment.disclose_reason)
            return current

        confirmable = RegistrationStatus.sources_of(CONFIRMED)
        if self._store.transition(registration.id, confirmable, CONFIRMED, payment_reference=payment.reference_id):
            logger.info(
                "registration_confirmed",
                registration_id=str(registration.id),
                payment_reference=payment.reference_id,
            )
        return self._require(registration.id)

    def _complete(self, registration: Registration) -> Confirmation:
        try:
            issuance = self._issuer.issue(registration)
        except IssuancePendingError:
            logger.warning("ticket_issuance_pending", registration_id=str(registration.id))
            raise
        except DomainError:
            raise
        except Exception as exc:
            logger.exception("ticket_issuance_failed", registration_id=str(registration.id))
            raise IssuancePendingError(str(registration.id)) from exc
        return Confirmation(registration=self._require(registration.id), ticket=issuance.ticket)

    def _check_transition(self, registration: Registration, target: RegistrationStatus) -> None:
        if not registration.status.can_transition_to(target):
            raise InvalidTransitionError(registration.status.value, target.value)

    def _require(self, registration_id: RegistrationId) -> Registration:
        registration = self._store.get_registration(registration_id)
        if registration is None:
            raise RegistrationNotFoundError(str(registration_id))
        return registration
