"""Ticket issuer: mints at most one ticket per confirmed registration."""

import secrets
from collections.abc import Callable

import structlog

from ticketing.domain import (
    Issuance,
    QrToken,
    Registration,
    RegistrationStatus,
    Ticket,
    TicketDraft,
    TicketId,
    TicketStatus,
)
from ticketing.domain.errors import (
    AlreadyCheckedInError,
    InvalidTransitionError,
    IssuancePendingError,
    TicketNotActiveError,
    TicketNotFoundError,
)
from ticketing.services.pricing import PriceList
from ticketing.signals import notify, ticket_issued
from ticketing.stores.interfaces import QrTokenCollision, TicketStore

logger = structlog.get_logger(__name__)

QR_TOKEN_PREFIX = "T-"


def generate_qr_token() -> QrToken:
    """Random URL-safe token; safe to encode in a QR symbol and to copy/paste."""
    return QrToken(f"{QR_TOKEN_PREFIX}{secrets.token_urlsafe(24)}")


class TicketIssuer:
    """Allocates tickets and QR tokens once payment is confirmed."""

    MAX_TOKEN_ATTEMPTS = 5

    def __init__(
        self,
        store: TicketStore,
        prices: PriceList,
        token_factory: Callable[[], QrToken] = generate_qr_token,
    ) -> None:
        self._store = store
        self._prices = prices
        self._token_factory = token_factory

    def issue(self, registration: Registration) -> Issuance:
        """Return the registration's ticket, minting it on first call.

        Safe to retry after a partial failure: a registration that already
        carries a ticket_id gets that ticket back.

        Raises:
            InvalidTransitionError: If the registration is not confirmed.
            IssuancePendingError: If no unique QR token could be allocated.
        """
        if registration.ticket_id is not None:
            return Issuance(ticket=self._require(registration.ticket_id), already_issued=True)
        if registration.status is not RegistrationStatus.CONFIRMED:
            raise InvalidTransitionError(registration.status.value, "issued")

        price = self._prices.price_for(registration.ticket_type)
        for attempt in range(1, self.MAX_TOKEN_ATTEMPTS + 1):
            draft = TicketDraft(
                event_id=registration.event_id,
                attendee_id=registration.attendee_id,
                ticket_type=registration.ticket_type,
                price=price,
                qr_token=self._token_factory(),
            )
            try:
                ticket, created = self._store.create_and_bind(registration.id, draft)
            except QrTokenCollision:
                logger.warning("qr_token_collision", registration_id=str(registration.id), attempt=attempt)
                continue
            if created:
                logger.info(
                    "ticket_issued",
                    ticket_id=str(ticket.id),
                    registration_id=str(registration.id),
                    event_id=str(ticket.event_id),
                )
                notify(ticket_issued, ticket)
            return Issuance(ticket=ticket, already_issued=not created)

        raise IssuancePendingError(str(registration.id))

    def cancel(self, ticket_id: TicketId) -> Ticket:
        return self.close(ticket_id, TicketStatus.CANCELLED)

    def refund(self, ticket_id: TicketId) -> Ticket:
        return self.close(ticket_id, TicketStatus.REFUNDED)

    def close(self, ticket_id: TicketId, to_status: TicketStatus) -> Ticket:
        """Move an active ticket that was not used yet to cancelled or refunded.

        Raises:
            TicketNotFoundError: If the ticket does not exist.
            AlreadyCheckedInError: If the holder already entered.
            TicketNotActiveError: If the ticket was already cancelled or refunded.
        """
        if to_status is TicketStatus.ACTIVE:
            raise ValueError("A ticket can only be closed as cancelled or refunded")
        if self._store.close_ticket(ticket_id, to_status):
            logger.info("ticket_closed", ticket_id=str(ticket_id), status=to_status.value)
            return self._require(ticket_id)

        ticket = self._require(ticket_id)
        if ticket.is_checked_in:
            raise AlreadyCheckedInError(str(ticket_id))
        raise TicketNotActiveError(str(ticket_id))

    def lookup(self, qr_token: QrToken) -> Ticket | None:
        """Resolve a QR token without side effects."""
        return self._store.get_by_qr_token(qr_token)

    def _require(self, ticket_id: TicketId) -> Ticket:
        ticket = self._store.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(str(ticket_id))
        return ticket
