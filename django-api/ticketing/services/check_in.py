"""Check-in processor: admits each ticket at most once."""

import structlog
from django.utils import timezone

from ticketing.domain import CheckInResult, QrToken, Ticket
from ticketing.domain.errors import ErrorCode
from ticketing.signals import notify, ticket_checked_in
from ticketing.stores.interfaces import TicketStore

logger = structlog.get_logger(__name__)


class CheckInProcessor:
    """Validates scanned QR tokens and latches is_checked_in.

    Duplicate scans and network retries are routine here, so the latch is a
    single conditional update in the store and every denial is returned as
    a CheckInResult rather than raised.
    """

    def __init__(self, store: TicketStore) -> None:
        self._store = store

    def check_in(self, raw_token: str) -> CheckInResult:
        try:
            qr_token = QrToken(raw_token)
        except ValueError:
            return self._deny(None, ErrorCode.INVALID_CODE)

        ticket = self._store.get_by_qr_token(qr_token)
        if ticket is None:
            return self._deny(None, ErrorCode.INVALID_CODE, qr_token)
        if not ticket.is_active:
            return self._deny(ticket, ErrorCode.TICKET_NOT_ACTIVE)

        if self._store.mark_checked_in(qr_token, timezone.now()):
            checked_in = self._store.get_by_qr_token(qr_token)
            logger.info("ticket_checked_in", ticket_id=str(checked_in.id), event_id=str(checked_in.event_id))
            notify(ticket_checked_in, checked_in)
            return CheckInResult(ticket=checked_in)

        # Lost the latch: someone else checked in, cancelled or refunded it.
        current = self._store.get_by_qr_token(qr_token)
        if current.is_checked_in:
            return self._deny(current, ErrorCode.ALREADY_CHECKED_IN)
        return self._deny(current, ErrorCode.TICKET_NOT_ACTIVE)

    def _deny(self, ticket: Ticket | None, error: ErrorCode, qr_token: QrToken | None = None) -> CheckInResult:
        logger.info(
            "check_in_rejected",
            reason=error.value,
            ticket_id=str(ticket.id) if ticket else None,
            qr_token=qr_token.masked() if qr_token else None,
        )
        return CheckInResult(ticket=ticket, error=error)
