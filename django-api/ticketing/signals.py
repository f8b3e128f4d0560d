"""Notification hooks for issued and checked-in tickets.

Delivery (email, push) is handled by whatever the surrounding application
connects to these signals. They are sent with send_robust after the state
change is persisted, so a failing receiver never undoes an issuance or a
check-in.
"""

import structlog
from django.dispatch import Signal, receiver

from ticketing.domain import Ticket

logger = structlog.get_logger(__name__)

# Receivers get ticket=<domain Ticket>.
ticket_issued = Signal()
ticket_checked_in = Signal()


def notify(signal: Signal, ticket: Ticket) -> None:
    """Fire a ticket signal and log receivers that raised."""
    for handler, response in signal.send_robust(sender=Ticket, ticket=ticket):
        if isinstance(response, Exception):
            logger.error(
                "notification_failed",
                receiver=getattr(handler, "__qualname__", repr(handler)),
                ticket_id=str(ticket.id),
                error=repr(response),
            )


@receiver(ticket_issued)
def log_ticket_issued(sender, ticket: Ticket, **kwargs):
    """Record issued tickets in the audit log."""
    logger.info("notify_ticket_issued", ticket_id=str(ticket.id), attendee_id=str(ticket.attendee_id))


@receiver(ticket_checked_in)
def log_ticket_checked_in(sender, ticket: Ticket, **kwargs):
    """Record check-ins in the audit log."""
    logger.info("notify_ticket_checked_in", ticket_id=str(ticket.id), checked_in_at=str(ticket.checked_in_at))
