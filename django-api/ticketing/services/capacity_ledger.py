"""Capacity ledger: the only writer of tickets_sold.

Reservations are a single conditional increment in the store, so two
requests racing for the last seat can never both win.
"""

import structlog

from ticketing.domain import Capacity, CapacityRecord, EventId, ReservationResult
from ticketing.domain.errors import EventNotFoundError
from ticketing.stores.interfaces import CapacityStore

logger = structlog.get_logger(__name__)


class CapacityLedger:
    """Tracks sold-vs-capacity per event."""

    def __init__(self, store: CapacityStore) -> None:
        self._store = store

    def open_event(self, event_id: EventId, capacity: Capacity) -> CapacityRecord:
        """Create the capacity record of an event. Existing records are left as they are."""
        record = self._store.create_capacity(event_id, capacity)
        logger.info("capacity_opened", event_id=str(event_id), capacity=record.capacity.value)
        return record

    def try_reserve(self, event_id: EventId) -> ReservationResult:
        """Reserve one seat if the event is not full.

        A full event is an expected outcome and returns granted=False
        without side effects.

        Raises:
            EventNotFoundError: If the event has no capacity record.
        """
        if self._store.increment_sold_if_available(event_id):
            logger.debug("capacity_reserved", event_id=str(event_id))
            return ReservationResult(event_id=event_id, granted=True)
        if self._store.get_capacity(event_id) is None:
            raise EventNotFoundError(str(event_id))
        logger.info("capacity_exhausted", event_id=str(event_id))
        return ReservationResult(event_id=event_id, granted=False)

    def release(self, event_id: EventId) -> bool:
        """Return one seat to the pool. Never drops tickets_sold below zero."""
        released = self._store.decrement_sold_if_positive(event_id)
        if released:
            logger.debug("capacity_released", event_id=str(event_id))
        else:
            logger.warning("capacity_release_ignored", event_id=str(event_id))
        return released

    def snapshot(self, event_id: EventId) -> CapacityRecord:
        """Point-in-time capacity record.

        Raises:
            EventNotFoundError: If the event has no capacity record.
        """
        record = self._store.get_capacity(event_id)
        if record is None:
            raise EventNotFoundError(str(event_id))
        return record

    def is_sold_out(self, event_id: EventId) -> bool:
        """Advisory only; may be stale by the time a reservation is attempted."""
        return self.snapshot(event_id).is_sold_out

    def available_seats(self, event_id: EventId) -> int:
        return self.snapshot(event_id).available
