"""Ticket prices per ticket type."""

from collections.abc import Mapping
from decimal import Decimal
from typing import Self

from django.conf import settings

from ticketing.domain import Money, TicketType

DEFAULT_PRICES: dict[TicketType, Decimal] = {
    TicketType.ALL_ACCESS: Decimal("50.00"),
    TicketType.CORE: Decimal("25.00"),
    TicketType.EXHIBITOR: Decimal("30.00"),
    TicketType.SPEAKER: Decimal("20.00"),
    TicketType.VENDOR: Decimal("15.00"),
    TicketType.EVENT_ORGANIZER: Decimal("75.00"),
    TicketType.ADMINISTRATOR: Decimal("100.00"),
}


class PriceList:
    """Maps ticket types to prices, falling back to DEFAULT_PRICES."""

    def __init__(self, prices: Mapping[TicketType, Decimal] | None = None) -> None:
        self._prices = {**DEFAULT_PRICES, **(prices or {})}

    @classmethod
    def from_settings(cls) -> Self:
        """Build from TICKETING_PRICES, keyed by ticket type value."""
        overrides = getattr(settings, "TICKETING_PRICES", {}) or {}
        return cls({TicketType(key): Decimal(str(value)) for key, value in overrides.items()})

    def price_for(self, ticket_type: TicketType) -> Money:
        return Money(self._prices[ticket_type])
