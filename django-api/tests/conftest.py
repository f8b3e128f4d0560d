"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator
from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from fakes import InMemoryTicketingStore, ScriptedGateway, completed_payment
from ticketing.domain import Confirmation, QrToken
from ticketing.services.engine import TicketLifecycleEngine, get_engine
from ticketing.services.ticket_issuer import generate_qr_token


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def store() -> InMemoryTicketingStore:
    return InMemoryTicketingStore()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture
def qr_tokens() -> list[str]:
    """Tokens handed out by the issuer before it falls back to random ones."""
    return []


@pytest.fixture
def token_factory(qr_tokens: list[str]) -> Callable[[], QrToken]:
    def next_token() -> QrToken:
        if qr_tokens:
            return QrToken(qr_tokens.pop(0))
        return generate_qr_token()

    return next_token


@pytest.fixture
def engine(
    store: InMemoryTicketingStore,
    gateway: ScriptedGateway,
    token_factory: Callable[[], QrToken],
) -> TicketLifecycleEngine:
    return TicketLifecycleEngine(store=store, gateway=gateway, token_factory=token_factory)


@pytest.fixture
def new_id() -> Callable[[], str]:
    return lambda: str(uuid4())


@pytest.fixture
def event_id(engine: TicketLifecycleEngine, new_id: Callable[[], str]) -> str:
    """An event with three seats."""
    event_id = new_id()
    engine.open_event(event_id, 3)
    return event_id


@pytest.fixture(autouse=True)
def fresh_engine() -> Iterator[None]:
    get_engine.cache_clear()
    yield
    get_engine.cache_clear()


@pytest.fixture
def make_confirmation(
    engine: TicketLifecycleEngine,
    event_id: str,
    new_id: Callable[[], str],
) -> Callable[..., Confirmation]:
    """Register a fresh attendee for event_id and confirm with a completed payment."""

    def confirm(ticket_type: str = "core", reference_id: str = "pay_ok") -> Confirmation:
        registration = engine.register(event_id, new_id(), ticket_type)
        return engine.confirm(str(registration.id), completed_payment(reference_id))

    return confirm
