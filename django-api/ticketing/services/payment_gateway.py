"""Payment gateway adapter contract.

Capturing funds is delegated to an external provider. The engine only sees
PaymentResult and treats anything but COMPLETED as a failure.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from uuid import uuid4

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from ticketing.domain import AttendeeId, Money, PaymentResult, PaymentStatus

logger = structlog.get_logger(__name__)


class GatewayTimeout(TimeoutError):
    """Raised by adapters when the provider did not answer in time.

    The outcome of the charge is unknown; callers must not assume failure.
    """


class PaymentGateway(ABC):
    """Interface every payment provider adapter implements."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    @abstractmethod
    def charge(self, amount: Money, attendee_id: AttendeeId, metadata: Mapping[str, str]) -> PaymentResult:
        """Authorize and capture amount.

        metadata["registration_id"] is an idempotency key. Adapters must pass
        it to the provider (or deduplicate on it themselves) so that retried
        or concurrent charges for one registration capture funds once and
        report the same reference_id.

        Raises:
            GatewayTimeout: If the provider did not answer within timeout.
        """
        ...


class SimulatedGateway(PaymentGateway):
    """Gateway for development and demos: every charge completes.

    Charges are deduplicated on the registration id like a real provider.
    """

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self._lock = threading.Lock()
        self._references: dict[str, str] = {}

    def charge(self, amount: Money, attendee_id: AttendeeId, metadata: Mapping[str, str]) -> PaymentResult:
        key = metadata.get("registration_id")
        with self._lock:
            if key is not None and key in self._references:
                return PaymentResult(status=PaymentStatus.COMPLETED, reference_id=self._references[key], amount=amount)
            reference_id = f"sim_{uuid4().hex}"
            if key is not None:
                self._references[key] = reference_id
        logger.info(
            "simulated_charge",
            amount=str(amount),
            attendee_id=str(attendee_id),
            reference_id=reference_id,
            registration_id=metadata.get("registration_id"),
        )
        return PaymentResult(status=PaymentStatus.COMPLETED, reference_id=reference_id, amount=amount)


def load_gateway() -> PaymentGateway:
    """Instantiate the adapter named by TICKETING_PAYMENT_GATEWAY."""
    gateway_class = import_string(settings.TICKETING_PAYMENT_GATEWAY)
    return gateway_class(timeout=settings.TICKETING_PAYMENT_TIMEOUT)
