"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call the engine for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import structlog
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ticketing.domain.errors import MESSAGES, DomainError, ErrorCode
from ticketing.handlers.serializers import (
    CapacitySerializer,
    CheckInRequestSerializer,
    CheckInResultSerializer,
    ConfirmationSerializer,
    RegisterRequestSerializer,
    RegistrationSerializer,
    TicketSerializer,
)
from ticketing.services.engine import get_engine

logger = structlog.get_logger(__name__)

# Denials are ordinary outcomes and never surface as server errors.
STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.REGISTRATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_CODE: status.HTTP_404_NOT_FOUND,
    ErrorCode.SOLD_OUT: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_REGISTERED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.TICKET_NOT_ACTIVE: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_CHECKED_IN: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_FAILED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.PAYMENT_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.ISSUANCE_PENDING: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(code: ErrorCode, message: str) -> Response:
    return Response(
        {"code": code.value, "message": message},
        status=STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST),
    )


class DomainErrorMixin:
    """Turns domain errors raised by a handler into JSON error responses."""

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, DomainError):
            logger.info("request_denied", code=exc.code.value, view=type(self).__name__)
            return error_response(exc.code, exc.message)
        return super().handle_exception(exc)


class RegistrationListView(DomainErrorMixin, APIView):
    """Handler for POST /api/registrations"""

    def post(self, request: Request) -> Response:
        payload = RegisterRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        registration = get_engine().register(
            str(payload.validated_data["event_id"]),
            str(payload.validated_data["attendee_id"]),
            payload.validated_data["ticket_type"],
        )
        return Response(RegistrationSerializer(registration).data, status=status.HTTP_201_CREATED)


class RegistrationDetailView(DomainErrorMixin, APIView):
    """Handler for GET /api/registrations/{registration_id}"""

    def get(self, request: Request, registration_id: str) -> Response:
        registration = get_engine().get_registration(registration_id)
        return Response(RegistrationSerializer(registration).data)


class RegistrationCheckoutView(DomainErrorMixin, APIView):
    """Handler for POST /api/registrations/{registration_id}/checkout"""

    def post(self, request: Request, registration_id: str) -> Response:
        confirmation = get_engine().checkout(registration_id)
        return Response(ConfirmationSerializer(confirmation).data)


class RegistrationCancelView(DomainErrorMixin, APIView):
    """Handler for POST /api/registrations/{registration_id}/cancel"""

    def post(self, request: Request, registration_id: str) -> Response:
        registration = get_engine().cancel_registration(registration_id)
        return Response(RegistrationSerializer(registration).data)


class TicketDetailView(DomainErrorMixin, APIView):
    """Handler for GET /api/tickets/{ticket_id}"""

    def get(self, request: Request, ticket_id: str) -> Response:
        return Response(TicketSerializer(get_engine().get_ticket(ticket_id)).data)


class TicketCancelView(DomainErrorMixin, APIView):
    """Handler for POST /api/tickets/{ticket_id}/cancel"""

    def post(self, request: Request, ticket_id: str) -> Response:
        return Response(TicketSerializer(get_engine().cancel_ticket(ticket_id)).data)


class TicketRefundView(DomainErrorMixin, APIView):
    """Handler for POST /api/tickets/{ticket_id}/refund"""

    def post(self, request: Request, ticket_id: str) -> Response:
        return Response(TicketSerializer(get_engine().refund_ticket(ticket_id)).data)


class CheckInView(DomainErrorMixin, APIView):
    """Handler for POST /api/check-in"""

    def post(self, request: Request) -> Response:
        payload = CheckInRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        result = get_engine().check_in(payload.validated_data["qr_token"])
        if not result.succeeded:
            return error_response(result.error, MESSAGES[result.error])
        return Response(CheckInResultSerializer(result).data)


class EventAvailabilityView(DomainErrorMixin, APIView):
    """Handler for GET /api/events/{event_id}/availability"""

    def get(self, request: Request, event_id: str) -> Response:
        return Response(CapacitySerializer(get_engine().get_capacity(event_id)).data)
