from ticketing.handlers.views import (
    CheckInView,
    EventAvailabilityView,
    RegistrationCancelView,
    RegistrationCheckoutView,
    RegistrationDetailView,
    RegistrationListView,
    TicketCancelView,
    TicketDetailView,
    TicketRefundView,
)

__all__ = [
    "CheckInView",
    "EventAvailabilityView",
    "RegistrationCancelView",
    "RegistrationCheckoutView",
    "RegistrationDetailView",
    "RegistrationListView",
    "TicketCancelView",
    "TicketDetailView",
    "TicketRefundView",
]
