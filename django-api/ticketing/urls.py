from django.urls import path

from ticketing.handlers import (
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

urlpatterns = [
    path("registrations", RegistrationListView.as_view(), name="registration-list"),
    path(
        "registrations/<str:registration_id>",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/checkout",
        RegistrationCheckoutView.as_view(),
        name="registration-checkout",
    ),
    path(
        "registrations/<str:registration_id>/cancel",
        RegistrationCancelView.as_view(),
        name="registration-cancel",
    ),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
    path("tickets/<str:ticket_id>/cancel", TicketCancelView.as_view(), name="ticket-cancel"),
    path("tickets/<str:ticket_id>/refund", TicketRefundView.as_view(), name="ticket-refund"),
    path("check-in", CheckInView.as_view(), name="check-in"),
    path(
        "events/<str:event_id>/availability",
        EventAvailabilityView.as_view(),
        name="event-availability",
    ),
]
