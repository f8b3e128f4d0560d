"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
The database constraints below back the engine invariants so that a bug in
application code fails loudly instead of corrupting state.
"""

import uuid

from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from ticketing.domain.models import RegistrationStatus, TicketStatus, TicketType


class TicketTypeChoices(models.TextChoices):
    ALL_ACCESS = TicketType.ALL_ACCESS.value, "All Access"
    CORE = TicketType.CORE.value, "Core"
    EXHIBITOR = TicketType.EXHIBITOR.value, "Exhibitor"
    SPEAKER = TicketType.SPEAKER.value, "Speaker"
    VENDOR = TicketType.VENDOR.value, "Vendor"
    EVENT_ORGANIZER = TicketType.EVENT_ORGANIZER.value, "Event Organizer"
    ADMINISTRATOR = TicketType.ADMINISTRATOR.value, "Administrator"


class EventCapacity(models.Model):
    """Capacity ledger row of an event.

    The event itself lives in the catalog; this row only tracks seats.
    tickets_sold is written exclusively by the capacity ledger.
    """

    event_id = models.UUIDField(primary_key=True, editable=False)
    capacity = models.PositiveIntegerField()
    tickets_sold = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "event capacities"
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gt=0), name="capacity_positive"),
            models.CheckConstraint(
                condition=Q(tickets_sold__lte=F("capacity")),
                name="tickets_sold_within_capacity",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event_id} ({self.tickets_sold}/{self.capacity})"


class Ticket(models.Model):
    """Persistence model for issued tickets."""

    class Status(models.TextChoices):
        ACTIVE = TicketStatus.ACTIVE.value, "Active"
        CANCELLED = TicketStatus.CANCELLED.value, "Cancelled"
        REFUNDED = TicketStatus.REFUNDED.value, "Refunded"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(EventCapacity, on_delete=models.PROTECT, related_name="tickets")
    attendee_id = models.UUIDField(db_index=True)
    ticket_type = models.CharField(max_length=32, choices=TicketTypeChoices.choices)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    qr_token = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    is_checked_in = models.BooleanField(default=False)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(is_checked_in=False)
                | Q(checked_in_at__isnull=False, status=TicketStatus.ACTIVE.value),
                name="checked_in_ticket_is_active_and_stamped",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.ticket_type} ticket {self.id}"


class Registration(models.Model):
    """Persistence model for attendee registrations. Rows are never deleted."""

    class Status(models.TextChoices):
        PENDING = RegistrationStatus.PENDING.value, "Pending"
        CONFIRMED = RegistrationStatus.CONFIRMED.value, "Confirmed"
        CANCELLED = RegistrationStatus.CANCELLED.value, "Cancelled"

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(EventCapacity, on_delete=models.PROTECT, related_name="registrations")
    attendee_id = models.UUIDField(db_index=True)
    ticket_type = models.CharField(max_length=32, choices=TicketTypeChoices.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    registered_at = models.DateTimeField(default=timezone.now)
    ticket = models.OneToOneField(
        Ticket,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="registration",
    )
    payment_reference = models.CharField(max_length=255, null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["registered_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "attendee_id"],
                condition=Q(status__in=[RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value]),
                name="one_active_registration_per_attendee",
            ),
        ]
        indexes = [
            models.Index(fields=["status", "registered_at"], name="registration_status_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.attendee_id} @ {self.event_id} ({self.status})"
