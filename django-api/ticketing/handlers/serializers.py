"""Serializers for request parsing and for rendering domain models."""

from rest_framework import serializers

from ticketing.domain import TicketType


class RegisterRequestSerializer(serializers.Serializer):
    event_id = serializers.UUIDField()
    attendee_id = serializers.UUIDField()
    ticket_type = serializers.ChoiceField(choices=[ticket_type.value for ticket_type in TicketType])


class CheckInRequestSerializer(serializers.Serializer):
    qr_token = serializers.CharField(max_length=64)


class CapacitySerializer(serializers.Serializer):
    """Serializer for CapacityRecord domain model."""

    event_id = serializers.UUIDField(source="event_id.value")
    capacity = serializers.IntegerField(source="capacity.value")
    tickets_sold = serializers.IntegerField()
    available = serializers.IntegerField()
    is_sold_out = serializers.BooleanField()


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    attendee_id = serializers.UUIDField(source="attendee_id.value")
    ticket_type = serializers.CharField(source="ticket_type.value")
    status = serializers.CharField(source="status.value")
    registered_at = serializers.DateTimeField()
    ticket_id = serializers.UUIDField(source="ticket_id.value", allow_null=True)
    cancelled_at = serializers.DateTimeField(allow_null=True)


class TicketSerializer(serializers.Serializer):
    """Serializer for Ticket domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    attendee_id = serializers.UUIDField(source="attendee_id.value")
    ticket_type = serializers.CharField(source="ticket_type.value")
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    qr_token = serializers.CharField(source="qr_token.value")
    status = serializers.CharField(source="status.value")
    is_checked_in = serializers.BooleanField()
    checked_in_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()


class ConfirmationSerializer(serializers.Serializer):
    registration = RegistrationSerializer()
    ticket = TicketSerializer()


class CheckInResultSerializer(serializers.Serializer):
    checked_in = serializers.BooleanField(source="succeeded")
    ticket_id = serializers.UUIDField(source="ticket.id.value", allow_null=True)
    ticket_type = serializers.CharField(source="ticket.ticket_type.value", allow_null=True)
    checked_in_at = serializers.DateTimeField(source="ticket.checked_in_at", allow_null=True)
