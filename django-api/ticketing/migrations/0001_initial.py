import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


TICKET_TYPE_CHOICES = [
    ("all_access", "All Access"),
    ("core", "Core"),
    ("exhibitor", "Exhibitor"),
    ("speaker", "Speaker"),
    ("vendor", "Vendor"),
    ("event_organizer", "Event Organizer"),
    ("administrator", "Administrator"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="EventCapacity",
            fields=[
                ("event_id", models.UUIDField(editable=False, primary_key=True, serialize=False)),
                ("capacity", models.PositiveIntegerField()),
                ("tickets_sold", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "event capacities",
                "constraints": [
                    models.CheckConstraint(condition=models.Q(capacity__gt=0), name="capacity_positive"),
                    models.CheckConstraint(
                        condition=models.Q(tickets_sold__lte=models.F("capacity")),
                        name="tickets_sold_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("attendee_id", models.UUIDField(db_index=True)),
                ("ticket_type", models.CharField(choices=TICKET_TYPE_CHOICES, max_length=32)),
                ("price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("qr_token", models.CharField(max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("cancelled", "Cancelled"), ("refunded", "Refunded")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("is_checked_in", models.BooleanField(default=False)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tickets",
                        to="ticketing.eventcapacity",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(is_checked_in=False)
                        | models.Q(checked_in_at__isnull=False, status="active"),
                        name="checked_in_ticket_is_active_and_stamped",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("attendee_id", models.UUIDField(db_index=True)),
                ("ticket_type", models.CharField(choices=TICKET_TYPE_CHOICES, max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("registered_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("payment_reference", models.CharField(blank=True, max_length=255, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to="ticketing.eventcapacity",
                    ),
                ),
                (
                    "ticket",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registration",
                        to="ticketing.ticket",
                    ),
                ),
            ],
            options={
                "ordering": ["registered_at"],
                "indexes": [
                    models.Index(fields=["status", "registered_at"], name="registration_status_time_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(status__in=["pending", "confirmed"]),
                        fields=("event", "attendee_id"),
                        name="one_active_registration_per_attendee",
                    ),
                ],
            },
        ),
    ]
