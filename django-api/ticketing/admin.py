from django.contrib import admin

from ticketing.models import EventCapacity, Registration, Ticket


class RegistrationInline(admin.TabularInline):
    model = Registration
    extra = 0
    can_delete = False
    fields = ["attendee_id", "ticket_type", "status", "registered_at", "ticket"]
    readonly_fields = fields


@admin.register(EventCapacity)
class EventCapacityAdmin(admin.ModelAdmin):
    list_display = ["event_id", "capacity", "tickets_sold", "updated_at"]
    search_fields = ["event_id"]
    # tickets_sold only moves through the capacity ledger.
    readonly_fields = ["tickets_sold", "created_at", "updated_at"]
    inlines = [RegistrationInline]


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "attendee_id", "ticket_type", "status", "registered_at"]
    list_filter = ["status", "ticket_type"]
    search_fields = ["id", "attendee_id", "payment_reference"]
    readonly_fields = ["status", "ticket", "payment_reference", "registered_at", "cancelled_at"]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "attendee_id", "ticket_type", "price", "status", "is_checked_in"]
    list_filter = ["status", "is_checked_in", "ticket_type"]
    search_fields = ["id", "attendee_id"]
    exclude = ["qr_token"]
    readonly_fields = ["status", "is_checked_in", "checked_in_at", "created_at"]

    def has_delete_permission(self, request, obj=None):
        return False
