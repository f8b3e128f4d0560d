from django.apps import AppConfig


class TicketingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ticketing"
    verbose_name = "Ticket lifecycle"

    def ready(self) -> None:
        from ticketing import signals  # noqa: F401
