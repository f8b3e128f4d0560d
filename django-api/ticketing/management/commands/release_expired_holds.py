import typing as t
from datetime import timedelta

import structlog
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from ticketing.services.engine import get_engine

logger = structlog.get_logger(__name__)


class Command(BaseCommand):
    """Cancel pending registrations whose payment never completed.

    Meant to run periodically (cron, Kubernetes CronJob). Every expired
    registration gives its seat back through the capacity ledger.
    """

    help = "Cancel pending registrations older than the hold duration and release their seats"

    def add_arguments(self, parser: t.Any) -> None:
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Hold duration in minutes (defaults to TICKETING_HOLD_MINUTES)",
        )

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        minutes = options["minutes"] if options["minutes"] is not None else settings.TICKETING_HOLD_MINUTES
        if minutes <= 0:
            raise CommandError("Hold duration must be a positive number of minutes")

        expired = get_engine().expire_stale_registrations(timedelta(minutes=minutes))
        logger.info("expired_holds_released", count=len(expired), hold_minutes=minutes)
        self.stdout.write(self.style.SUCCESS(f"Released {len(expired)} expired registration hold(s)"))
