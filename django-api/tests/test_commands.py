"""Tests for the release_expired_holds management command.

Run with: pytest tests/test_commands.py -v
"""

from datetime import timedelta
from io import StringIO
from uuid import uuid4

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from ticketing import models as orm
from ticketing.services.engine import get_engine


@pytest.mark.django_db
class TestReleaseExpiredHolds:
    """Tests for python manage.py release_expired_holds"""

    def _stale_registration(self, event_id: str, age: timedelta):
        registration = get_engine().register(event_id, str(uuid4()), "core")
        orm.Registration.objects.filter(pk=registration.id.value).update(registered_at=timezone.now() - age)
        return registration

    def test_releases_holds_older_than_setting(self, settings):
        settings.TICKETING_HOLD_MINUTES = 15
        event_id = str(uuid4())
        get_engine().open_event(event_id, 5)
        stale = self._stale_registration(event_id, timedelta(minutes=30))
        fresh = self._stale_registration(event_id, timedelta(minutes=5))
        out = StringIO()

        call_command("release_expired_holds", stdout=out)

        assert "Released 1 expired registration hold(s)" in out.getvalue()
        assert orm.Registration.objects.get(pk=stale.id.value).status == "cancelled"
        assert orm.Registration.objects.get(pk=fresh.id.value).status == "pending"
        assert orm.EventCapacity.objects.get(pk=event_id).tickets_sold == 1

    def test_minutes_option_overrides_setting(self):
        event_id = str(uuid4())
        get_engine().open_event(event_id, 5)
        self._stale_registration(event_id, timedelta(minutes=5))
        out = StringIO()

        call_command("release_expired_holds", "--minutes", "2", stdout=out)

        assert "Released 1 expired registration hold(s)" in out.getvalue()

    def test_rejects_non_positive_minutes(self):
        with pytest.raises(CommandError):
            call_command("release_expired_holds", "--minutes", "0", stdout=StringIO())
