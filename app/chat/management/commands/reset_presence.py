"""
Mark every user offline.

Live connections only exist in the server process's memory, so after a
restart any persisted ``is_online`` flags are stale. Run this before
starting the ASGI server:

    python manage.py reset_presence
"""

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import StorageError
from chat.presence import presence_registry
from chat.services import PresenceService


class Command(BaseCommand):
    help = "Mark all users offline (run at server start)."

    def handle(self, *args, **options):
        if presence_registry.online_user_ids():
            raise CommandError("Live connections are registered in this process; refusing to reset presence")

        try:
            count = PresenceService.reset_all()
        except StorageError as e:
            raise CommandError(f"Could not reset presence: {e.message}") from e

        self.stdout.write(self.style.SUCCESS(f"Marked {count} users offline"))
