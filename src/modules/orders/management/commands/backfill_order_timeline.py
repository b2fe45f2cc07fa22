from django.core.management.base import BaseCommand, CommandError

from modules.orders.tasks import build_backfill_service
from shared.domain.exceptions import RetryableError


class Command(BaseCommand):
    help = "Give every order without a 'created' timeline event its backdated entry."

    def handle(self, *args, **options):
        self.stdout.write("Backfilling order timelines...")
        try:
            written = build_backfill_service().run()
        except RetryableError as exc:
            raise CommandError(str(exc)) from exc
        self.stdout.write(
            self.style.SUCCESS(f"Backfill completed: events_written={written}")
        )
