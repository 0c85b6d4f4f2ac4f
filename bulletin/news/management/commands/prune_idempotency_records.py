from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from bulletin import metrics
from bulletin.news.store import IdempotencyStore


class Command(BaseCommand):
    help = "Delete idempotency records older than the configured retention."

    def add_arguments(self, parser):
        parser.add_argument(
            "--hours",
            dest="hours",
            default=None,
            type=int,
            help="Delete records created more than this many hours ago. Default: settings.IDEMPOTENCY_RECORD_TTL_HOURS",
        )

    def handle(self, *args, **options):
        hours = options.get("hours") or settings.IDEMPOTENCY_RECORD_TTL_HOURS
        cutoff = timezone.now() - timedelta(hours=hours)
        deleted = IdempotencyStore().prune(cutoff)
        metrics.gauge("news.idempotency.pruned", deleted)
        self.stdout.write(f"Deleted {deleted} idempotency records older than {hours} hours.")
