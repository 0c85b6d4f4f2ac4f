from django.core.management.base import BaseCommand, CommandError

from redis.exceptions import ConnectionError as RedisConnectionError

from bulletin.base.rq import get_worker


class Command(BaseCommand):
    help = "Process background tasks such as subscription confirmation emails."

    def add_arguments(self, parser):
        parser.add_argument(
            "queues",
            nargs="*",
            help="Names of the queues to listen on. Default: settings.RQ_DEFAULT_QUEUE",
        )
        parser.add_argument(
            "--burst",
            action="store_true",
            help="Quit once the queues are empty.",
        )
        parser.add_argument(
            "--max-jobs",
            type=int,
            default=None,
            help="Quit after this many jobs.",
        )
        parser.add_argument(
            "--without-scheduler",
            action="store_false",
            dest="with_scheduler",
            help="Don't run the scheduler. Failed tasks are then never retried, because retries are scheduled jobs.",
        )

    def handle(self, *args, **options):
        worker = get_worker(options["queues"])
        try:
            worker.work(
                burst=options["burst"],
                with_scheduler=options["with_scheduler"],
                max_jobs=options["max_jobs"],
            )
        except RedisConnectionError as exc:
            raise CommandError(f"Could not connect to Redis: {exc}") from exc
