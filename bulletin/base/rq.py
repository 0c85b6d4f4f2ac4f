import logging
import random
import traceback

from django.conf import settings

import redis
import sentry_sdk
from rq import Retry, SimpleWorker
from rq.job import JobStatus
from rq.queue import Queue
from rq.serializers import JSONSerializer

from bulletin import metrics
from bulletin.base.exceptions import RetryTask
from bulletin.base.models import FailedTask
from bulletin.news.backends.common import EmailDeliveryError

log = logging.getLogger(__name__)

# Responses from the email API that will not change on a retry.
#   406: the recipient is inactive (hard bounce, spam complaint or manual suppression).
#   422: the API refused the request, e.g. an invalid recipient address.
REJECTED_STATUS_CODES = frozenset({406, 422})

# Our cached Redis connection.
_REDIS_CONN = None


def get_redis_connection(url=None, force=False):
    """
    Get a Redis connection.

    Expects a URL including the db, or defaults to `settings.RQ_URL`.
    """
    global _REDIS_CONN

    if force or _REDIS_CONN is None:
        if url is None:
            if settings.RQ_URL is None:
                # Note: RQ_URL is derived from REDIS_URL.
                raise ValueError("No `settings.REDIS_URL` specified")
            url = settings.RQ_URL
        _REDIS_CONN = redis.Redis.from_url(url)

    return _REDIS_CONN


def get_queue(name=None):
    return Queue(
        name or settings.RQ_DEFAULT_QUEUE or "default",
        connection=get_redis_connection(),
        is_async=settings.RQ_IS_ASYNC,
        serializer=JSONSerializer,
    )


def get_worker(queue_names=None):
    queues = [get_queue(name) for name in queue_names] if queue_names else [get_queue()]
    return SimpleWorker(
        queues,
        connection=get_redis_connection(),
        disable_default_exception_handler=True,
        exception_handlers=[store_task_exception_handler],
        serializer=JSONSerializer,
    )


def get_enqueue_kwargs(func):
    retry = None
    if settings.RQ_MAX_RETRIES:
        retry = Retry(settings.RQ_MAX_RETRIES, rq_exponential_backoff())

    return {
        "meta": {"task_name": f"{func.__module__}.{func.__qualname__}"},
        "retry": retry,
        "result_ttl": settings.RQ_RESULT_TTL,
    }


def rq_exponential_backoff():
    """
    Retry delays with exponential back-off and jitter, at least a minute apart.
    """
    if settings.DEBUG:
        return [5] * settings.RQ_MAX_RETRIES
    return [max(60, random.randrange(min(settings.RQ_MAX_RETRY_DELAY, 120 * (2**n)))) for n in range(settings.RQ_MAX_RETRIES)]


def is_rejected(exc):
    """True when the email API refused the message for good."""
    return isinstance(exc, EmailDeliveryError) and exc.status_code in REJECTED_STATUS_CODES


def store_task_exception_handler(job, exc_type=None, exc_value=None, tb=None):
    """
    Worker exception handler for failed jobs.

    * rejected by the email API: cancel any retries, count it, store nothing
    * retries left: count it and let RQ reschedule the job
    * out of retries: store a `FailedTask` and report to Sentry

    Returns `False` so no other handler runs.
    """
    # `job.is_failed` would re-read the status from Redis, which RQ hasn't written yet.
    if job._status != JobStatus.FAILED:
        return False

    task_name = job.meta["task_name"]
    if is_rejected(exc_value):
        job.retries_left = 0
        metrics.incr("base.tasks.rejected", tags=[f"task:{task_name}", f"status_code:{exc_value.status_code}"])
        log.warning("Task %s was rejected by the email API with status %s", task_name, exc_value.status_code)
    elif job.retries_left:
        metrics.incr("base.tasks.retried", tags=[f"task:{task_name}"])
        sentry_capture(exc_value, "retried")
    else:
        metrics.incr("base.tasks.failed", tags=[f"task:{task_name}"])
        store_failed_task(job, exc_type, exc_value, tb)
        sentry_capture(exc_value, "failed")

    return False


def store_failed_task(job, exc_type, exc_value, tb):
    FailedTask.objects.create(
        task_id=job.id,
        name=job.meta["task_name"],
        args=list(job.args),
        kwargs=job.kwargs,
        exc=repr(exc_value),
        einfo="".join(traceback.format_exception(exc_type, exc_value, tb)),
    )


def sentry_capture(exc, action):
    if isinstance(exc, RetryTask):
        return
    with sentry_sdk.isolation_scope() as scope:
        scope.set_tag("action", action)
        sentry_sdk.capture_exception(exc)
