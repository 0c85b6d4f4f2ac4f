import functools

from bulletin import metrics
from bulletin.base.rq import get_enqueue_kwargs, get_queue


def rq_task(func):
    """
    Decorator to standardize RQ tasks.

    Adds a `delay(...)` attribute to the function which enqueues it, and:
    - uses our default queue and connection
    - adds retry logic with exponential backoff
    - the worker stores jobs that ran out of retries as `FailedTask` and reports them to Sentry

    """
    task_name = f"{func.__module__}.{func.__qualname__}"

    @functools.wraps(func)
    def delay(*args, **kwargs):
        queue = get_queue()
        enqueue_kwargs = get_enqueue_kwargs(func)
        metrics.incr("base.tasks.enqueued", tags=[f"task:{task_name}"])

        return queue.enqueue_call(
            func,
            args=args,
            kwargs=kwargs,
            **enqueue_kwargs,
        )

    func.delay = delay
    return func
