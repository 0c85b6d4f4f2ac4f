"""
Run CPU bound work off the event loop.

Password hashing takes tens of milliseconds of CPU time per call. Running it
directly inside an async view would stall every other request served by the
same event loop, so it runs on a dedicated, bounded thread pool instead.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings

from asgiref.sync import sync_to_async

_EXECUTOR = None
_EXECUTOR_LOCK = threading.Lock()


def get_executor():
    """Return the process wide blocking pool, creating it on first use."""
    global _EXECUTOR

    with _EXECUTOR_LOCK:
        if _EXECUTOR is None:
            _EXECUTOR = ThreadPoolExecutor(
                max_workers=settings.BLOCKING_POOL_SIZE,
                thread_name_prefix="bulletin-blocking",
            )
    return _EXECUTOR


def shutdown_executor(wait=True):
    global _EXECUTOR

    with _EXECUTOR_LOCK:
        if _EXECUTOR is not None:
            _EXECUTOR.shutdown(wait=wait)
            _EXECUTOR = None


async def run_blocking(func, *args, **kwargs):
    """
    Await `func(*args, **kwargs)` executed on the blocking pool.

    Context variables (e.g. the Sentry scope) are carried over to the worker
    thread by `sync_to_async`.
    """
    return await sync_to_async(func, thread_sensitive=False, executor=get_executor())(*args, **kwargs)
