import asyncio
import logging

from django.conf import settings
from django.db import Error

from asgiref.sync import sync_to_async

from bulletin import metrics
from bulletin.base.exceptions import BulletinError, UnexpectedError
from bulletin.news.store import Found, Fresh, IdempotencyStore, InProgress, SavedResponse

log = logging.getLogger(__name__)

IDEMPOTENCY_KEY_MAX_LENGTH = 50
MAX_POLL_INTERVAL = 1.0


class InvalidIdempotencyKey(BulletinError, ValueError):
    pass


class IdempotencyStoreError(UnexpectedError):
    pass


class IdempotencyTimeout(UnexpectedError):
    pass


class IdempotencyConflict(UnexpectedError):
    pass


def validate_idempotency_key(value):
    if not value:
        raise InvalidIdempotencyKey("The idempotency key cannot be empty.")
    if len(value) > IDEMPOTENCY_KEY_MAX_LENGTH:
        raise InvalidIdempotencyKey(f"The idempotency key can be at most {IDEMPOTENCY_KEY_MAX_LENGTH} characters long.")
    return value


class IdempotencyGuard:
    """
    Makes a side effect happen at most once per (user, idempotency key).

    Usage::

        outcome = await guard.begin_or_fetch(user_id, key)
        if isinstance(outcome, Found):
            return outcome.response.to_http_response()
        response = ...  # do the work
        return await guard.complete(user_id, key, response)

    A request that finds the key held by a concurrent request waits until
    that request saves its response and then returns the same response.
    """

    def __init__(self, store=None, poll_interval=None, wait_timeout=None):
        self.store = store or IdempotencyStore()
        self._poll_interval = poll_interval
        self._wait_timeout = wait_timeout

    @property
    def poll_interval(self):
        return self._poll_interval if self._poll_interval is not None else settings.IDEMPOTENCY_POLL_INTERVAL

    @property
    def wait_timeout(self):
        return self._wait_timeout if self._wait_timeout is not None else settings.IDEMPOTENCY_WAIT_TIMEOUT

    async def _call_store(self, method, *args):
        try:
            return await sync_to_async(method)(*args)
        except Error as exc:
            raise IdempotencyStoreError("Failed to reach the idempotency store.") from exc

    async def begin_or_fetch(self, user_id, key):
        """Return `Fresh()` if the caller must do the work, or `Found(response)` to replay."""
        validate_idempotency_key(key)
        outcome = await self._call_store(self.store.begin, user_id, key)
        if isinstance(outcome, Fresh):
            return outcome

        if isinstance(outcome, InProgress):
            metrics.incr("news.idempotency.waited")
            outcome = await self._wait_for_response(user_id, key)

        metrics.incr("news.idempotency.replayed")
        return outcome

    async def _wait_for_response(self, user_id, key):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_timeout
        interval = self.poll_interval
        while True:
            if loop.time() >= deadline:
                raise IdempotencyTimeout(f"Gave up waiting for a concurrent request with idempotency key {key!r}.")

            await asyncio.sleep(interval)
            interval = min(interval * 2, MAX_POLL_INTERVAL)

            outcome = await self._call_store(self.store.fetch, user_id, key)
            if outcome is None:
                raise IdempotencyConflict(f"The concurrent request with idempotency key {key!r} failed.")
            if isinstance(outcome, Found):
                return outcome

    async def complete(self, user_id, key, response):
        """Save `response` as the outcome for this key and return it unchanged."""
        saved = SavedResponse.from_http_response(response)
        if not await self._call_store(self.store.complete, user_id, key, saved):
            log.warning("No in-progress idempotency record to complete for key %r", key)
        return response

    async def abandon(self, user_id, key):
        await self._call_store(self.store.abandon, user_id, key)


guard = IdempotencyGuard()
