import logging

from bulletin import metrics
from bulletin.news.delivery import dispatcher
from bulletin.news.idempotency import IdempotencyStoreError, guard
from bulletin.news.store import Found
from bulletin.news.subscribers import resolver

log = logging.getLogger(__name__)


class NewsletterPublisher:
    """Publishes a newsletter issue at most once per (user, idempotency key)."""

    def __init__(self, idempotency_guard=None, subscriber_resolver=None, newsletter_dispatcher=None):
        self.guard = idempotency_guard or guard
        self.resolver = subscriber_resolver or resolver
        self.dispatcher = newsletter_dispatcher or dispatcher

    async def publish_once(self, user_id, idempotency_key, issue, respond):
        """
        Deliver `issue` to confirmed subscribers and return `respond(report)`.

        If the key was used before, the response saved back then is returned
        instead and nothing is sent.
        """
        outcome = await self.guard.begin_or_fetch(user_id, idempotency_key)
        if isinstance(outcome, Found):
            metrics.incr("news.publish.replayed")
            return outcome.response.to_http_response()

        try:
            subscribers = await self.resolver.list_confirmed()
            report = await self.dispatcher.publish(issue, subscribers)
            response = respond(report)
        except Exception:
            log.exception("Publishing newsletter issue %r failed", issue.title)
            await self.guard.abandon(user_id, idempotency_key)
            metrics.incr("news.publish.failed")
            raise

        metrics.incr("news.publish.published")
        try:
            return await self.guard.complete(user_id, idempotency_key, response)
        except IdempotencyStoreError:
            # The issue went out, so the key stays in progress and a retry
            # waits out its timeout instead of sending it again.
            log.exception(
                "Newsletter issue %r was delivered but its response could not be saved (idempotency key %r)",
                issue.title,
                idempotency_key,
            )
            metrics.incr("news.publish.unsaved")
            raise


publisher = NewsletterPublisher()
