import logging
from dataclasses import dataclass, field

import sentry_sdk
from asgiref.sync import sync_to_async

from bulletin import metrics
from bulletin.news.backends.common import EmailDeliveryError
from bulletin.news.backends.email_client import email_client
from bulletin.news.subscribers import ParseFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewsletterIssue:
    title: str
    html_content: str
    text_content: str


@dataclass
class DeliveryReport:
    sent: list = field(default_factory=list)
    failed: list = field(default_factory=list)
    skipped: list = field(default_factory=list)

    @property
    def attempted(self):
        return len(self.sent) + len(self.failed)


class NewsletterDispatcher:
    """
    Sends a newsletter issue to each confirmed subscriber, one at a time.

    A subscriber whose stored email is invalid is skipped, and a failed send
    is recorded. Neither stops the rest of the list. Sends are not retried.
    """

    def __init__(self, transport=None):
        self.transport = transport or email_client

    async def publish(self, issue, subscribers):
        report = DeliveryReport()
        send_email = sync_to_async(self.transport.send_email, thread_sensitive=False)

        for subscriber in subscribers:
            if isinstance(subscriber, ParseFailure):
                log.warning(
                    "Skipping a confirmed subscriber. Their stored contact details are invalid. (subscription %s: %s)",
                    subscriber.subscription_id,
                    subscriber.reason,
                )
                metrics.incr("news.delivery.skipped")
                report.skipped.append(subscriber)
                continue

            try:
                await send_email(subscriber.email, issue.title, issue.html_content, issue.text_content)
            except EmailDeliveryError as exc:
                log.error("Failed to send newsletter issue to a confirmed subscriber: %s", exc)
                metrics.incr("news.delivery.failed")
                sentry_sdk.capture_exception()
                report.failed.append(subscriber)
                continue

            metrics.incr("news.delivery.sent")
            report.sent.append(subscriber)

        log.info(
            "Newsletter issue %r delivered: %d sent, %d failed, %d skipped",
            issue.title,
            len(report.sent),
            len(report.failed),
            len(report.skipped),
        )
        return report


dispatcher = NewsletterDispatcher()
