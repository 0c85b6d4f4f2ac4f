import logging
from dataclasses import dataclass
from uuid import UUID

from django.db import Error

from asgiref.sync import sync_to_async
from email_validator import EmailNotValidError

from bulletin.base.exceptions import UnexpectedError
from bulletin.base.utils import parse_email
from bulletin.news.store import SubscriptionStore

log = logging.getLogger(__name__)


class SubscriberStoreError(UnexpectedError):
    pass


@dataclass(frozen=True)
class ConfirmedSubscriber:
    email: str


@dataclass(frozen=True)
class ParseFailure:
    """A confirmed subscription whose stored email is not a valid address."""

    subscription_id: UUID
    raw_email: str
    reason: str


def parse_subscriber(subscription_id, raw_email):
    try:
        return ConfirmedSubscriber(email=parse_email(raw_email))
    except EmailNotValidError as exc:
        return ParseFailure(subscription_id=subscription_id, raw_email=raw_email, reason=str(exc))


class SubscriberResolver:
    def __init__(self, store=None):
        self.store = store or SubscriptionStore()

    async def list_confirmed(self):
        """
        Return one `ConfirmedSubscriber` or `ParseFailure` per confirmed row.

        A bad email never fails the whole list. Only failing to read the
        store does, as `SubscriberStoreError`.
        """
        try:
            rows = await sync_to_async(self.store.list_confirmed_subscribers)()
        except Error as exc:
            raise SubscriberStoreError("Failed to fetch confirmed subscribers from the database.") from exc

        return [parse_subscriber(subscription_id, raw_email) for subscription_id, raw_email in rows]


resolver = SubscriberResolver()
