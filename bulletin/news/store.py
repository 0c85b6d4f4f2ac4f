from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.http import HttpResponse

from bulletin.news.models import IdempotencyRecord, Subscription


@dataclass(frozen=True)
class SavedResponse:
    status_code: int
    headers: list
    body: bytes

    @classmethod
    def from_http_response(cls, response):
        return cls(
            status_code=response.status_code,
            headers=[list(item) for item in response.items()],
            body=bytes(response.content),
        )

    def to_http_response(self):
        response = HttpResponse(self.body, status=self.status_code)
        for name, value in self.headers:
            response[name] = value
        return response


@dataclass(frozen=True)
class Fresh:
    """No earlier request used this key. The caller must do the work."""


@dataclass(frozen=True)
class InProgress:
    """Another request holds this key and has not saved its response yet."""


@dataclass(frozen=True)
class Found:
    response: SavedResponse


class IdempotencyStore:
    """
    Idempotency records in the `idempotency` table.

    The unique constraint on (user, idempotency_key) decides which of several
    concurrent requests gets to run; this works across processes.
    """

    def begin(self, user_id, key):
        try:
            with transaction.atomic():
                IdempotencyRecord.objects.create(user_id=user_id, idempotency_key=key)
        except IntegrityError:
            pass
        else:
            return Fresh()

        # Somebody else got there first.
        return self.fetch(user_id, key) or InProgress()

    def fetch(self, user_id, key):
        """Return `InProgress`, `Found` or `None` when there is no record for this key."""
        record = IdempotencyRecord.objects.filter(user_id=user_id, idempotency_key=key).first()
        if record is None:
            return None
        if not record.is_complete:
            return InProgress()
        return Found(
            SavedResponse(
                status_code=record.response_status_code,
                headers=[list(item) for item in record.response_headers],
                body=bytes(record.response_body),
            )
        )

    def complete(self, user_id, key, saved):
        """Save the response on an in-progress record. Returns False if there was none to fill."""
        updated = IdempotencyRecord.objects.filter(
            user_id=user_id,
            idempotency_key=key,
            response_status_code__isnull=True,
        ).update(
            response_status_code=saved.status_code,
            response_headers=saved.headers,
            response_body=saved.body,
        )
        return bool(updated)

    def abandon(self, user_id, key):
        """Drop an in-progress record so the key can be used again."""
        IdempotencyRecord.objects.filter(
            user_id=user_id,
            idempotency_key=key,
            response_status_code__isnull=True,
        ).delete()

    def prune(self, older_than):
        deleted, _ = IdempotencyRecord.objects.filter(created__lt=older_than).delete()
        return deleted


class SubscriptionStore:
    def list_confirmed_subscribers(self):
        """Return `(subscription_id, raw_email)` for every confirmed subscription, oldest first."""
        return list(
            Subscription.objects.filter(status=Subscription.CONFIRMED).order_by("subscribed_at", "id").values_list("id", "email"),
        )
