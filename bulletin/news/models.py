import secrets
import string
import uuid
from urllib.parse import urlencode, urljoin

from django.conf import settings
from django.db import models
from django.urls import reverse
from django.utils import timezone

from bulletin.accounts.models import User
from bulletin.news.tasks import send_confirmation_email

SUBSCRIPTION_TOKEN_LENGTH = 25
SUBSCRIPTION_TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_subscription_token():
    return "".join(secrets.choice(SUBSCRIPTION_TOKEN_ALPHABET) for _ in range(SUBSCRIPTION_TOKEN_LENGTH))


class Subscription(models.Model):
    PENDING = "pending_confirmation"
    CONFIRMED = "confirmed"
    STATUS_CHOICES = (
        (PENDING, "Pending confirmation"),
        (CONFIRMED, "Confirmed"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Stored as received. Readers parse it again and must cope with bad values.
    email = models.TextField(unique=True)
    name = models.TextField()
    subscribed_at = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=PENDING)

    class Meta:
        db_table = "subscriptions"

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.status})"

    @property
    def is_confirmed(self):
        return self.status == self.CONFIRMED

    def send_email_confirmation(self):
        """Issue a new confirmation token and queue the email carrying its link."""
        token = SubscriptionToken.objects.create(subscription=self)
        send_confirmation_email.delay(self.name, self.email, token.confirm_link())
        return token


class SubscriptionToken(models.Model):
    subscription_token = models.CharField(max_length=SUBSCRIPTION_TOKEN_LENGTH, primary_key=True, default=generate_subscription_token)
    subscription = models.ForeignKey(Subscription, on_delete=models.CASCADE, related_name="tokens")
    created = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "subscription_tokens"

    def __str__(self):
        return f"Token for {self.subscription_id}"

    def confirm_link(self):
        query = urlencode({"subscription_token": self.subscription_token})
        return f"{urljoin(settings.SITE_URL, reverse('news.confirm'))}?{query}"


class IdempotencyRecord(models.Model):
    """
    The outcome of one newsletter publish request, keyed by (user, idempotency key).

    A row without a `response_status_code` marks a request still in progress.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="+")
    idempotency_key = models.CharField(max_length=50)
    response_status_code = models.PositiveSmallIntegerField(null=True, default=None)
    response_headers = models.JSONField(null=True, default=None)
    response_body = models.BinaryField(null=True, default=None)
    created = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "idempotency"
        constraints = [
            models.UniqueConstraint(fields=["user", "idempotency_key"], name="idempotency_user_key_unique"),
        ]

    def __str__(self):
        return f"{self.user_id}/{self.idempotency_key}"

    @property
    def is_complete(self):
        return self.response_status_code is not None
