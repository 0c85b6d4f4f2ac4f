import base64
import json
import uuid

import pytest

from bulletin import errors
from bulletin.news.delivery import NewsletterDispatcher
from bulletin.news.models import IdempotencyRecord, Subscription
from bulletin.news.publishing import NewsletterPublisher
from bulletin.news.tests.fakes import FakeTransport

URL = "/api/v1/newsletters/"


def basic_auth(username, password):
    encoded = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {encoded}"


def publish_body(**kwargs):
    body = {
        "title": "Newsletter title",
        "content": {
            "text": "Newsletter body as plain text",
            "html": "<p>Newsletter body as HTML</p>",
        },
        "idempotency_key": str(uuid.uuid4()),
    }
    body.update(kwargs)
    return body


@pytest.fixture
def transport(mocker):
    transport = FakeTransport(failing=["vera@example.com"])
    mocker.patch("bulletin.news.publishing.publisher", NewsletterPublisher(newsletter_dispatcher=NewsletterDispatcher(transport)))
    return transport


@pytest.mark.django_db
class TestPublishNewsletter:
    @pytest.fixture(autouse=True)
    def prepare(self, operator, operator_password, transport):
        Subscription.objects.create(email="ursula@example.com", name="Ursula", status=Subscription.CONFIRMED)
        Subscription.objects.create(email="vera@example.com", name="Vera", status=Subscription.CONFIRMED)
        Subscription.objects.create(email="pending@example.com", name="Pending", status=Subscription.PENDING)
        self.transport = transport
        self.auth = basic_auth(operator.username, operator_password)

    def post(self, client, body, auth=None):
        kwargs = {}
        if auth is not None:
            kwargs["HTTP_AUTHORIZATION"] = auth
        return client.post(URL, json.dumps(body), content_type="application/json", **kwargs)

    def test_publish(self, client, metricsmock):
        response = self.post(client, publish_body(), auth=self.auth)

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "sent": 1, "failed": 1, "skipped": 0}
        assert self.transport.recipients == ["ursula@example.com"]
        metricsmock.assert_incr_once("news.publish.published")

    def test_replay_returns_identical_response(self, client):
        body = publish_body()
        first = self.post(client, body, auth=self.auth)
        second = self.post(client, body, auth=self.auth)

        assert second.status_code == first.status_code == 200
        assert second.content == first.content
        assert len(self.transport.sent) == 1
        assert IdempotencyRecord.objects.count() == 1

    def test_missing_credentials(self, client):
        response = self.post(client, publish_body())

        assert response.status_code == 401
        assert response["WWW-Authenticate"] == 'Basic realm="publish"'
        assert response.json()["code"] == errors.BULLETIN_AUTH_ERROR
        assert self.transport.sent == []

    @pytest.mark.parametrize(
        "auth",
        [
            basic_auth("operator", "wrong-password"),
            basic_auth("nobody", "correct-horse-battery"),
            "Basic not-base64!",
            "Bearer some-token",
            "Basic " + base64.b64encode(b"no-separator").decode(),
        ],
    )
    def test_invalid_credentials(self, client, auth):
        response = self.post(client, publish_body(), auth=auth)

        assert response.status_code == 401
        assert response["WWW-Authenticate"] == 'Basic realm="publish"'
        assert self.transport.sent == []
        assert not IdempotencyRecord.objects.exists()

    @pytest.mark.parametrize(
        "body",
        [
            publish_body(title=""),
            publish_body(idempotency_key=""),
            publish_body(idempotency_key="x" * 51),
            publish_body(content={"text": "only text"}),
            {"title": "No content or key"},
        ],
    )
    def test_invalid_body(self, client, body):
        response = self.post(client, body, auth=self.auth)

        assert response.status_code == 400
        data = response.json()
        assert data["status"] == "error"
        assert data["code"] == errors.BULLETIN_USAGE_ERROR
        assert self.transport.sent == []

    def test_get_not_allowed(self, client):
        assert client.get(URL, HTTP_AUTHORIZATION=self.auth).status_code == 405
