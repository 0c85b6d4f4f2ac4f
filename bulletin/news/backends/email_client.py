import warnings
from urllib.parse import urljoin, urlparse, urlunparse

from django.conf import settings
from django.utils.functional import SimpleLazyObject

import requests

from bulletin.news.backends.common import EmailDeliveryError, get_timer_decorator

time_request = get_timer_decorator("news.backends.email_client")


class EmailClient:
    """
    Client for a Postmark compatible email delivery API.

    https://postmarkapp.com/developer/user-guide/send-email-with-api
    """

    def __init__(self, base_url, sender, authorization_token, timeout=10):
        urlbits = urlparse(base_url)
        if not urlbits.scheme or not urlbits.netloc:
            raise ValueError("Invalid base_url")
        self.api_url = urlunparse((urlbits.scheme, urlbits.netloc, urlbits.path, "", "", ""))

        self.sender = sender
        self.timeout = timeout
        self.authorization_token = authorization_token
        if not self.authorization_token:
            warnings.warn("Email API token is not configured", stacklevel=2)

    @time_request
    def send_email(self, recipient, subject, html_content, text_content):
        """
        Send one email.

        @raises: EmailDeliveryError: the API rejected the email or could not be reached.
        """
        url = urljoin(self.api_url.rstrip("/") + "/", "email")
        headers = {
            "X-Postmark-Server-Token": self.authorization_token,
            "Accept": "application/json",
        }
        data = {
            "From": self.sender,
            "To": recipient,
            "Subject": subject,
            "HtmlBody": html_content,
            "TextBody": text_content,
        }

        try:
            response = requests.post(url, headers=headers, json=data, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            status_code = exc.response.status_code
            raise EmailDeliveryError(exc.response.text, status_code=status_code) from exc
        except requests.exceptions.RequestException as exc:
            raise EmailDeliveryError(str(exc)) from exc


def _build_client():
    return EmailClient(
        settings.EMAIL_CLIENT_BASE_URL,
        settings.EMAIL_CLIENT_SENDER,
        settings.EMAIL_CLIENT_AUTHORIZATION_TOKEN,
        timeout=settings.EMAIL_CLIENT_TIMEOUT,
    )


email_client = SimpleLazyObject(_build_client)
