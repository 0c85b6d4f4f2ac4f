from django.template.loader import render_to_string

from bulletin.base.decorators import rq_task
from bulletin.news.backends.email_client import email_client

CONFIRMATION_EMAIL_SUBJECT = "Welcome!"


@rq_task
def send_confirmation_email(name, email, confirm_link):
    context = {
        "name": name,
        "confirm_link": confirm_link,
    }
    email_client.send_email(
        email,
        CONFIRMATION_EMAIL_SUBJECT,
        render_to_string("news/confirmation_email.html", context),
        render_to_string("news/confirmation_email.txt", context),
    )
