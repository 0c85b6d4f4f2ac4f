import re

from django import forms

from bulletin.base.utils import process_email
from bulletin.news.idempotency import IDEMPOTENCY_KEY_MAX_LENGTH

SUBSCRIBER_NAME_MAX_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS_RE = re.compile(r'[/()"<>\\{}]')


class PublishNewsletterForm(forms.Form):
    title = forms.CharField()
    text_content = forms.CharField(strip=False)
    html_content = forms.CharField(strip=False)
    idempotency_key = forms.CharField(max_length=IDEMPOTENCY_KEY_MAX_LENGTH)


class SubscribeForm(forms.Form):
    name = forms.CharField(max_length=SUBSCRIBER_NAME_MAX_LENGTH)
    email = forms.CharField()

    def clean_name(self):
        name = self.cleaned_data["name"]
        if FORBIDDEN_NAME_CHARACTERS_RE.search(name):
            raise forms.ValidationError("Invalid characters")
        return name

    def clean_email(self):
        email = process_email(self.cleaned_data["email"])
        if not email:
            raise forms.ValidationError("Enter a valid email address.")
        return email
