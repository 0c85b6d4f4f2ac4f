import pytest

from bulletin.news.forms import PublishNewsletterForm, SubscribeForm


class TestSubscribeForm:
    def test_valid(self):
        form = SubscribeForm({"name": "Ursula Le Guin", "email": "  ursula_le_guin@gmail.com "})
        assert form.is_valid(), form.errors
        assert form.cleaned_data == {"name": "Ursula Le Guin", "email": "ursula_le_guin@gmail.com"}

    @pytest.mark.parametrize("name", ["Ursula (Le Guin)", "<b>Ursula</b>", 'Ursula "LG"', "Ursula/Le Guin", "Ursula\\", "{Ursula}"])
    def test_forbidden_characters_in_name(self, name):
        form = SubscribeForm({"name": name, "email": "ursula_le_guin@gmail.com"})
        assert not form.is_valid()
        assert "name" in form.errors

    def test_name_too_long(self):
        form = SubscribeForm({"name": "a" * 257, "email": "ursula_le_guin@gmail.com"})
        assert not form.is_valid()
        assert "name" in form.errors

    def test_name_max_length(self):
        form = SubscribeForm({"name": "a" * 256, "email": "ursula_le_guin@gmail.com"})
        assert form.is_valid(), form.errors

    @pytest.mark.parametrize("email", ["", "ursulageguin.com", "@gmail.com", "ursula@", "ursula@@gmail.com"])
    def test_invalid_email(self, email):
        form = SubscribeForm({"name": "Ursula", "email": email})
        assert not form.is_valid()
        assert "email" in form.errors


class TestPublishNewsletterForm:
    def test_content_whitespace_is_kept(self):
        data = {
            "title": " Title ",
            "text_content": "  indented\n",
            "html_content": "<p>hi</p>\n",
            "idempotency_key": "key-1",
        }
        form = PublishNewsletterForm(data)
        assert form.is_valid(), form.errors
        assert form.cleaned_data["title"] == "Title"
        assert form.cleaned_data["text_content"] == "  indented\n"
        assert form.cleaned_data["html_content"] == "<p>hi</p>\n"
