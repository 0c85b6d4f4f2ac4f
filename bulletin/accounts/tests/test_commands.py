from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError

import pytest

from bulletin.accounts.models import User
from bulletin.accounts.password import hasher


@pytest.mark.django_db
class TestCreateUser:
    def test_with_password_option(self):
        out = StringIO()
        call_command("create_user", "ursula", "--password", "correct-horse-battery", stdout=out)

        user = User.objects.get(username="ursula")
        assert hasher.verify(user.password_hash, "correct-horse-battery") is None
        assert f"Created user ursula ({user.user_id})" in out.getvalue()

    def test_prompts_for_password(self, mocker):
        mocker.patch("getpass.getpass", side_effect=["correct-horse-battery", "correct-horse-battery"])
        call_command("create_user", "ursula", stdout=StringIO())

        user = User.objects.get(username="ursula")
        assert hasher.verify(user.password_hash, "correct-horse-battery") is None

    def test_prompted_passwords_differ(self, mocker):
        mocker.patch("getpass.getpass", side_effect=["correct-horse-battery", "something-else"])
        with pytest.raises(CommandError):
            call_command("create_user", "ursula", stdout=StringIO())
        assert not User.objects.exists()

    def test_duplicate_username(self):
        call_command("create_user", "ursula", "--password", "correct-horse-battery", stdout=StringIO())
        with pytest.raises(CommandError, match="already exists"):
            call_command("create_user", "ursula", "--password", "another-password", stdout=StringIO())
