import base64
import uuid

from django.db import InterfaceError, OperationalError
from django.test import RequestFactory

import pytest
from asgiref.sync import async_to_sync
from pydantic import SecretStr

from bulletin.accounts.authentication import Credential, CredentialValidator, MissingBasicCredentials, basic_authentication
from bulletin.accounts.models import User
from bulletin.accounts.password import DUMMY_PASSWORD_HASH, PasswordMismatch, hasher
from bulletin.accounts.store import StoredCredential
from bulletin.base.exceptions import InvalidCredentials, UnexpectedError

PASSWORD = "correct-horse-battery"


class SpyHasher:
    """Records the stored hashes it is asked to verify against. Every password is wrong."""

    def __init__(self):
        self.verified = []

    async def averify(self, stored_phc, candidate):
        self.verified.append(stored_phc)
        raise PasswordMismatch()


class FakeCredentialStore:
    def __init__(self, credentials=None, error=None):
        self.credentials = credentials or {}
        self.error = error

    def get_credential(self, username):
        if self.error:
            raise self.error
        return self.credentials.get(username)

    def set_password_hash(self, user_id, password_hash):
        if self.error:
            raise self.error

    def get_username(self, user_id):
        if self.error:
            raise self.error


def validate(validator, username, password):
    return async_to_sync(validator.validate)(Credential(username=username, password=password))


@pytest.mark.django_db
class TestCredentialValidator:
    @pytest.fixture(autouse=True)
    def prepare(self, operator):
        self.operator = operator
        self.validator = CredentialValidator()

    def test_valid_credentials(self):
        assert validate(self.validator, "operator", PASSWORD) == self.operator.user_id

    @pytest.mark.parametrize(
        "password",
        [
            "",
            "Correct-horse-battery",
            "correct-horse-batter",
            "correct-horse-battery ",
            "correct_horse-battery",
        ],
    )
    def test_wrong_password(self, password):
        with pytest.raises(InvalidCredentials):
            validate(self.validator, "operator", password)

    def test_unknown_user(self):
        with pytest.raises(InvalidCredentials):
            validate(self.validator, "nobody", PASSWORD)

    def test_malformed_stored_hash(self, caplog):
        User.objects.filter(user_id=self.operator.user_id).update(password_hash="not-a-hash")
        with pytest.raises(InvalidCredentials):
            validate(self.validator, "operator", PASSWORD)
        assert "could not be verified" in caplog.text

    def test_change_password(self):
        async_to_sync(self.validator.change_password)(self.operator.user_id, SecretStr("a-brand-new-password"))

        assert validate(self.validator, "operator", "a-brand-new-password") == self.operator.user_id
        with pytest.raises(InvalidCredentials):
            validate(self.validator, "operator", PASSWORD)

    def test_change_password_unknown_user(self):
        with pytest.raises(User.DoesNotExist):
            async_to_sync(self.validator.change_password)(uuid.uuid4(), SecretStr("a-brand-new-password"))

    def test_get_username(self):
        assert async_to_sync(self.validator.get_username)(self.operator.user_id) == "operator"

    def test_closed_connection_on_change_password(self):
        validator = CredentialValidator(store=FakeCredentialStore(error=InterfaceError("connection already closed")))

        with pytest.raises(UnexpectedError):
            async_to_sync(validator.change_password)(self.operator.user_id, SecretStr("a-new-password"))

    def test_closed_connection_on_get_username(self):
        validator = CredentialValidator(store=FakeCredentialStore(error=InterfaceError("connection already closed")))

        with pytest.raises(UnexpectedError):
            async_to_sync(validator.get_username)(self.operator.user_id)


class TestCredentialValidatorTiming:
    def test_unknown_user_is_verified_against_the_dummy_hash(self):
        spy = SpyHasher()
        validator = CredentialValidator(store=FakeCredentialStore(), password_hasher=spy)

        with pytest.raises(InvalidCredentials):
            validate(validator, "nobody", PASSWORD)
        assert spy.verified == [DUMMY_PASSWORD_HASH]

    def test_known_user_is_verified_against_the_stored_hash(self):
        spy = SpyHasher()
        stored = StoredCredential(user_id=uuid.uuid4(), password_hash="$argon2id$stored")
        validator = CredentialValidator(store=FakeCredentialStore({"operator": stored}), password_hasher=spy)

        with pytest.raises(InvalidCredentials):
            validate(validator, "operator", PASSWORD)
        assert spy.verified == ["$argon2id$stored"]

    def test_unknown_user_with_the_dummy_password_is_still_rejected(self):
        dummy_hash = hasher.hash(PASSWORD)
        validator = CredentialValidator(store=FakeCredentialStore(), dummy_hash=dummy_hash)

        with pytest.raises(InvalidCredentials):
            validate(validator, "nobody", PASSWORD)

    @pytest.mark.parametrize("error", [OperationalError("db is gone"), InterfaceError("connection already closed")])
    def test_store_failure(self, error):
        validator = CredentialValidator(store=FakeCredentialStore(error=error))

        with pytest.raises(UnexpectedError):
            validate(validator, "operator", PASSWORD)


def basic(value):
    return "Basic " + base64.b64encode(value.encode()).decode()


class TestBasicAuthentication:
    def request(self, authorization=None):
        headers = {}
        if authorization is not None:
            headers["HTTP_AUTHORIZATION"] = authorization
        return RequestFactory().post("/api/v1/newsletters/", **headers)

    def test_valid_header(self):
        credential = basic_authentication(self.request(basic("operator:pass:with:colons")))
        assert credential.username == "operator"
        assert credential.password.get_secret_value() == "pass:with:colons"

    def test_password_is_not_in_repr(self):
        credential = basic_authentication(self.request(basic("operator:hunter2-secret")))
        assert "hunter2-secret" not in repr(credential)

    @pytest.mark.parametrize(
        "authorization",
        [
            None,
            "",
            "Basic",
            "Bearer abc",
            "Basic !!!",
            basic("no-separator"),
            "Basic " + base64.b64encode(b"\xff\xfe:x").decode(),
        ],
    )
    def test_invalid_header(self, authorization):
        with pytest.raises(MissingBasicCredentials):
            basic_authentication(self.request(authorization))
