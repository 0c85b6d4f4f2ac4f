import base64
import binascii
import logging

from django.db import Error

from asgiref.sync import sync_to_async
from pydantic import BaseModel, SecretStr

from bulletin.accounts.password import DUMMY_PASSWORD_HASH, MalformedHash, PasswordMismatch, hasher
from bulletin.accounts.store import CredentialStore
from bulletin.base.exceptions import BulletinError, InvalidCredentials, UnexpectedError

log = logging.getLogger(__name__)


class Credential(BaseModel):
    username: str
    password: SecretStr


class MissingBasicCredentials(BulletinError):
    pass


class CredentialValidator:
    """
    Checks username/password pairs against the stored Argon2 hashes.

    An unknown username is verified against `dummy_hash` so that it costs the
    same as a known username with a wrong password. Both end in the same
    `InvalidCredentials` error.
    """

    def __init__(self, store=None, password_hasher=None, dummy_hash=DUMMY_PASSWORD_HASH):
        self.store = store or CredentialStore()
        self.hasher = password_hasher or hasher
        self.dummy_hash = dummy_hash

    async def validate(self, credential):
        """Return the user id for `credential` or raise `InvalidCredentials`."""
        try:
            stored = await sync_to_async(self.store.get_credential)(credential.username)
        except Error as exc:
            raise UnexpectedError("Failed to perform a query to retrieve stored credentials.") from exc

        user_id = None
        expected_hash = self.dummy_hash
        if stored is not None:
            user_id = stored.user_id
            expected_hash = stored.password_hash

        try:
            await self.hasher.averify(expected_hash, credential.password.get_secret_value())
        except PasswordMismatch as exc:
            raise InvalidCredentials() from exc
        except MalformedHash as exc:
            log.error("Stored password hash for user %s could not be verified", user_id)
            raise InvalidCredentials() from exc

        if user_id is None:
            raise InvalidCredentials()

        return user_id

    async def change_password(self, user_id, new_password):
        password_hash = await self.hasher.ahash(new_password.get_secret_value())
        try:
            await sync_to_async(self.store.set_password_hash)(user_id, password_hash)
        except Error as exc:
            raise UnexpectedError("Failed to change the user's password in the database.") from exc

    async def get_username(self, user_id):
        try:
            return await sync_to_async(self.store.get_username)(user_id)
        except Error as exc:
            raise UnexpectedError("Failed to perform a query to retrieve a username.") from exc


def basic_authentication(request):
    """
    Extract a `Credential` from an `Authorization: Basic ...` header.

    Raises `MissingBasicCredentials` if the header is absent or malformed.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        raise MissingBasicCredentials("The 'Authorization' header was missing or not 'Basic'.")

    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise MissingBasicCredentials("Failed to decode the Basic credentials.") from exc

    username, sep, password = decoded.partition(":")
    if not sep:
        raise MissingBasicCredentials("A password must be provided in 'Basic' auth.")

    return Credential(username=username, password=password)


validator = CredentialValidator()
