from dataclasses import dataclass, field
from uuid import UUID

from bulletin.accounts.models import User


@dataclass(frozen=True)
class StoredCredential:
    user_id: UUID
    password_hash: str = field(repr=False)


class CredentialStore:
    """Reads and writes operator credentials. All methods are synchronous ORM calls."""

    def get_credential(self, username):
        row = User.objects.filter(username=username).values_list("user_id", "password_hash").first()
        if row is None:
            return None
        return StoredCredential(user_id=row[0], password_hash=row[1])

    def set_password_hash(self, user_id, password_hash):
        updated = User.objects.filter(user_id=user_id).update(password_hash=password_hash)
        if not updated:
            raise User.DoesNotExist(f"No user with id {user_id}")

    def get_username(self, user_id):
        return User.objects.values_list("username", flat=True).get(user_id=user_id)

    def create_user(self, username, password_hash):
        return User.objects.create(username=username, password_hash=password_hash)
