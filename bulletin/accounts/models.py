import uuid

from django.db import models


class User(models.Model):
    """An operator allowed to publish newsletters."""

    user_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = models.CharField(max_length=255, unique=True)
    # PHC formatted Argon2id hash. Only changed through a password change.
    password_hash = models.TextField()

    class Meta:
        db_table = "users"

    def __str__(self):
        return self.username
