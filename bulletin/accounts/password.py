"""
Password hashing with Argon2id.

Hashes are stored as PHC strings, e.g.::

    $argon2id$v=19$m=15000,t=2,p=1$<salt>$<digest>

The cost parameters below apply to every hash this service creates. Raising
them is an operational decision: existing hashes keep verifying because the
PHC string carries the parameters it was created with.
"""

import secrets

import argon2
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from bulletin.base.blocking import run_blocking
from bulletin.base.exceptions import BulletinError, MalformedStoredData

ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST = 15000  # KiB
ARGON2_PARALLELISM = 1
ARGON2_HASH_LEN = 32
ARGON2_SALT_LEN = 16


class PasswordMismatch(BulletinError):
    pass


class MalformedHash(MalformedStoredData):
    pass


class PasswordHasher:
    def __init__(self):
        self._hasher = argon2.PasswordHasher(
            time_cost=ARGON2_TIME_COST,
            memory_cost=ARGON2_MEMORY_COST,
            parallelism=ARGON2_PARALLELISM,
            hash_len=ARGON2_HASH_LEN,
            salt_len=ARGON2_SALT_LEN,
            type=argon2.Type.ID,
        )

    def hash(self, password):
        """Return a PHC string for `password` using a fresh random salt."""
        return self._hasher.hash(password)

    def verify(self, stored_phc, candidate):
        """
        Check `candidate` against `stored_phc`.

        Returns `None` on success.
        Raises `PasswordMismatch` when the password is wrong and `MalformedHash`
        when `stored_phc` can't be decoded or verified at all.
        """
        try:
            self._hasher.verify(stored_phc, candidate)
        except VerifyMismatchError as exc:
            raise PasswordMismatch("Password does not match.") from exc
        except (InvalidHashError, VerificationError) as exc:
            raise MalformedHash("Failed to parse the stored password hash.") from exc

    async def ahash(self, password):
        return await run_blocking(self.hash, password)

    async def averify(self, stored_phc, candidate):
        return await run_blocking(self.verify, stored_phc, candidate)


hasher = PasswordHasher()

# Verified against when the username is unknown, so a failed login costs the
# same whether or not the user exists. Nobody knows the password behind it.
DUMMY_PASSWORD_HASH = hasher.hash(secrets.token_urlsafe(32))
