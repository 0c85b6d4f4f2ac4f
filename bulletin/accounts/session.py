import uuid

from bulletin.base.exceptions import BulletinError


class SessionStateError(BulletinError):
    """The session holds a value we did not put there."""

    pass


class TypedSession:
    """
    Typed access to the operator identity kept in the Django session.

    Persisting the session is left to `SessionMiddleware` and the configured
    session engine.
    """

    USER_ID_KEY = "user_id"

    def __init__(self, session):
        self.session = session

    async def renew(self):
        """Issue a new session key, keeping the data. Guards against session fixation."""
        await self.session.acycle_key()

    async def insert_user(self, user_id):
        await self.session.aset(self.USER_ID_KEY, str(user_id))

    async def get_user_id(self):
        value = await self.session.aget(self.USER_ID_KEY)
        if value is None:
            return None
        try:
            return uuid.UUID(str(value))
        except ValueError as exc:
            raise SessionStateError("Session holds an invalid user id.") from exc

    async def logout(self):
        await self.session.aflush()
