class BulletinError(Exception):
    """
    Base class for errors raised by the bulletin service.

    Tasks can raise this when an error happens that we should not retry.
    """

    pass


class RetryTask(Exception):
    """An exception to raise within a task if you just want to retry."""

    pass


class InvalidCredentials(BulletinError):
    """The username is unknown or the password does not match.

    Both cases share this one exception so callers can't tell them apart.
    """

    def __init__(self, msg="Invalid credentials."):
        super().__init__(msg)


class MalformedStoredData(BulletinError):
    """A stored value (password hash, subscriber email) can't be parsed."""

    pass


class UnexpectedError(BulletinError):
    """A store, transport or scheduling failure we can't recover from."""

    pass
