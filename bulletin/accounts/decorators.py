import logging
from functools import wraps

from django.conf import settings

from bulletin.accounts.session import SessionStateError, TypedSession
from bulletin.base.utils import see_other

log = logging.getLogger(__name__)


def login_required(view_func):
    """
    Only let requests with a logged in operator through to an async view.

    Everyone else is redirected to the login page. The operator's id is
    available to the view as `request.user_id`.
    """

    @wraps(view_func)
    async def _wrapped(request, *args, **kwargs):
        session = TypedSession(request.session)
        try:
            user_id = await session.get_user_id()
        except SessionStateError:
            log.warning("Discarding a session with a corrupted user id")
            await session.logout()
            user_id = None

        if user_id is None:
            return see_other(settings.LOGIN_URL)

        request.user_id = user_id
        return await view_func(request, *args, **kwargs)

    return _wrapped
