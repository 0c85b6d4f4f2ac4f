from functools import wraps
from time import time

from bulletin import metrics


class EmailDeliveryError(Exception):
    """Error when trying to hand an email to the delivery API."""

    def __init__(self, msg=None, status_code=None):
        self.status_code = status_code
        super().__init__(msg)


def get_timer_decorator(prefix):
    """
    Decorator for timing and counting requests to the API
    """

    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            starttime = time()

            def record_timing():
                totaltime = int((time() - starttime) * 1000)
                metrics.timing(f"{prefix}.timing", totaltime, tags=[f"fn:{f.__name__}"])

            try:
                resp = f(*args, **kwargs)
            except EmailDeliveryError:
                record_timing()
                raise

            record_timing()
            return resp

        return wrapped

    return decorator
