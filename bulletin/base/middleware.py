import time

from django.http import Http404
from django.utils.deprecation import MiddlewareMixin

from bulletin import metrics


class MetricsViewTimingMiddleware(MiddlewareMixin):
    """
    Send request timings to the metrics backend, tagged with the route name.

    e.g. `view:news.newsletters`, `view:accounts.login` or
    `view:api.v1:newsletters.publish`. Unnamed routes fall back to the dotted
    path of the view. Requests that match no route (404s) are not timed.
    """

    def process_view(self, request, view_func, view_args, view_kwargs):
        request._start_time = time.monotonic()

    def _record_timing(self, request, status_code):
        start_time = getattr(request, "_start_time", None)
        match = getattr(request, "resolver_match", None)
        if start_time is None or match is None:
            return
        # Only once per request, even when an exception becomes a response.
        del request._start_time

        metrics.timing(
            "view.timings",
            int((time.monotonic() - start_time) * 1000),
            tags=[
                f"view:{match.view_name}",
                f"method:{request.method}",
                f"status_code:{status_code}",
            ],
        )

    def process_response(self, request, response):
        self._record_timing(request, response.status_code)
        return response

    def process_exception(self, request, exception):
        if not isinstance(exception, Http404):
            self._record_timing(request, 500)
