from django.conf import settings
from django.urls import include, path
from django.views.generic import TemplateView

from watchman import views as watchman_views

from bulletin.news.api import api, newsletters_router

api.add_router("api/v1/newsletters/", newsletters_router)

urlpatterns = [
    path("", TemplateView.as_view(template_name="home.html"), name="home"),
    path("healthz/", watchman_views.ping, name="watchman.ping"),
    path("readiness/", watchman_views.status, name="watchman.status"),
    path("", api.urls),
    path("", include("bulletin.accounts.urls")),
    path("", include("bulletin.news.urls")),
]

if settings.UNITTEST:
    # Added to help test the 500 metrics in unit tests.
    from django.views import defaults

    urlpatterns.extend(
        [
            path("500/", defaults.server_error),
        ]
    )
