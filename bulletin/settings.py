import os
import platform
import socket
import struct
import sys
from pathlib import Path

import dj_database_url
import django_cache_url
import markus
import sentry_sdk
from everett.manager import ChoiceOf, ConfigManager, ConfigurationMissingError, ListOf
from sentry_processor import DesensitizationProcessor
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.logging import ignore_logger
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.rq import RqIntegration

# The `basic_config` manager searches in this order:
#   1. environment variables
#   2. .env file
#   3. `default` keyword argument
config = ConfigManager.basic_config()

# Application version.
VERSION = (0, 1)

# ROOT path of the project. A pathlib.Path object.
ROOT_PATH = Path(__file__).resolve().parents[1]
ROOT = str(ROOT_PATH)


def path(*args):
    return str(ROOT_PATH.joinpath(*args))


LOCAL_DEV = config("LOCAL_DEV", parser=bool, default="false")
DEBUG = config("DEBUG", parser=bool, default="false")
UNITTEST = config("UNITTEST", parser=bool, default="false")

# If we forget to set a `UNITTEST` env var by are running `pytest`, set it.
if sys.argv[0].endswith(("py.test", "pytest")) or "pytest" in sys.modules:
    UNITTEST = True

ADMINS = ()
MANAGERS = ADMINS
# avoids a warning from django
TEST_RUNNER = "django.test.runner.DiscoverRunner"

# Production uses PostgreSQL, but Sqlite should be sufficient for local development.
db_default_url = config("DATABASE_URL", default="sqlite:///bulletin.db")
DATABASES = {
    "default": dj_database_url.parse(db_default_url),
}
DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

# CACHE_URL and RQ_URL are derived from REDIS_URL.
RQ_URL = None
REDIS_URL = config("REDIS_URL", default="")
if REDIS_URL:
    REDIS_URL = REDIS_URL.rstrip("/0")
    # Use Redis for cache, sessions and rq.
    # Note: We save the URL in the environment so `config` can pull from it below.
    os.environ["CACHE_URL"] = f"{REDIS_URL}/{config('REDIS_CACHE_DB', default='1')}"
    RQ_URL = f"{REDIS_URL}/{config('REDIS_RQ_DB', default='2')}"

CACHES = {
    "default": config("CACHE_URL", parser=django_cache_url.parse, default="locmem://"),
}

ALLOWED_HOSTS = config(
    "ALLOWED_HOSTS",
    parser=ListOf(str, allow_empty=False),
    default="localhost,127.0.0.1,testserver",
)
USE_X_FORWARDED_HOST = True

SESSION_COOKIE_SECURE = config("SESSION_COOKIE_SECURE", parser=bool, default=str(not DEBUG))
SESSION_COOKIE_HTTPONLY = True
SESSION_ENGINE = config("SESSION_ENGINE", default="django.contrib.sessions.backends.cache")
CSRF_COOKIE_SECURE = config("CSRF_COOKIE_SECURE", parser=bool, default=str(not DEBUG))
# Flash messages live in a signed cookie so they survive the redirect after login and logout.
MESSAGE_STORAGE = "django.contrib.messages.storage.cookie.CookieStorage"

TIME_ZONE = "UTC"
USE_TZ = True
USE_I18N = False

SITE_URL = config("SITE_URL", default="http://localhost:8000")

STATIC_ROOT = path("static")
STATIC_URL = "/static/"

if UNITTEST:
    SECRET_KEY = "unittest-secret-key"
else:
    try:
        # Make this unique, and don't share it with anybody.
        SECRET_KEY = config("SECRET_KEY")
    except ConfigurationMissingError as exc:
        raise ValueError(
            "The SECRET_KEY environment variable is required. Move env-dist to .env if you want the defaults.",
        ) from exc

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

MIDDLEWARE = (
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "bulletin.base.middleware.MetricsViewTimingMiddleware",
)

ROOT_URLCONF = "bulletin.urls"

INSTALLED_APPS = (
    "bulletin.base",
    "bulletin.accounts",
    "bulletin.news",
    "watchman",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
)

# SecurityMiddleware settings
SECURE_HSTS_SECONDS = config("SECURE_HSTS_SECONDS", parser=int, default="0")
SECURE_HSTS_INCLUDE_SUBDOMAINS = False
SECURE_CONTENT_TYPE_NOSNIFF = config("SECURE_CONTENT_TYPE_NOSNIFF", parser=bool, default="true")
SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", parser=bool, default="false")
SECURE_REDIRECT_EXEMPT = [
    r"^healthz/$",
    r"^readiness/$",
]
if config("USE_SECURE_PROXY_HEADER", parser=bool, default=str(SECURE_SSL_REDIRECT)):
    SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# watchman
WATCHMAN_DISABLE_APM = True
WATCHMAN_CHECKS = (
    "watchman.checks.caches",
    "watchman.checks.databases",
)

LOGIN_URL = "/login/"
LOGIN_REDIRECT_URL = "/admin/dashboard/"

# Size of the thread pool that runs password hashing off the event loop.
BLOCKING_POOL_SIZE = config("BLOCKING_POOL_SIZE", parser=int, default="4")

# Idempotent newsletter publishing.
IDEMPOTENCY_POLL_INTERVAL = config("IDEMPOTENCY_POLL_INTERVAL", parser=float, default="0.1")
IDEMPOTENCY_WAIT_TIMEOUT = config("IDEMPOTENCY_WAIT_TIMEOUT", parser=float, default="30")
IDEMPOTENCY_RECORD_TTL_HOURS = config("IDEMPOTENCY_RECORD_TTL_HOURS", parser=int, default="48")

# Email delivery API (Postmark compatible).
EMAIL_CLIENT_BASE_URL = config("EMAIL_CLIENT_BASE_URL", default="http://localhost:8025")
EMAIL_CLIENT_SENDER = config("EMAIL_CLIENT_SENDER", default="newsletter@example.com")
EMAIL_CLIENT_AUTHORIZATION_TOKEN = config("EMAIL_CLIENT_AUTHORIZATION_TOKEN", default="") if not UNITTEST else "test"
EMAIL_CLIENT_TIMEOUT = config("EMAIL_CLIENT_TIMEOUT", parser=float, default="10")

# RQ configuration.
RQ_RESULT_TTL = config("RQ_RESULT_TTL", parser=int, default="0")  # Ignore results.
RQ_MAX_RETRY_DELAY = config("RQ_MAX_RETRY_DELAY", parser=int, default=str(34 * 60 * 60))  # 34 hours in seconds.
RQ_MAX_RETRIES = 0 if UNITTEST else config("RQ_MAX_RETRIES", parser=int, default="12")
RQ_IS_ASYNC = False if UNITTEST else config("RQ_IS_ASYNC", parser=bool, default="true")
RQ_DEFAULT_QUEUE = "testqueue" if UNITTEST else config("RQ_DEFAULT_QUEUE", default="") or None


# via http://stackoverflow.com/a/6556951/107114
def get_default_gateway_linux():
    """Read the default gateway directly from /proc."""
    try:
        with open("/proc/net/route") as fh:
            for line in fh:
                fields = line.strip().split()
                if fields[1] != "00000000" or not int(fields[3], 16) & 2:
                    continue

                return socket.inet_ntoa(struct.pack("<L", int(fields[2], 16)))
    except OSError:
        return "localhost"


HOSTNAME = platform.node()
CLUSTER_NAME = config("CLUSTER_NAME", default="")
K8S_NAMESPACE = config("K8S_NAMESPACE", default="")

# Data scrubbing before Sentry
# https://github.com/laiyongtao/sentry-processor
SENSITIVE_FIELDS_TO_MASK_ENTIRELY = [
    "current_password",
    "email",
    "html_content",
    "ip_address",
    "name",
    "new_password",
    "new_password_check",
    "password",
    "password_hash",
    "remote_addr",
    "remoteaddresschain",
    "subscription_token",
    "token",
    "username",
    "x-forwarded-for",
]

SENTRY_IGNORE_ERRORS = (
    BrokenPipeError,
    ConnectionResetError,
)


def before_send(event, hint):
    if hint and "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if isinstance(exc_value, SENTRY_IGNORE_ERRORS):
            return None

    processor = DesensitizationProcessor(
        with_default_keys=True,
        sensitive_keys=SENSITIVE_FIELDS_TO_MASK_ENTIRELY,
    )
    event = processor.process(event, hint)
    return event


if not UNITTEST:
    sentry_sdk.init(
        dsn=config("SENTRY_DSN", default=""),
        release=config("GIT_SHA", default=""),
        server_name=".".join(x for x in [K8S_NAMESPACE, CLUSTER_NAME, HOSTNAME] if x),
        integrations=[DjangoIntegration(signals_spans=False), RedisIntegration(), RqIntegration()],
        before_send=before_send,
    )

STATSD_HOST = config("STATSD_HOST", default=get_default_gateway_linux())
STATSD_PORT = config("STATSD_PORT", parser=int, default="8125")
STATSD_PREFIX = config("STATSD_PREFIX", default=K8S_NAMESPACE)

if LOCAL_DEV or UNITTEST:
    MARKUS_BACKENDS = [
        {"class": "markus.backends.logging.LoggingMetrics", "options": {"logger_name": "metrics"}},
    ]
else:
    MARKUS_BACKENDS = [
        {
            "class": "markus.backends.datadog.DatadogMetrics",
            "options": {
                "statsd_host": STATSD_HOST,
                "statsd_port": STATSD_PORT,
                "statsd_namespace": STATSD_PREFIX,
            },
        },
    ]

markus.configure(backends=MARKUS_BACKENDS)

LOG_LEVEL = config(
    "DJANGO_LOG_LEVEL",
    parser=ChoiceOf(
        str,
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    ),
    default="WARNING",
)
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "root": {
        "level": LOG_LEVEL,
        "handlers": ["console"],
    },
    "formatters": {
        "verbose": {"format": "%(levelname)s %(asctime)s %(module)s %(message)s"},
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "null": {"class": "logging.NullHandler"},
    },
    "loggers": {
        "django.db.backends": {
            "level": "ERROR",
            "handlers": ["console"],
            "propagate": False,
        },
        "metrics": {
            "level": "INFO" if LOCAL_DEV else "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    },
}

# DisallowedHost gets a lot of action thanks to scans/bots/scripts,
# but we need not take any action because it's already HTTP 400-ed.
# Note that we ignore at the Sentry client level

ignore_logger("django.security.DisallowedHost")
