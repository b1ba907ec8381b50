"""
Django settings for the civic complaints backend.

Every deployment-specific value is read from the environment so the same
module serves development, tests and production:

=============================  ===========================================
``DJANGO_SECRET_KEY``          Signing key (a development key otherwise).
``DJANGO_DEBUG``               ``1`` / ``true`` enables debug mode.
``DJANGO_ALLOWED_HOSTS``       Comma-separated host names.
``DJANGO_DB_PATH``             SQLite file (``db.sqlite3`` beside manage.py).
``DJANGO_LOG_LEVEL``           Root level of the project loggers.
``CIVIC_ENTITY_STORE``         Dotted path of the ``EntityStore`` backend.
``CIVIC_POLL_INTERVAL_SECONDS``  Notification polling cadence.
``CIVIC_FETCH_TIMEOUT_SECONDS``  Upper bound of one notification fetch.
=============================  ===========================================
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY",
    "django-insecure-civic-complaints-development-key",
)

DEBUG = _env_bool("DJANGO_DEBUG", default=True)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    # Local
    "accounts",
    "complaints",
    "core",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"


# Database

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Authentication

AUTH_USER_MODEL = "accounts.User"

AUTHENTICATION_BACKENDS = [
    "accounts.backends.MultiFieldAuthBackend",
    "django.contrib.auth.backends.ModelBackend",
]

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
]


# Internationalization

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"


# ── Django REST Framework ──────────────────────────────────────────

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "core.domain.exception_handler.domain_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=60),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Civic Complaints API",
    "DESCRIPTION": "Complaint filing, administrator status updates and citizen notifications.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# ── Complaint lifecycle & notifications ────────────────────────────

CIVIC_ENTITY_STORE = os.environ.get(
    "CIVIC_ENTITY_STORE",
    "core.domain.store.DjangoEntityStore",
)

# None keeps the permissive behaviour (administrators may set any status
# from any status).  Example of a stricter workflow:
#   {"pending": ["in_progress"], "in_progress": ["resolved"], "resolved": ["in_progress"]}
COMPLAINT_ALLOWED_TRANSITIONS = None

CIVIC_NOTIFICATIONS = {
    "POLL_INTERVAL_SECONDS": float(os.environ.get("CIVIC_POLL_INTERVAL_SECONDS", "10")),
    "FETCH_TIMEOUT_SECONDS": float(os.environ.get("CIVIC_FETCH_TIMEOUT_SECONDS", "30")),
}

# Lifetime of the signed token returned at registration.
ACCOUNT_VERIFICATION_MAX_AGE_SECONDS = int(
    os.environ.get("ACCOUNT_VERIFICATION_MAX_AGE_SECONDS", str(3 * 24 * 3600))
)


# ── Logging ────────────────────────────────────────────────────────

LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "accounts": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "complaints": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
