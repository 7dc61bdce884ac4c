"""
Django settings for rebookedBackend project.

All deployment specific values are read from the environment.
"""

import os
from datetime import timedelta
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY environment variable is required")

DEBUG = env_bool("DEBUG", False)
TESTING = False

ALLOWED_HOSTS = [host.strip() for host in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_celery_beat",
    "django_filters",
    # Local
    "authentication",
    "marketplace",
    "payment_system",
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

ROOT_URLCONF = "rebookedBackend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "rebookedBackend.wsgi.application"
ASGI_APPLICATION = "rebookedBackend.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "rebooked"),
        "USER": os.environ.get("DB_USER", "rebooked"),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "CONN_MAX_AGE": 60,
    }
}

AUTH_USER_MODEL = "authentication.CustomUser"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LANGUAGE_CODE = "en-za"
TIME_ZONE = "Africa/Johannesburg"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==============================================================================
# REST FRAMEWORK
# ==============================================================================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.environ.get("JWT_ACCESS_MINUTES", "60"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.environ.get("JWT_REFRESH_DAYS", "7"))),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "ReBooked Marketplace API",
    "DESCRIPTION": "Textbook marketplace: listings, checkout, Paystack payments, courier delivery and seller payouts.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

# ==============================================================================
# EMAIL
# ==============================================================================

EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "587"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = env_bool("EMAIL_USE_TLS", True)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "ReBooked Solutions <noreply@rebookedsolutions.co.za>")
SUPPORT_EMAIL = os.environ.get("SUPPORT_EMAIL", "support@rebookedsolutions.co.za")

FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

# ==============================================================================
# INFRASTRUCTURE
# ==============================================================================

INFRASTRUCTURE = {
    # "paystack" or "mock"; an empty PAYSTACK_SECRET_KEY always selects the mock gateway
    "PAYMENT_PROVIDER": os.environ.get("PAYMENT_PROVIDER", "paystack"),
    # "smtp" or "mock"
    "EMAIL_BACKEND_TYPE": os.environ.get("EMAIL_BACKEND_TYPE", "smtp"),
    # "live" queries carrier APIs and falls back to rate tables, "rates" uses rate tables only
    "COURIER_BACKEND": os.environ.get("COURIER_BACKEND", "live"),
    # "redis" or "memory"
    "EVENT_BUS_BACKEND": os.environ.get("EVENT_BUS_BACKEND", "redis"),
}

PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY", "")
PAYSTACK_PUBLIC_KEY = os.environ.get("PAYSTACK_PUBLIC_KEY", "")
PAYSTACK_BASE_URL = os.environ.get("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYSTACK_TIMEOUT_SECONDS = int(os.environ.get("PAYSTACK_TIMEOUT_SECONDS", "15"))

COURIER_GUY_API_KEY = os.environ.get("COURIER_GUY_API_KEY", "")
COURIER_GUY_BASE_URL = os.environ.get("COURIER_GUY_BASE_URL", "https://api.thecourierguy.co.za/v1")
FASTWAY_API_KEY = os.environ.get("FASTWAY_API_KEY", "")
FASTWAY_BASE_URL = os.environ.get("FASTWAY_BASE_URL", "https://sa.api.fastway.org/v3")
COURIER_TIMEOUT_SECONDS = int(os.environ.get("COURIER_TIMEOUT_SECONDS", "10"))

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

# ==============================================================================
# MARKETPLACE RULES
# ==============================================================================

CURRENCY = os.environ.get("CURRENCY", "ZAR")
PLATFORM_FEE_PERCENT = int(os.environ.get("PLATFORM_FEE_PERCENT", "10"))
COMMIT_WINDOW_HOURS = int(os.environ.get("COMMIT_WINDOW_HOURS", "48"))
COMMIT_REMINDER_HOURS = int(os.environ.get("COMMIT_REMINDER_HOURS", "24"))
COMMIT_REMINDER_INTERVAL_HOURS = int(os.environ.get("COMMIT_REMINDER_INTERVAL_HOURS", "12"))
COMMIT_URGENT_HOURS = int(os.environ.get("COMMIT_URGENT_HOURS", "2"))
DELIVERY_WINDOW_DAYS = int(os.environ.get("DELIVERY_WINDOW_DAYS", "7"))
COLLECTION_WINDOW_DAYS = int(os.environ.get("COLLECTION_WINDOW_DAYS", "7"))
COLLECTION_REMINDER_DAYS = int(os.environ.get("COLLECTION_REMINDER_DAYS", "6"))
PENDING_PAYMENT_TIMEOUT_HOURS = int(os.environ.get("PENDING_PAYMENT_TIMEOUT_HOURS", "24"))
PAYOUT_MAX_RETRIES = int(os.environ.get("PAYOUT_MAX_RETRIES", "3"))
REFUND_MAX_ATTEMPTS = int(os.environ.get("REFUND_MAX_ATTEMPTS", "9"))

# ==============================================================================
# CELERY
# ==============================================================================

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_TASK_ALWAYS_EAGER = False

# ==============================================================================
# OBSERVABILITY
# ==============================================================================

OTEL_SERVICE_NAME = os.environ.get("OTEL_SERVICE_NAME", "rebooked-backend")
OTEL_EXPORTER_OTLP_ENDPOINT = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
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
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "celery": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
