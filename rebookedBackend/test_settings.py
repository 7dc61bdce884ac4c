import os

# Provide a SECRET_KEY before importing settings so validation passes
os.environ.setdefault("SECRET_KEY", "django-insecure-test-key-for-unit-tests-only")

from .settings import *  # noqa: F403


TESTING = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
    }
}

# No external services in tests
INFRASTRUCTURE["EMAIL_BACKEND_TYPE"] = "mock"  # noqa: F405
INFRASTRUCTURE["PAYMENT_PROVIDER"] = "mock"  # noqa: F405
INFRASTRUCTURE["COURIER_BACKEND"] = "rates"  # noqa: F405
INFRASTRUCTURE["EVENT_BUS_BACKEND"] = "memory"  # noqa: F405

PAYSTACK_SECRET_KEY = "sk_test_mock_key"
COURIER_GUY_API_KEY = ""
FASTWAY_API_KEY = ""

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Enable SessionAuthentication for tests to support client.force_login()
REST_FRAMEWORK["DEFAULT_AUTHENTICATION_CLASSES"].append(  # noqa: F405
    "rest_framework.authentication.SessionAuthentication"
)
