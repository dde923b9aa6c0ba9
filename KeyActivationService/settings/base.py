"""
Base Django settings for KeyActivationService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from datetime import timedelta
from pathlib import Path

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-k3y-act1vat10n-s3rv1ce-l0cal-d3v3l0pm3nt-0nly"
)

DEBUG = False

ALLOWED_HOSTS = []

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    # Third party
    "rest_framework",
    # Local apps
    "core",
    "keys",
    "activations",
    "api",
]

# The key store is a JSON file; no relational database is used.
DATABASES = {}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

# Key store
KEY_STORE_PATH = os.environ.get("KEY_STORE_PATH", str(BASE_DIR / "keys.json"))
KEY_STORE_LOCK_TIMEOUT_SECONDS = float(os.environ.get("KEY_STORE_LOCK_TIMEOUT_SECONDS", "5"))
KEY_STORE_WRITE_RETRIES = int(os.environ.get("KEY_STORE_WRITE_RETRIES", "3"))

# Integrity signing; falls back to SECRET_KEY when unset
KEY_SIGNING_SECRET = os.environ.get("KEY_SIGNING_SECRET", "")

# Key generation and limits
KEY_CODE_LENGTH = int(os.environ.get("KEY_CODE_LENGTH", "12"))
KEY_CODE_PREFIX = os.environ.get("KEY_CODE_PREFIX", "")
KEY_MAX_DURATION_DAYS = int(os.environ.get("KEY_MAX_DURATION_DAYS", "365"))
KEY_BULK_CREATE_LIMIT = int(os.environ.get("KEY_BULK_CREATE_LIMIT", "100"))

# Minimum seconds between verifications of one key (0 disables the guard)
KEY_MIN_VERIFY_INTERVAL_SECONDS = float(os.environ.get("KEY_MIN_VERIFY_INTERVAL_SECONDS", "0"))

# Expiry sweep
KEY_SWEEP_INTERVAL_SECONDS = float(os.environ.get("KEY_SWEEP_INTERVAL_SECONDS", "60"))

# Admin credential; empty means no caller is ever treated as admin
KEY_ADMIN_PASSWORD = os.environ.get("KEY_ADMIN_PASSWORD", "")

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", None)
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "sweep-expired-keys": {
        "task": "core.tasks.sweep_expired_keys_task",
        "schedule": timedelta(seconds=KEY_SWEEP_INTERVAL_SECONDS),
    },
}

# Observability
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "production"))
