"""
Development settings for KeyActivationService.
"""

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Short sweep cycle for local work
KEY_SWEEP_INTERVAL_SECONDS = 10.0
CELERY_BEAT_SCHEDULE["sweep-expired-keys"]["schedule"] = timedelta(  # noqa: F405
    seconds=KEY_SWEEP_INTERVAL_SECONDS
)

LOGGING = get_logging_config("development")
