"""
Test settings for KeyActivationService.
"""

import tempfile
from pathlib import Path

from .base import *  # noqa: F403, F401

DEBUG = False

SECRET_KEY = "test-secret-key"
KEY_SIGNING_SECRET = "test-signing-secret"
KEY_ADMIN_PASSWORD = "test-admin-password"

# Tests that need a real file override this with tmp_path
KEY_STORE_PATH = str(Path(tempfile.gettempdir()) / "key-activation-service-test" / "keys.json")
KEY_STORE_LOCK_TIMEOUT_SECONDS = 1.0

# Run Celery tasks inline
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Leave logging unconfigured so caplog sees every record
LOGGING_CONFIG = None
