"""
Production settings for KeyActivationService.
"""

import os

from .base import *  # noqa: F403, F401

DEBUG = False

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# Security settings
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# Secret key from environment
SECRET_KEY = os.environ.get("SECRET_KEY", SECRET_KEY)  # noqa: F405

# Key file on persistent storage
KEY_STORE_PATH = os.environ.get("KEY_STORE_PATH", "/var/lib/key-activation-service/keys.json")

# Logging in production
LOGGING["handlers"]["file"] = {  # noqa: F405
    "class": "logging.handlers.RotatingFileHandler",
    "filename": os.environ.get("LOG_FILE", "/var/log/key-activation-service/app.log"),
    "maxBytes": 1024 * 1024 * 10,  # 10 MB
    "backupCount": 10,
    "formatter": "json",
}
LOGGING["root"]["handlers"].append("file")  # noqa: F405
for _logger in LOGGING["loggers"].values():  # noqa: F405
    _logger["handlers"].append("file")
