from .base import *


SECRET_KEY = "test"  # nosec

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

STATIC_ROOT = base_dir_join("staticfiles")

# Speed up password hashing
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Never sleep between database retries in tests
RECURRENCE_DB_RETRY_BASE_WAIT = 0

RECURRENCE_HARD_CAP = 500

LOGGING["loggers"]["recurrence"]["level"] = "WARNING"
