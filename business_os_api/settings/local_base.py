from .base import *


DEBUG = True

HOST = "http://localhost:8000"

SECRET_KEY = "secret"  # noqa: S105

STATIC_ROOT = base_dir_join("staticfiles")

AUTH_PASSWORD_VALIDATORS = []  # allow easy passwords only on local

LOGGING["loggers"]["recurrence"]["level"] = "DEBUG"
LOGGING["loggers"]["django.db.backends"] = {
    "handlers": ["console"],
    "level": config("DB_LOG_LEVEL", default="WARNING"),
    "propagate": False,
}
