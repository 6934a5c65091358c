import os

from decouple import config  # type: ignore
from dj_database_url import parse as db_url


BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def base_dir_join(*args):
    return os.path.join(BASE_DIR, *args)


SITE_ID = 1

DEBUG = True

ADMINS = (("Admin", "foo@example.com"),)

ALLOWED_HOSTS: list[str] = []

DATABASES = {
    "default": config(
        "DATABASE_URL", cast=db_url, default=f"sqlite:///{base_dir_join('db.sqlite3')}"
    ),
}
INTERNAL_INSTALLED_APPS = [
    "di_core",
    "recurrence",
]
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    *INTERNAL_INSTALLED_APPS,
]

# Modules whose @inject functions receive providers from di_core
DI_WIRED_MODULES = [
    "recurrence.services.dependencies",
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

ROOT_URLCONF = "business_os_api.urls"

WSGI_APPLICATION = "business_os_api.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [base_dir_join("templates")],
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

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True

STATIC_URL = "/static/"

# Recurrence engine
# Upper bound on occurrences produced by a single expansion, so a misconfigured
# rule always terminates.
RECURRENCE_HARD_CAP = config("RECURRENCE_HARD_CAP", cast=int, default=2000)
RECURRENCE_DEFAULT_MAX_OCCURRENCES = config(
    "RECURRENCE_DEFAULT_MAX_OCCURRENCES", cast=int, default=10
)
RECURRENCE_DEFAULT_MONTHS_AHEAD = config("RECURRENCE_DEFAULT_MONTHS_AHEAD", cast=int, default=3)
RECURRENCE_DB_RETRIES = config("RECURRENCE_DB_RETRIES", cast=int, default=3)
RECURRENCE_DB_RETRY_BASE_WAIT = config("RECURRENCE_DB_RETRY_BASE_WAIT", cast=float, default=0.1)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(levelname)-8s [%(asctime)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "": {"handlers": ["console"], "level": "INFO"},
        "recurrence": {
            "handlers": ["console"],
            "level": config("RECURRENCE_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
