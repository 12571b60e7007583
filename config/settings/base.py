"""Base settings to build other settings files upon."""
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve(strict=True).parent.parent.parent
APPS_DIR = BASE_DIR / "rtfeedback"
env = environ.Env()

READ_DOT_ENV_FILE = env.bool("DJANGO_READ_DOT_ENV_FILE", default=False)
if READ_DOT_ENV_FILE:
    env.read_env(str(BASE_DIR / ".env"))

# GENERAL
# ------------------------------------------------------------------------------
DEBUG = env.bool("DJANGO_DEBUG", False)
TIME_ZONE = "UTC"
LANGUAGE_CODE = "en-us"
USE_I18N = True
USE_TZ = True
SECRET_KEY = env("DJANGO_SECRET_KEY", default="")
ALLOWED_HOSTS = env.list("DJANGO_ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

# DATABASES
# ------------------------------------------------------------------------------
DATABASES = {"default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# URLS
# ------------------------------------------------------------------------------
ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# APPS
# ------------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.admin",
]
THIRD_PARTY_APPS = [
    "huey.contrib.djhuey",
]
LOCAL_APPS = [
    "rtfeedback.feedback",
]
INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# MIDDLEWARE
# ------------------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# STATIC
# ------------------------------------------------------------------------------
STATIC_ROOT = str(BASE_DIR / "staticfiles")
STATIC_URL = "/static/"

# TEMPLATES
# ------------------------------------------------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(APPS_DIR / "templates")],
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

# ADMIN
# ------------------------------------------------------------------------------
ADMIN_URL = "admin/"

# LOGGING
# ------------------------------------------------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(levelname)s %(asctime)s %(module)s %(process)d %(thread)d %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}

# HUEY
# ------------------------------------------------------------------------------
HUEY = {
    "huey_class": "huey.SqliteHuey",
    "name": "rtfeedback",
    "filename": env("HUEY_SQLITE_PATH", default=str(BASE_DIR / "huey.sqlite3")),
    "immediate": False,
}

# OPENAI
# ------------------------------------------------------------------------------
OPENAI_API_KEY = env("OPENAI_API_KEY", default="")
OPENAI_MODEL = env("OPENAI_MODEL", default="gpt-4o-mini")
OPENAI_API_URL = env("OPENAI_API_URL", default="https://api.openai.com/v1/chat/completions")
OPENAI_TEMPERATURE = env.float("OPENAI_TEMPERATURE", default=0.8)
OPENAI_MAX_TOKENS = env.int("OPENAI_MAX_TOKENS", default=2000)

# FEEDBACK
# ------------------------------------------------------------------------------
# Scenario classification thresholds (ms and accuracy percentage points)
FEEDBACK_RT_THRESHOLD_MS = 30
FEEDBACK_ACC_THRESHOLD = 5
FEEDBACK_LARGE_RT_THRESHOLD_MS = 80
FEEDBACK_LARGE_ACC_THRESHOLD = 10
# Generation boundary: seconds per attempt, extra attempts on transient failures
FEEDBACK_GENERATION_TIMEOUT = env.int("FEEDBACK_GENERATION_TIMEOUT", default=20)
FEEDBACK_GENERATION_RETRIES = 1
# Seconds a concurrent request waits for another request's in-flight generation
FEEDBACK_FLIGHT_WAIT_TIMEOUT = 60
# Cache policy: None keeps stored patterns until forced regeneration
FEEDBACK_PATTERN_MAX_AGE = env.int("FEEDBACK_PATTERN_MAX_AGE", default=None)
FEEDBACK_INVALIDATE_ON_PROFILE_CHANGE = env.bool("FEEDBACK_INVALIDATE_ON_PROFILE_CHANGE", default=False)
# Queue a background regeneration after answering with the fallback set
FEEDBACK_BACKGROUND_RETRY = env.bool("FEEDBACK_BACKGROUND_RETRY", default=True)
