"""With these settings, tests run faster."""
from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="test-rtfeedback-secret-key",
)
TEST_RUNNER = "django.test.runner.DiscoverRunner"

# DATABASES
# ------------------------------------------------------------------------------
DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}

# PASSWORDS
# ------------------------------------------------------------------------------
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# HUEY
# ------------------------------------------------------------------------------
HUEY = {
    "huey_class": "huey.MemoryHuey",
    "name": "rtfeedback-test",
    "immediate": True,
}

# OPENAI
# ------------------------------------------------------------------------------
# Never reach the real API from tests
OPENAI_API_KEY = ""

# FEEDBACK
# ------------------------------------------------------------------------------
FEEDBACK_BACKGROUND_RETRY = False
FEEDBACK_PATTERN_MAX_AGE = None
FEEDBACK_INVALIDATE_ON_PROFILE_CHANGE = False
