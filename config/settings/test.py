"""
Settings used by the test suite.
"""
from .base import *  # noqa: F401,F403
from .base import BASE_DIR  # noqa: F401

SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

NOTIFICATIONS_ENABLED = True
SEND_SMS_ON_BOOKING = False
SEND_EMAIL_ON_BOOKING = True
NOTIFICATION_SINK = "physio.notifications.tests.sinks.RecordingSink"
