# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
TIME_ZONE = "UTC"

CLINIC = {
    "BUSINESS_START_HOUR": 8,
    "BUSINESS_END_HOUR": 18,
    "DEFAULT_APPOINTMENT_MINUTES": 60,
    "PATIENT_UNDO_WINDOW_SECONDS": 300,
    "NOTIFY_BY_EMAIL": True,
}

# caplog listens on the root logger
LOGGING["loggers"]["clinic_core"]["propagate"] = True
