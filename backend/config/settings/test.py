"""
Test settings.

SQLite in memory, fixed relying party, console logging.
"""

from apps.core.logging import configure_logging

from .base import *  # noqa: F403

DEBUG = False
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

STYTCH_PROJECT_ID = "project-test-00000000-0000-0000-0000-000000000000"
STYTCH_SECRET = "secret-test-placeholder"

WEBAUTHN_RP_ID = "localhost"
WEBAUTHN_RP_NAME = "Test Relying Party"
WEBAUTHN_ORIGIN = "http://localhost:3000"
WEBAUTHN_TIMEOUT_MS = 60_000

PRIMARY_SESSION_COOKIE = "backend-session"
PASSKEY_SESSION_COOKIE = "app-session"
AUTH_ENTRY_URL = "/auth"

configure_logging(json_format=False, log_level="WARNING")
