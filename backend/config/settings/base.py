"""
Base Django settings for the auth service.

Shared configuration for all environments.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

from apps.core.logging import configure_logging


class Settings(BaseSettings):
    """Environment-based configuration using pydantic-settings."""

    SECRET_KEY: str = "django-insecure-change-me-in-production"
    DEBUG: bool = False
    ALLOWED_HOSTS: list[str] = []
    DATABASE_NAME: str = "auth"
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: str = "5432"

    # Stytch (token issuer and native sessions)
    STYTCH_PROJECT_ID: str = ""
    STYTCH_SECRET: str = ""
    STYTCH_SESSION_DURATION_MINUTES: int = 60 * 24 * 7

    # WebAuthn relying party
    WEBAUTHN_RP_ID: str = "localhost"
    WEBAUTHN_RP_NAME: str = "My Localhost Machine"
    WEBAUTHN_ORIGIN: str = "http://localhost:3000"
    WEBAUTHN_TIMEOUT_MS: int = 60_000

    # Session cookies
    PRIMARY_SESSION_COOKIE: str = "backend-session"
    PASSKEY_SESSION_COOKIE: str = "app-session"
    AUTH_ENTRY_URL: str = "/auth"

    DEFAULT_AVATAR_URL: str = "https://img.freepik.com/free-psd/3d-illustration-person-with-sunglasses_23-2149436188.jpg"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = settings.SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = settings.DEBUG

ALLOWED_HOSTS = settings.ALLOWED_HOSTS

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # Local apps
    "apps.core",
    "apps.accounts",
    "apps.passkeys",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "apps.core.middleware.CorrelationIdMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": settings.DATABASE_NAME,
        "USER": settings.DATABASE_USER,
        "PASSWORD": settings.DATABASE_PASSWORD,
        "HOST": settings.DATABASE_HOST,
        "PORT": settings.DATABASE_PORT,
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Identity platform
STYTCH_PROJECT_ID = settings.STYTCH_PROJECT_ID
STYTCH_SECRET = settings.STYTCH_SECRET
STYTCH_SESSION_DURATION_MINUTES = settings.STYTCH_SESSION_DURATION_MINUTES

# WebAuthn relying party (injected into PasskeyService by get_passkey_service)
WEBAUTHN_RP_ID = settings.WEBAUTHN_RP_ID
WEBAUTHN_RP_NAME = settings.WEBAUTHN_RP_NAME
WEBAUTHN_ORIGIN = settings.WEBAUTHN_ORIGIN
WEBAUTHN_TIMEOUT_MS = settings.WEBAUTHN_TIMEOUT_MS

# Session cookies - always HttpOnly, SameSite=Strict, Secure, path /
PRIMARY_SESSION_COOKIE = settings.PRIMARY_SESSION_COOKIE
PASSKEY_SESSION_COOKIE = settings.PASSKEY_SESSION_COOKIE
AUTH_ENTRY_URL = settings.AUTH_ENTRY_URL

DEFAULT_AVATAR_URL = settings.DEFAULT_AVATAR_URL

configure_logging(json_format=settings.LOG_JSON, log_level=settings.LOG_LEVEL)
