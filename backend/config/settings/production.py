"""
Production settings.

Security-hardened settings for deployed environments.
All secrets are read from environment variables.
"""

from .base import *  # noqa: F403
from .base import settings

DEBUG = False
ALLOWED_HOSTS = settings.ALLOWED_HOSTS

SECURE_SSL_REDIRECT = True
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

if not settings.STYTCH_PROJECT_ID or not settings.STYTCH_SECRET:
    raise RuntimeError("STYTCH_PROJECT_ID and STYTCH_SECRET must be set in production")
