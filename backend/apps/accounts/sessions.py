"""
Session cookies and the Session abstraction.

Two mutually exclusive cookies identify a signed-in browser:

- the primary cookie holds a native identity-platform session secret
  (set after OTP verification or a hosted passkey login);
- the passkey cookie holds the account id itself, signed with the Django
  secret key (set after our own WebAuthn assertion is verified).

Both use the same fixed attributes. Setting one never clears the other;
sign-out clears both.
"""

from dataclasses import dataclass
from enum import StrEnum

from django.conf import settings
from django.core.signing import BadSignature, TimestampSigner
from django.http import HttpRequest, HttpResponse

from apps.accounts.token_issuer import TokenIssuer, get_token_issuer
from apps.core.exceptions import AuthError
from apps.core.logging import get_logger

logger = get_logger(__name__)

PASSKEY_COOKIE_SALT = "apps.accounts.passkey-session"

COOKIE_PATH = "/"
COOKIE_SAMESITE = "Strict"


class SessionKind(StrEnum):
    """Which trust path produced the session."""

    BACKEND = "backend"
    PASSKEY = "passkey"


def cookie_name(kind: SessionKind) -> str:
    """Cookie name for a session kind (configurable in settings)."""
    if kind is SessionKind.PASSKEY:
        return settings.PASSKEY_SESSION_COOKIE
    return settings.PRIMARY_SESSION_COOKIE


def set_session_cookie(response: HttpResponse, kind: SessionKind, value: str) -> None:
    """Set the cookie for ``kind`` with HttpOnly, SameSite=Strict, Secure, path /."""
    attrs = {
        "path": COOKIE_PATH,
        "httponly": True,
        "samesite": COOKIE_SAMESITE,
        "secure": True,
    }
    if kind is SessionKind.PASSKEY:
        response.set_signed_cookie(cookie_name(kind), value, salt=PASSKEY_COOKIE_SALT, **attrs)
    else:
        response.set_cookie(cookie_name(kind), value, **attrs)


def clear_session_cookies(response: HttpResponse) -> None:
    """Delete both session cookies (no-op for cookies the browser does not hold)."""
    for kind in SessionKind:
        response.delete_cookie(cookie_name(kind), path=COOKIE_PATH, samesite=COOKIE_SAMESITE)


@dataclass(frozen=True)
class Session:
    """
    A session read from the request cookies.

    Attributes:
        kind: The trust path that produced it
        token: The account id (PASSKEY) or the native session secret (BACKEND)
    """

    kind: SessionKind
    token: str

    def resolve(self, issuer: TokenIssuer | None = None) -> str | None:
        """
        Resolve the session to an account id.

        Returns None when the session cannot be resolved for any reason.
        """
        if self.kind is SessionKind.PASSKEY:
            return self.token

        issuer = issuer or get_token_issuer()
        try:
            return issuer.authenticate_session(self.token)
        except AuthError as e:
            logger.warning("session_resolve_failed", kind=str(self.kind), error=e.message)
            return None


def read_session(request: HttpRequest) -> Session | None:
    """
    Read the active session from the request.

    The passkey cookie wins when both are present. A passkey cookie with a bad
    signature is treated as absent.
    """
    account_id = request.get_signed_cookie(
        cookie_name(SessionKind.PASSKEY),
        default=None,
        salt=PASSKEY_COOKIE_SALT,
    )
    if account_id:
        return Session(kind=SessionKind.PASSKEY, token=account_id)

    secret = request.COOKIES.get(cookie_name(SessionKind.BACKEND))
    if secret:
        return Session(kind=SessionKind.BACKEND, token=secret)
    return None


# --- Passkey session tickets ---

SESSION_TICKET_SALT = "apps.accounts.passkey-ticket"


def issue_session_ticket(account_id: str) -> str:
    """
    Sign a short-lived proof that a passkey assertion was just verified.

    The ticket must accompany the request that opens the passkey session.
    """
    return TimestampSigner(salt=SESSION_TICKET_SALT).sign(account_id)


def check_session_ticket(ticket: str, account_id: str) -> bool:
    """Check a ticket was issued for ``account_id`` within the ceremony timeout."""
    max_age = settings.WEBAUTHN_TIMEOUT_MS // 1000
    try:
        signed_account_id = TimestampSigner(salt=SESSION_TICKET_SALT).unsign(ticket, max_age=max_age)
    except BadSignature:
        return False
    return signed_account_id == account_id
