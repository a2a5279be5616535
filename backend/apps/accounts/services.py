"""
Account services - the email OTP flow, current-user resolution and sign-out.

Functions raise AuthError subclasses; apps.accounts.api translates them into
the result envelope. None of these touch WebAuthn fields.
"""

from dataclasses import dataclass

from django.conf import settings
from django.db import IntegrityError
from django.http import HttpRequest, HttpResponse, HttpResponseRedirect

from apps.accounts.models import Account, AuthMethod
from apps.accounts.sessions import (
    SessionKind,
    clear_session_cookies,
    cookie_name,
    read_session,
    set_session_cookie,
)
from apps.accounts.store import IdentityStore, get_identity_store
from apps.accounts.token_issuer import IssuedSession, TokenIssuer, get_token_issuer
from apps.core.exceptions import AuthError, BackendError
from apps.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a sign-in lookup. account_id is None when no account matches."""

    account_id: str | None
    has_passkey: bool


def send_email_otp(email: str, issuer: TokenIssuer | None = None) -> str:
    """
    Dispatch a fresh one-time code, whether or not an account row exists.

    Returns:
        The account id the code is bound to
    """
    issuer = issuer or get_token_issuer()
    return issuer.send_email_token(email)


def create_account(
    full_name: str,
    email: str,
    store: IdentityStore | None = None,
    issuer: TokenIssuer | None = None,
) -> str:
    """
    Sign up: always send an OTP, create the account row only if it is missing.

    Idempotent on email - repeated calls return the same account id and never
    create a second row.
    """
    store = store or get_identity_store()
    existing = store.find_by_email(email)
    account_id = send_email_otp(email, issuer=issuer)

    if existing is not None:
        logger.info("account_exists", account_id=existing.account_id)
        return account_id

    try:
        store.create(
            account_id=account_id,
            email=email,
            full_name=full_name,
            avatar=settings.DEFAULT_AVATAR_URL,
            auth_method=AuthMethod.OTP,
            has_passkey=False,
            passkey_count=0,
        )
    except IntegrityError:
        # Concurrent sign-up with the same email won the race
        logger.info("account_create_raced", account_id=account_id)
    else:
        logger.info("account_created", account_id=account_id)

    return account_id


def sign_in_user(
    email: str,
    store: IdentityStore | None = None,
    issuer: TokenIssuer | None = None,
) -> SignInResult:
    """
    Sign in: send a fresh OTP to a known account.

    Unknown emails are not an error; the result carries account_id=None and
    no code is sent.
    """
    store = store or get_identity_store()
    account = store.find_by_email(email)
    if account is None:
        logger.info("sign_in_unknown_email")
        return SignInResult(account_id=None, has_passkey=False)

    send_email_otp(email, issuer=issuer)
    return SignInResult(account_id=account.account_id, has_passkey=account.has_passkey)


def verify_secret(
    account_id: str,
    code: str,
    store: IdentityStore | None = None,
    issuer: TokenIssuer | None = None,
) -> IssuedSession:
    """
    Exchange a one-time code for a native session.

    The caller sets the primary cookie to the returned secret.

    Raises:
        InvalidCredentialError: Wrong or expired code
        BackendError: Identity platform failure
    """
    store = store or get_identity_store()
    issuer = issuer or get_token_issuer()

    session = issuer.exchange_token(account_id, code)
    try:
        store.update(account_id, auth_method=AuthMethod.OTP)
    except BackendError as e:
        # The session is already issued and the code spent
        logger.warning("auth_method_update_failed", account_id=account_id, error=e.message)
    logger.info("otp_verified", account_id=account_id, session_id=session.session_id)
    return session


def create_passkey_session(response: HttpResponse, account_id: str) -> str:
    """
    Open a passkey session by setting the passkey cookie to the account id.

    Does not create a native identity-platform session.
    """
    set_session_cookie(response, SessionKind.PASSKEY, account_id)
    logger.info("passkey_session_created", account_id=account_id)
    return account_id


def get_current_account(
    request: HttpRequest,
    store: IdentityStore | None = None,
    issuer: TokenIssuer | None = None,
) -> Account | None:
    """
    Resolve the signed-in account from the session cookies.

    Passkey cookie first, then the native session. Any failure along either
    path means "no current user".
    """
    session = read_session(request)
    if session is None:
        return None

    account_id = session.resolve(issuer)
    if account_id is None:
        return None

    store = store or get_identity_store()
    try:
        return store.find_by_account_id(account_id)
    except AuthError as e:
        logger.warning("current_account_lookup_failed", kind=str(session.kind), error=e.message)
        return None


def sign_out(request: HttpRequest, issuer: TokenIssuer | None = None) -> HttpResponseRedirect:
    """
    Sign out of both trust paths.

    Revoking the native session is best effort; both cookies are deleted and
    the redirect to the entry page is returned no matter what failed.
    """
    response = HttpResponseRedirect(settings.AUTH_ENTRY_URL)
    try:
        secret = request.COOKIES.get(cookie_name(SessionKind.BACKEND))
        if secret:
            (issuer or get_token_issuer()).revoke_session(secret)
            logger.info("backend_session_revoked")
    except AuthError as e:
        logger.warning("session_revoke_failed", error=e.message)
    finally:
        clear_session_cookies(response)
    return response
