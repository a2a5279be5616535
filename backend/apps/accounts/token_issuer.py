"""
Token issuer - email one-time codes and native sessions via Stytch.

Wraps the Stytch SDK so the flows only see account ids, session secrets and
the error taxonomy from apps.core.exceptions. Stytch 4xx responses mean the
caller's input was rejected (invalid credential); anything else is a backend
failure.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from django.conf import settings
from stytch.core.response_base import StytchError

from apps.accounts.stytch_client import get_stytch_client
from apps.core.exceptions import BackendError, InvalidCredentialError
from apps.core.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class IssuedSession:
    """A native session created by the identity platform."""

    session_id: str
    secret: str
    account_id: str


def _is_client_error(error: StytchError) -> bool:
    status = error.details.status_code or 0
    return 400 <= status < 500


class TokenIssuer:
    """Email OTP dispatch, code exchange, and session lookup/revocation."""

    def __init__(self, client: Any = None) -> None:
        self.client = client if client is not None else get_stytch_client()
        self.session_duration_minutes = settings.STYTCH_SESSION_DURATION_MINUTES

    def _call(
        self,
        operation: str,
        func: Callable[..., R],
        invalid_message: str | None = None,
        **kwargs: Any,
    ) -> R:
        """
        Invoke a Stytch endpoint and translate failures.

        Args:
            operation: Name used in log events
            func: Bound SDK method
            invalid_message: If set, 4xx errors raise InvalidCredentialError with
                this message; otherwise every error is a BackendError
        """
        try:
            return func(**kwargs)
        except StytchError as e:
            if invalid_message is not None and _is_client_error(e):
                logger.info(
                    "stytch_request_rejected",
                    operation=operation,
                    error_type=e.details.error_type,
                )
                raise InvalidCredentialError(invalid_message) from e
            logger.error(
                "stytch_request_failed",
                operation=operation,
                error_type=e.details.error_type,
                error_message=e.details.error_message,
                status_code=e.details.status_code,
            )
            raise BackendError(f"Identity provider request failed ({operation})") from e
        except Exception as e:
            logger.exception("stytch_transport_failed", operation=operation)
            raise BackendError(f"Identity provider request failed ({operation})") from e

    # --- Email OTP ---

    def send_email_token(self, email: str) -> str:
        """
        Send a one-time code to ``email``, creating the platform user if needed.

        Returns:
            The platform user id, used as the permanent account_id
        """
        response = self._call(
            "otp_send",
            self.client.otps.email.login_or_create,
            email=email,
        )
        logger.info("otp_sent", account_id=response.user_id, user_created=response.user_created)
        return response.user_id

    def exchange_token(self, account_id: str, code: str) -> IssuedSession:
        """
        Exchange a one-time code for a native session.

        Raises:
            InvalidCredentialError: Wrong, expired or already used code
            BackendError: Stytch unavailable
        """
        invalid = "Invalid or expired verification code"
        user = self._call("user_get", self.client.users.get, invalid_message=invalid, user_id=account_id)
        if not user.emails:
            raise InvalidCredentialError(invalid)

        response = self._call(
            "otp_authenticate",
            self.client.otps.authenticate,
            invalid_message=invalid,
            method_id=user.emails[0].email_id,
            code=code,
            session_duration_minutes=self.session_duration_minutes,
        )
        return IssuedSession(
            session_id=response.session.session_id,
            secret=response.session_token,
            account_id=response.user_id,
        )

    # --- Sessions ---

    def authenticate_session(self, secret: str) -> str | None:
        """
        Resolve a session secret to its subject.

        Returns:
            The account id, or None if the session is expired/revoked/unknown
        """
        try:
            response = self._call(
                "session_authenticate",
                self.client.sessions.authenticate,
                invalid_message="Session is not valid",
                session_token=secret,
            )
        except InvalidCredentialError:
            return None
        return response.session.user_id

    def revoke_session(self, secret: str) -> None:
        """Revoke a native session."""
        self._call("session_revoke", self.client.sessions.revoke, session_token=secret)

    # --- Hosted WebAuthn ---

    def webauthn_authenticate_start(self, domain: str, account_id: str | None = None) -> str:
        """Begin a platform-hosted passkey login; returns request options JSON."""
        kwargs: dict[str, Any] = {"domain": domain, "return_passkey_credential_options": True}
        if account_id:
            kwargs["user_id"] = account_id
        response = self._call(
            "webauthn_authenticate_start",
            self.client.webauthn.authenticate_start,
            invalid_message="Passkey login could not be started",
            **kwargs,
        )
        return response.public_key_credential_request_options

    def webauthn_authenticate(self, public_key_credential: str) -> IssuedSession:
        """Complete a platform-hosted passkey login and open a native session."""
        response = self._call(
            "webauthn_authenticate",
            self.client.webauthn.authenticate,
            invalid_message="Passkey authentication failed",
            public_key_credential=public_key_credential,
            session_duration_minutes=self.session_duration_minutes,
        )
        return IssuedSession(
            session_id=response.session.session_id,
            secret=response.session_token,
            account_id=response.user_id,
        )


def get_token_issuer() -> TokenIssuer:
    """Get a TokenIssuer bound to the shared Stytch client."""
    return TokenIssuer()
