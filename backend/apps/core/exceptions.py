"""
Authentication error taxonomy.

Services raise these; API entry points translate them into the failure
envelope defined in apps.core.schemas. The ``code`` lets callers branch
without parsing messages.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable failure categories."""

    NOT_FOUND = "not_found"
    INVALID_CREDENTIAL = "invalid_credential"
    NO_CHALLENGE = "no_challenge"
    BACKEND_FAILURE = "backend_failure"


class AuthError(Exception):
    """Base exception for authentication flow errors."""

    code: ErrorCode = ErrorCode.BACKEND_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AccountNotFoundError(AuthError):
    """Raised when no account matches the given identifier."""

    code = ErrorCode.NOT_FOUND


class CredentialNotEnrolledError(AuthError):
    """Raised when the account has no passkey credential on file."""

    code = ErrorCode.NOT_FOUND


class ChallengeMissingError(AuthError):
    """Raised when a verification step finds no outstanding challenge."""

    code = ErrorCode.NO_CHALLENGE


class InvalidCredentialError(AuthError):
    """Raised for a wrong OTP code or a rejected WebAuthn response."""

    code = ErrorCode.INVALID_CREDENTIAL


class BackendError(AuthError):
    """
    Raised when the database or the identity platform itself fails.

    The message is safe to show; the original exception is chained for logs.
    """

    code = ErrorCode.BACKEND_FAILURE
