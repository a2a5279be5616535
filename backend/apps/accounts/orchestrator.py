"""
Client-side orchestration of the two sign-in paths.

AuthOrchestrator drives the HTTP entry points the way the browser UI does:
sign-up with optional passkey enrollment, sign-in by OTP or passkey, OTP
verification and resend, current-user lookup and sign-out. Every step
reconciles into an AuthOutcome; transport and server failures never escape
as exceptions.

The WebAuthn ceremony itself is delegated to a PlatformAuthenticator (a
browser, a test double, a virtual authenticator).
"""

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

import httpx

from apps.core.logging import get_logger

logger = get_logger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")
DEFAULT_TIMEOUT = 10.0


class CeremonyCancelled(Exception):
    """The user dismissed or timed out the platform authenticator prompt."""

    pass


class PlatformAuthenticator(Protocol):
    def create(self, options: dict[str, Any]) -> dict[str, Any]:
        """Run navigator.credentials.create() and return the credential JSON."""
        ...

    def get(self, options: dict[str, Any]) -> dict[str, Any]:
        """Run navigator.credentials.get() and return the credential JSON."""
        ...


@dataclass
class Envelope:
    """A decoded ActionSuccess/ActionFailure body."""

    success: bool
    data: Any = None
    error: str = ""
    code: str = ""


class AuthClient:
    """
    HTTP client for the auth and passkey endpoints.

    Keeps a cookie jar across calls, so session cookies set by one call are
    sent with the next one just as a browser would. Session cookies are
    Secure, so base_url must be https for them to round-trip.
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "AuthClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Envelope:
        try:
            response = self.http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("auth_client_transport_failed", path=path, error=str(e))
            return Envelope(success=False, error="Service unavailable", code="backend_failure")

        if response.status_code == 422:
            return Envelope(success=False, error="Invalid request", code="invalid_credential")
        try:
            body = response.json()
        except ValueError:
            logger.warning("auth_client_bad_response", path=path, status_code=response.status_code)
            return Envelope(success=False, error="Unexpected server response", code="backend_failure")

        if body.get("success"):
            return Envelope(success=True, data=body.get("data"))
        return Envelope(success=False, error=body.get("error", ""), code=body.get("code", ""))

    # --- OTP ---

    def send_otp(self, email: str) -> Envelope:
        return self._request("POST", "/auth/otp/send", {"email": email})

    def sign_up(self, full_name: str, email: str) -> Envelope:
        return self._request("POST", "/auth/sign-up", {"full_name": full_name, "email": email})

    def sign_in(self, email: str) -> Envelope:
        return self._request("POST", "/auth/sign-in", {"email": email})

    def verify_otp(self, account_id: str, code: str) -> Envelope:
        return self._request("POST", "/auth/otp/verify", {"account_id": account_id, "code": code})

    # --- Passkeys ---

    def registration_options(self, account_id: str) -> Envelope:
        return self._request("POST", "/passkeys/register/options", {"account_id": account_id})

    def verify_registration(self, account_id: str, credential: dict[str, Any]) -> Envelope:
        return self._request(
            "POST",
            "/passkeys/register/verify",
            {"account_id": account_id, "credential": credential},
        )

    def login_options(self, account_id: str) -> Envelope:
        return self._request("POST", "/passkeys/login/options", {"account_id": account_id})

    def verify_login(self, account_id: str, credential: dict[str, Any]) -> Envelope:
        return self._request(
            "POST",
            "/passkeys/login/verify",
            {"account_id": account_id, "credential": credential},
        )

    def open_passkey_session(self, account_id: str, ticket: str) -> Envelope:
        return self._request(
            "POST", "/auth/passkey-session", {"account_id": account_id, "ticket": ticket}
        )

    def hosted_login_options(self, account_id: str | None = None) -> Envelope:
        return self._request("POST", "/passkeys/hosted/login/options", {"account_id": account_id})

    def hosted_login_verify(self, credential: dict[str, Any]) -> Envelope:
        """Finish a platform-hosted login; success sets the primary session cookie."""
        return self._request("POST", "/passkeys/hosted/login/verify", {"credential": credential})

    # --- Session ---

    def me(self) -> Envelope:
        return self._request("GET", "/auth/me")

    def sign_out(self) -> bool:
        """Sign out; True when the server answered with the entry-page redirect."""
        try:
            response = self.http.post("/auth/sign-out")
        except httpx.HTTPError as e:
            logger.warning("auth_client_transport_failed", path="/auth/sign-out", error=str(e))
            return False
        # Cookies deleted by the server are dropped from the jar by httpx
        return response.is_redirect


class OrchestratorState(StrEnum):
    IDLE = "idle"
    OTP_PENDING = "otp_pending"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class SignInMethod(StrEnum):
    OTP = "otp"
    PASSKEY = "passkey"


@dataclass(frozen=True)
class AuthOutcome:
    """What the user should be told after a step, and where the flow now is."""

    success: bool
    title: str
    description: str = ""
    state: OrchestratorState = OrchestratorState.IDLE


class _StepFailed(Exception):
    pass


@dataclass
class AuthOrchestrator:
    """
    State machine over the sign-up/sign-in flows.

    IDLE -> OTP_PENDING -> AUTHENTICATED, with FAILED reachable from any
    sign-in step. A passkey sign-in goes straight from IDLE to AUTHENTICATED;
    from OTP_PENDING, verify_with_passkey() can stand in for the code.
    """

    client: AuthClient
    authenticator: PlatformAuthenticator
    state: OrchestratorState = OrchestratorState.IDLE
    account_id: str | None = None
    email: str | None = None
    has_passkey: bool = False

    def _outcome(
        self, success: bool, title: str, description: str = "", state: OrchestratorState | None = None
    ) -> AuthOutcome:
        if state is not None:
            self.state = state
        outcome = AuthOutcome(success=success, title=title, description=description, state=self.state)
        logger.info("auth_flow_step", title=title, success=success, state=str(self.state))
        return outcome

    # --- Sign-up ---

    def sign_up(self, full_name: str, email: str, enroll_passkey: bool = True) -> AuthOutcome:
        """
        Create the account, then optionally enroll a passkey.

        A failed enrollment does not fail the sign-up; either way the user is
        sent on to sign in.
        """
        result = self.client.sign_up(full_name, email)
        if not result.success:
            return self._outcome(False, "Sign-up failed", result.error, OrchestratorState.FAILED)

        self.account_id = result.data["account_id"]
        self.email = email
        self.has_passkey = False

        if not enroll_passkey:
            return self._outcome(
                True,
                "Account created",
                "Check your email and sign in with the code.",
                OrchestratorState.IDLE,
            )

        try:
            self._register_passkey(self.account_id)
        except (_StepFailed, CeremonyCancelled) as e:
            logger.warning("passkey_enrollment_failed", account_id=self.account_id, error=str(e))
            return self._outcome(
                False,
                "Biometric enrollment failed",
                "Account created, but passkey enrollment failed. You can try again later or use OTP.",
                OrchestratorState.IDLE,
            )

        self.has_passkey = True
        return self._outcome(
            True,
            "Passkey registered",
            "Your biometrics were registered successfully. Please sign in.",
            OrchestratorState.IDLE,
        )

    # --- Sign-in ---

    def sign_in(self, email: str, method: SignInMethod = SignInMethod.OTP) -> AuthOutcome:
        """Look the account up, then continue with a passkey assertion or an emailed code."""
        result = self.client.sign_in(email)
        if not result.success:
            return self._outcome(False, "Sign-in failed", result.error, OrchestratorState.FAILED)

        account_id = result.data["account_id"]
        if not account_id:
            return self._outcome(False, "Sign-in failed", "User not found", OrchestratorState.FAILED)

        self.account_id = account_id
        self.email = email
        self.has_passkey = bool(result.data["has_passkey"])

        if method is SignInMethod.PASSKEY:
            return self._sign_in_with_passkey(account_id)

        return self._outcome(
            True, "OTP sent", "Check your email to complete sign-in.", OrchestratorState.OTP_PENDING
        )

    def _sign_in_with_passkey(self, account_id: str) -> AuthOutcome:
        if not self.has_passkey:
            return self._outcome(
                False,
                "No passkey registered",
                "You don't have a passkey for this account yet. "
                "Please sign in with OTP or register a passkey during sign-up.",
                OrchestratorState.FAILED,
            )
        try:
            self._login_with_passkey(account_id)
        except (_StepFailed, CeremonyCancelled) as e:
            logger.warning("passkey_sign_in_failed", account_id=account_id, error=str(e))
            return self._outcome(
                False,
                "Passkey sign-in failed",
                "We couldn't sign you in with your passkey. Try again or use OTP instead.",
                OrchestratorState.FAILED,
            )
        return self._outcome(
            True,
            "Signed in",
            "Signed in with passkey successfully.",
            OrchestratorState.AUTHENTICATED,
        )

    # --- OTP ---

    def verify_otp(self, code: str) -> AuthOutcome:
        """Exchange the emailed code for a session. A wrong code leaves the OTP step open."""
        if self.state is not OrchestratorState.OTP_PENDING or not self.account_id:
            return self._outcome(False, "OTP verification failed", "No sign-in in progress.")
        if not OTP_PATTERN.match(code or ""):
            return self._outcome(False, "Invalid OTP", "Please enter a valid 6-digit OTP")

        result = self.client.verify_otp(self.account_id, code)
        if not result.success:
            return self._outcome(False, "Invalid OTP", "Invalid OTP. Please try again.")
        return self._outcome(
            True, "OTP verified", "Signed in successfully.", OrchestratorState.AUTHENTICATED
        )

    def verify_with_passkey(self) -> AuthOutcome:
        """
        Finish a pending sign-in with a platform-hosted passkey instead of the code.

        Only valid while the OTP step is open.
        """
        if self.state is not OrchestratorState.OTP_PENDING or not self.account_id:
            return self._outcome(False, "Passkey authentication failed", "No sign-in in progress.")
        try:
            self._hosted_login(self.account_id)
        except (_StepFailed, CeremonyCancelled) as e:
            logger.warning("hosted_passkey_failed", account_id=self.account_id, error=str(e))
            return self._outcome(
                False,
                "Passkey authentication failed",
                "Passkey authentication failed. Please try again.",
                OrchestratorState.FAILED,
            )
        return self._outcome(
            True,
            "Passkey authenticated",
            "You are now signed in.",
            OrchestratorState.AUTHENTICATED,
        )

    def resend_otp(self) -> AuthOutcome:
        if not self.email:
            return self._outcome(False, "Resend failed", "No email address to send the code to.")
        result = self.client.send_otp(self.email)
        if not result.success:
            return self._outcome(False, "Resend failed", result.error)
        return self._outcome(True, "OTP resent", "Check your email for the new code.")

    # --- Session ---

    def current_user(self) -> dict[str, Any] | None:
        """The signed-in account, or None."""
        result = self.client.me()
        if not result.success:
            return None
        return result.data

    def sign_out(self) -> AuthOutcome:
        redirected = self.client.sign_out()
        self.account_id = None
        self.email = None
        self.has_passkey = False
        if not redirected:
            return self._outcome(False, "Sign-out failed", "Please try again.")
        return self._outcome(True, "Signed out", state=OrchestratorState.IDLE)

    # --- Passkey ceremonies ---

    def _register_passkey(self, account_id: str) -> None:
        options = self.client.registration_options(account_id)
        if not options.success:
            raise _StepFailed(options.error)

        credential = self.authenticator.create(options.data)

        verified = self.client.verify_registration(account_id, credential)
        if not verified.success:
            raise _StepFailed(verified.error)

    def _login_with_passkey(self, account_id: str) -> None:
        options = self.client.login_options(account_id)
        if not options.success:
            raise _StepFailed(options.error)

        credential = self.authenticator.get(options.data)

        verified = self.client.verify_login(account_id, credential)
        if not verified.success:
            raise _StepFailed(verified.error)
        if not verified.data["verified"]:
            raise _StepFailed("Passkey verification failed")

        session = self.client.open_passkey_session(account_id, verified.data["session_ticket"])
        if not session.success:
            raise _StepFailed(session.error)

    def _hosted_login(self, account_id: str) -> None:
        options = self.client.hosted_login_options(account_id)
        if not options.success:
            raise _StepFailed(options.error)

        credential = self.authenticator.get(options.data)

        verified = self.client.hosted_login_verify(credential)
        if not verified.success:
            raise _StepFailed(verified.error)
