"""
Tests for the Stytch-backed token issuer.
"""

from unittest.mock import MagicMock

import pytest
from stytch.core.response_base import StytchError, StytchErrorDetails

from apps.accounts.token_issuer import IssuedSession, TokenIssuer
from apps.core.exceptions import BackendError, InvalidCredentialError


def stytch_error(status_code: int, error_type: str = "error") -> StytchError:
    return StytchError(
        StytchErrorDetails(
            status_code=status_code,
            request_id="req-123",
            error_type=error_type,
            error_message=f"{error_type} happened",
            error_url="https://stytch.com/docs",
        )
    )


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.otps.email.login_or_create.return_value = MagicMock(
        user_id="user-test-0001", email_id="email-test-0001", user_created=True
    )
    client.users.get.return_value = MagicMock(emails=[MagicMock(email_id="email-test-0001")])
    client.otps.authenticate.return_value = MagicMock(
        user_id="user-test-0001",
        session_token="session-secret-0001",
        session=MagicMock(session_id="session-test-0001"),
    )
    return client


@pytest.fixture
def issuer(client, settings) -> TokenIssuer:
    settings.STYTCH_SESSION_DURATION_MINUTES = 60
    return TokenIssuer(client=client)


class TestSendEmailToken:
    def test_returns_platform_user_id(self, issuer, client):
        assert issuer.send_email_token("ada@example.com") == "user-test-0001"
        client.otps.email.login_or_create.assert_called_once_with(email="ada@example.com")

    def test_platform_error_is_backend_error(self, issuer, client):
        client.otps.email.login_or_create.side_effect = stytch_error(429, "too_many_requests")

        with pytest.raises(BackendError):
            issuer.send_email_token("ada@example.com")


class TestExchangeToken:
    def test_exchanges_code_for_session(self, issuer, client):
        session = issuer.exchange_token("user-test-0001", "123456")

        assert session == IssuedSession(
            session_id="session-test-0001",
            secret="session-secret-0001",
            account_id="user-test-0001",
        )
        client.users.get.assert_called_once_with(user_id="user-test-0001")
        client.otps.authenticate.assert_called_once_with(
            method_id="email-test-0001",
            code="123456",
            session_duration_minutes=60,
        )

    def test_wrong_code_is_invalid_credential(self, issuer, client):
        client.otps.authenticate.side_effect = stytch_error(401, "otp_code_not_found")

        with pytest.raises(InvalidCredentialError, match="Invalid or expired verification code"):
            issuer.exchange_token("user-test-0001", "000000")

    def test_unknown_user_is_invalid_credential(self, issuer, client):
        client.users.get.side_effect = stytch_error(404, "user_not_found")

        with pytest.raises(InvalidCredentialError):
            issuer.exchange_token("user-test-missing", "123456")
        client.otps.authenticate.assert_not_called()

    def test_user_without_email_is_invalid_credential(self, issuer, client):
        client.users.get.return_value = MagicMock(emails=[])

        with pytest.raises(InvalidCredentialError):
            issuer.exchange_token("user-test-0001", "123456")

    def test_server_error_is_backend_error(self, issuer, client):
        client.otps.authenticate.side_effect = stytch_error(500, "internal_server_error")

        with pytest.raises(BackendError):
            issuer.exchange_token("user-test-0001", "123456")

    def test_transport_error_is_backend_error(self, issuer, client):
        client.otps.authenticate.side_effect = ConnectionError("reset")

        with pytest.raises(BackendError):
            issuer.exchange_token("user-test-0001", "123456")


class TestSessions:
    def test_authenticate_session_returns_subject(self, issuer, client):
        client.sessions.authenticate.return_value = MagicMock(
            session=MagicMock(user_id="user-test-0001")
        )

        assert issuer.authenticate_session("session-secret-0001") == "user-test-0001"

    def test_expired_session_returns_none(self, issuer, client):
        client.sessions.authenticate.side_effect = stytch_error(404, "session_not_found")

        assert issuer.authenticate_session("session-secret-old") is None

    def test_authenticate_session_outage_raises(self, issuer, client):
        client.sessions.authenticate.side_effect = stytch_error(503, "unavailable")

        with pytest.raises(BackendError):
            issuer.authenticate_session("session-secret-0001")

    def test_revoke_session(self, issuer, client):
        issuer.revoke_session("session-secret-0001")

        client.sessions.revoke.assert_called_once_with(session_token="session-secret-0001")


class TestHostedWebAuthn:
    def test_authenticate_start_passes_user_when_given(self, issuer, client):
        client.webauthn.authenticate_start.return_value = MagicMock(
            public_key_credential_request_options='{"challenge": "abc"}'
        )

        options = issuer.webauthn_authenticate_start(domain="localhost", account_id="user-test-0001")

        assert options == '{"challenge": "abc"}'
        client.webauthn.authenticate_start.assert_called_once_with(
            domain="localhost",
            return_passkey_credential_options=True,
            user_id="user-test-0001",
        )

    def test_authenticate_opens_session(self, issuer, client):
        client.webauthn.authenticate.return_value = MagicMock(
            user_id="user-test-0001",
            session_token="session-secret-0002",
            session=MagicMock(session_id="session-test-0002"),
        )

        session = issuer.webauthn_authenticate('{"id": "abc"}')

        assert session.secret == "session-secret-0002"
        assert session.account_id == "user-test-0001"

    def test_rejected_assertion_is_invalid_credential(self, issuer, client):
        client.webauthn.authenticate.side_effect = stytch_error(401, "unauthorized_credentials")

        with pytest.raises(InvalidCredentialError, match="Passkey authentication failed"):
            issuer.webauthn_authenticate('{"id": "abc"}')
