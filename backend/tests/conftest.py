"""
Shared pytest fixtures for all tests.

Factories
---------
Import factories directly from their modules:

    from tests.accounts.factories import AccountFactory

Example usage:

    @pytest.mark.django_db
    def test_something():
        account = AccountFactory.create(email="test@example.com")
        enrolled = AccountFactory.create(with_passkey=True)
"""

from unittest.mock import MagicMock

import pytest
from django.test import Client, RequestFactory

from apps.accounts.store import IdentityStore
from apps.accounts.token_issuer import IssuedSession, TokenIssuer
from apps.passkeys.services import PasskeyService, RelyingParty


@pytest.fixture
def request_factory() -> RequestFactory:
    """
    Django request factory for unit testing views.

    Use this when you need to test view functions directly without going through
    the full HTTP stack. Useful for testing Django Ninja endpoints.
    """
    return RequestFactory()


@pytest.fixture
def api_client() -> Client:
    """
    Django test client for full HTTP request/response cycle tests.

    Session cookies are Secure, so pass secure=True on requests that must
    send them back.

    Example:
        def test_api_returns_200(api_client):
            response = api_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    return Client()


@pytest.fixture
def issued_session() -> IssuedSession:
    return IssuedSession(
        session_id="session-test-0001",
        secret="session-secret-0001",
        account_id="user-test-0001",
    )


@pytest.fixture
def token_issuer(issued_session) -> MagicMock:
    """
    TokenIssuer double with happy-path defaults.

    Override per test, e.g. ``token_issuer.exchange_token.side_effect = InvalidCredentialError(...)``.
    """
    issuer = MagicMock(spec=TokenIssuer)
    issuer.send_email_token.return_value = "user-test-0001"
    issuer.exchange_token.return_value = issued_session
    issuer.authenticate_session.return_value = "user-test-0001"
    issuer.revoke_session.return_value = None
    return issuer


@pytest.fixture
def relying_party() -> RelyingParty:
    return RelyingParty(
        id="localhost",
        name="Test Relying Party",
        origin="http://localhost:3000",
        timeout_ms=60000,
    )


@pytest.fixture
def store() -> IdentityStore:
    return IdentityStore()


@pytest.fixture
def passkey_service(relying_party, store) -> PasskeyService:
    return PasskeyService(relying_party, store=store)
