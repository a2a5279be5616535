"""
Hosted passkey login.

An alternate passkey path that lets the identity platform run the WebAuthn
ceremony against credentials it stores itself. Success yields a native
session, so the caller sets the primary session cookie, not the passkey
cookie. The locally stored credential, counter and challenges are never read
or written here.
"""

import json
from typing import Any

from apps.accounts.models import AuthMethod
from apps.accounts.store import IdentityStore, get_identity_store
from apps.accounts.token_issuer import IssuedSession, TokenIssuer, get_token_issuer
from apps.core.exceptions import BackendError
from apps.core.logging import get_logger
from apps.passkeys.schemas import AuthenticationOptions, AuthenticationResponse
from apps.passkeys.services import RelyingParty, configured_relying_party

logger = get_logger(__name__)


class HostedPasskeyLogin:
    def __init__(
        self,
        relying_party: RelyingParty,
        issuer: TokenIssuer | None = None,
        store: IdentityStore | None = None,
    ) -> None:
        self.relying_party = relying_party
        self.issuer = issuer if issuer is not None else get_token_issuer()
        self.store = store if store is not None else get_identity_store()

    def begin(self, account_id: str | None = None) -> dict[str, Any]:
        """Start a hosted login; returns request options for navigator.credentials.get()."""
        options_json = self.issuer.webauthn_authenticate_start(
            domain=self.relying_party.id, account_id=account_id
        )
        return AuthenticationOptions.model_validate(json.loads(options_json)).to_json()

    def finish(self, credential: AuthenticationResponse) -> IssuedSession:
        """
        Finish a hosted login.

        Raises:
            InvalidCredentialError: The platform rejected the assertion
            BackendError: The platform could not be reached
        """
        session = self.issuer.webauthn_authenticate(json.dumps(credential.to_credential()))
        try:
            # No-op when the platform user has no local account row
            self.store.update(session.account_id, auth_method=AuthMethod.PASSKEY)
        except BackendError as e:
            logger.warning(
                "auth_method_update_failed", account_id=session.account_id, error=e.message
            )
        logger.info("hosted_passkey_authenticated", account_id=session.account_id)
        return session


def get_hosted_login() -> HostedPasskeyLogin:
    """Get a HostedPasskeyLogin bound to the configured relying party."""
    return HostedPasskeyLogin(configured_relying_party())
