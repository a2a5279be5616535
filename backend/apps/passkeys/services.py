"""
Passkey (WebAuthn) service layer.

Handles passkey registration and authentication using the webauthn library.
Challenges live on the account row (one outstanding registration challenge
and one outstanding authentication challenge per account) and are consumed
with a compare-and-clear update, so each challenge verifies at most once and
is gone after the attempt whatever its outcome.
"""

import json
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.db.models import F
from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import options_to_json
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorSelectionCriteria,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from apps.accounts.models import Account, AuthMethod
from apps.accounts.store import ChallengeField, IdentityStore, get_identity_store
from apps.core.encoding import decode_text, encode_bytes
from apps.core.exceptions import (
    AccountNotFoundError,
    ChallengeMissingError,
    CredentialNotEnrolledError,
    InvalidCredentialError,
)
from apps.core.logging import get_logger
from apps.passkeys.schemas import (
    AuthenticationOptions,
    AuthenticationResponse,
    RegistrationOptions,
    RegistrationResponse,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RelyingParty:
    """Relying-party identity the ceremonies are bound to."""

    id: str
    name: str
    origin: str
    timeout_ms: int = 60000


def counter_advanced(stored: int, reported: int) -> bool:
    """
    Check a reported signature counter against the stored one.

    Authenticators that do not implement counters always report 0; that is
    accepted only while the stored counter is 0 as well.
    """
    if stored == 0 and reported == 0:
        return True
    return reported > stored


class PasskeyService:
    """
    Service for WebAuthn passkey operations.

    Handles registration and authentication ceremonies and credential storage
    on the account row. Sessions are opened by the caller after a successful
    verification.
    """

    def __init__(self, relying_party: RelyingParty, store: IdentityStore | None = None) -> None:
        self.relying_party = relying_party
        self.store = store if store is not None else get_identity_store()

    # --- Registration ---

    def generate_registration_options(self, account_id: str) -> dict[str, Any]:
        """
        Generate options for passkey registration.

        Args:
            account_id: The account registering a passkey

        Returns:
            PublicKeyCredentialCreationOptions JSON for navigator.credentials.create()

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        account = self.store.find_by_account_id(account_id)
        if account is None:
            raise AccountNotFoundError("User not found for WebAuthn registration")

        options = generate_registration_options(
            rp_id=self.relying_party.id,
            rp_name=self.relying_party.name,
            user_id=account.account_id.encode(),
            user_name=account.email,
            user_display_name=account.full_name or account.email,
            timeout=self.relying_party.timeout_ms,
            attestation=AttestationConveyancePreference.NONE,
            authenticator_selection=AuthenticatorSelectionCriteria(
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
        )

        # A new request replaces any outstanding registration challenge
        self.store.update(account_id, current_challenge=encode_bytes(options.challenge))
        logger.info("passkey_registration_options_issued", account_id=account_id)

        return RegistrationOptions.model_validate(json.loads(options_to_json(options))).to_json()

    def verify_registration(self, account_id: str, response: RegistrationResponse) -> None:
        """
        Verify a registration response and store the credential.

        Raises:
            AccountNotFoundError: If the account does not exist
            ChallengeMissingError: If no registration challenge is outstanding
            InvalidCredentialError: If the attestation does not verify
        """
        account = self.store.find_by_account_id(account_id)
        if account is None:
            raise AccountNotFoundError("User not found for WebAuthn verification")

        challenge = self._consume(account, "current_challenge", "No registration challenge found for user")

        try:
            verification = verify_registration_response(
                credential=response.to_credential(),
                expected_challenge=decode_text(challenge, "challenge"),
                expected_rp_id=self.relying_party.id,
                expected_origin=self.relying_party.origin,
            )
        except Exception as e:
            logger.warning("passkey_registration_rejected", account_id=account_id, error=str(e))
            raise InvalidCredentialError("WebAuthn registration verification failed") from e

        if not verification.credential_id or not verification.credential_public_key:
            raise InvalidCredentialError("No credential info returned from verification")

        # Re-enrollment overwrites the single stored credential
        self.store.update(
            account_id,
            credential_id=encode_bytes(verification.credential_id),
            credential_public_key=encode_bytes(verification.credential_public_key),
            counter=verification.sign_count,
            has_passkey=True,
            auth_method=AuthMethod.PASSKEY,
            passkey_count=F("passkey_count") + 1,
        )
        logger.info("passkey_registered", account_id=account_id)

    # --- Authentication ---

    def generate_authentication_options(self, account_id: str) -> dict[str, Any]:
        """
        Generate options for passkey authentication.

        Nothing is written unless the account exists and holds a credential.

        Raises:
            AccountNotFoundError: If the account does not exist
            CredentialNotEnrolledError: If the account has no passkey
        """
        account = self.store.find_by_account_id(account_id)
        if account is None:
            raise AccountNotFoundError("User not found for WebAuthn login")
        if not account.has_passkey or not account.has_credential:
            raise CredentialNotEnrolledError("User does not have a registered WebAuthn credential")

        options = generate_authentication_options(
            rp_id=self.relying_party.id,
            timeout=self.relying_party.timeout_ms,
            allow_credentials=[
                PublicKeyCredentialDescriptor(id=decode_text(account.credential_id, "credential_id"))
            ],
            user_verification=UserVerificationRequirement.PREFERRED,
        )

        self.store.update(account_id, current_auth_challenge=encode_bytes(options.challenge))
        logger.info("passkey_login_options_issued", account_id=account_id)

        return AuthenticationOptions.model_validate(json.loads(options_to_json(options))).to_json()

    def verify_authentication(self, account_id: str, response: AuthenticationResponse) -> bool:
        """
        Verify an authentication response.

        Returns:
            True if the assertion verified and the counter advanced; False for
            any cryptographic failure or counter regression (counter unchanged)

        Raises:
            AccountNotFoundError: If the account does not exist
            ChallengeMissingError: If no authentication challenge is outstanding
            CredentialNotEnrolledError: If the account has no stored credential
        """
        account = self.store.find_by_account_id(account_id)
        if account is None:
            raise AccountNotFoundError("User not found for WebAuthn login verification")
        if not account.current_auth_challenge:
            raise ChallengeMissingError("No auth challenge stored for user")
        if not account.has_credential:
            raise CredentialNotEnrolledError("No stored WebAuthn credential for user")

        challenge = self._consume(account, "current_auth_challenge", "No auth challenge stored for user")

        if response.raw_id.rstrip("=") != account.credential_id.rstrip("="):
            logger.warning("passkey_unknown_credential", account_id=account_id)
            return False

        try:
            verification = verify_authentication_response(
                credential=response.to_credential(),
                expected_challenge=decode_text(challenge, "challenge"),
                expected_rp_id=self.relying_party.id,
                expected_origin=self.relying_party.origin,
                credential_public_key=decode_text(
                    account.credential_public_key, "credential_public_key"
                ),
                credential_current_sign_count=account.counter,
            )
        except Exception as e:
            logger.warning("passkey_assertion_rejected", account_id=account_id, error=str(e))
            return False

        if not counter_advanced(account.counter, verification.new_sign_count):
            logger.warning(
                "passkey_counter_regression",
                account_id=account_id,
                stored_counter=account.counter,
                reported_counter=verification.new_sign_count,
            )
            return False

        self.store.update(
            account_id,
            counter=verification.new_sign_count,
            auth_method=AuthMethod.PASSKEY,
        )
        logger.info("passkey_authenticated", account_id=account_id)
        return True

    # --- Helpers ---

    def _consume(self, account: Account, field: ChallengeField, missing_message: str) -> str:
        """
        Take the outstanding challenge in ``field`` off the account.

        Raises:
            ChallengeMissingError: If there is none, or a concurrent
                verification consumed it first
        """
        challenge = getattr(account, field)
        if not challenge:
            raise ChallengeMissingError(missing_message)
        if not self.store.consume_challenge(account.account_id, field, challenge):
            logger.warning("passkey_challenge_already_consumed", account_id=account.account_id)
            raise ChallengeMissingError(missing_message)
        return challenge


def configured_relying_party() -> RelyingParty:
    """Build the relying party from settings."""
    return RelyingParty(
        id=settings.WEBAUTHN_RP_ID,
        name=settings.WEBAUTHN_RP_NAME,
        origin=settings.WEBAUTHN_ORIGIN,
        timeout_ms=settings.WEBAUTHN_TIMEOUT_MS,
    )


def get_passkey_service() -> PasskeyService:
    """Get a PasskeyService bound to the configured relying party."""
    return PasskeyService(configured_relying_party())
