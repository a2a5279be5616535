"""
Tests for ceremony payload models.
"""

import pytest
from pydantic import ValidationError

from apps.passkeys.schemas import (
    AuthenticationOptions,
    AuthenticationResponse,
    RegistrationOptions,
    RegistrationResponse,
)
from tests.passkeys.factories import AuthenticationCredentialFactory, RegistrationCredentialFactory


class TestCeremonyResponses:
    def test_registration_response_accepts_browser_json(self):
        payload = RegistrationCredentialFactory()

        response = RegistrationResponse.model_validate(payload)

        assert response.raw_id == payload["rawId"]
        assert response.response.attestation_object == payload["response"]["attestationObject"]

    def test_to_credential_keeps_wire_names(self):
        payload = RegistrationCredentialFactory()

        credential = RegistrationResponse.model_validate(payload).to_credential()

        assert credential["rawId"] == payload["rawId"]
        assert credential["response"]["clientDataJSON"] == payload["response"]["clientDataJSON"]
        assert credential["type"] == "public-key"

    def test_assertion_is_not_an_attestation(self):
        with pytest.raises(ValidationError):
            RegistrationResponse.model_validate(AuthenticationCredentialFactory())

    def test_attestation_is_not_an_assertion(self):
        with pytest.raises(ValidationError):
            AuthenticationResponse.model_validate(RegistrationCredentialFactory())

    @pytest.mark.parametrize("field", ["clientDataJSON", "authenticatorData", "signature"])
    def test_binary_fields_must_be_base64url(self, field):
        payload = AuthenticationCredentialFactory()
        payload["response"][field] = "not base64/+"

        with pytest.raises(ValidationError):
            AuthenticationResponse.model_validate(payload)

    def test_raw_id_must_be_base64url(self):
        with pytest.raises(ValidationError):
            RegistrationResponse.model_validate(RegistrationCredentialFactory(rawId="a b"))

    def test_wrong_type_rejected(self):
        with pytest.raises(ValidationError):
            AuthenticationResponse.model_validate(AuthenticationCredentialFactory(type="password"))

    def test_empty_user_handle_is_dropped(self):
        payload = AuthenticationCredentialFactory()
        payload["response"]["userHandle"] = ""

        credential = AuthenticationResponse.model_validate(payload).to_credential()

        assert "userHandle" not in credential["response"]


class TestCeremonyOptions:
    def test_registration_options_pass_through_extra_members(self):
        raw = {
            "challenge": "Y2hhbGxlbmdl",
            "rp": {"id": "localhost", "name": "Test"},
            "user": {"id": "dXNlcg", "name": "ada@example.com", "displayName": "Ada"},
            "pubKeyCredParams": [{"type": "public-key", "alg": -7}],
            "timeout": 60000,
            "attestation": "none",
            "excludeCredentials": [],
        }

        assert RegistrationOptions.model_validate(raw).to_json() == raw

    def test_authentication_options_pass_through(self):
        raw = {
            "challenge": "Y2hhbGxlbmdl",
            "rpId": "localhost",
            "allowCredentials": [{"id": "Y3JlZA", "type": "public-key"}],
            "userVerification": "preferred",
            "timeout": 60000,
        }

        assert AuthenticationOptions.model_validate(raw).to_json() == raw

    def test_registration_options_require_user(self):
        with pytest.raises(ValidationError):
            RegistrationOptions.model_validate({"challenge": "Y2g", "rp": {"name": "x"}, "pubKeyCredParams": []})
