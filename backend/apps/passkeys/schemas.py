"""
Pydantic schemas for passkey API endpoints.

Ceremony payloads are modelled per ceremony type: registration options and
attestation responses never share a model with authentication options and
assertion responses. Field aliases keep the WebAuthn JSON (camelCase) wire
format; binary members are base64url text.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from apps.core.encoding import ensure_base64url

# --- Ceremony options (server -> browser) ---


class RelyingPartyEntity(BaseModel):
    id: str | None = None
    name: str


class UserEntity(BaseModel):
    id: str
    name: str
    display_name: str = Field(alias="displayName")

    model_config = ConfigDict(populate_by_name=True)


class CredentialDescriptor(BaseModel):
    id: str
    type: Literal["public-key"] = "public-key"
    transports: list[str] | None = None

    model_config = ConfigDict(extra="allow")


class RegistrationOptions(BaseModel):
    """PublicKeyCredentialCreationOptions as produced by py_webauthn."""

    kind: Literal["registration"] = Field(default="registration", exclude=True)
    challenge: str
    rp: RelyingPartyEntity
    user: UserEntity
    pub_key_cred_params: list[dict[str, Any]] = Field(alias="pubKeyCredParams")
    timeout: int | None = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AuthenticationOptions(BaseModel):
    """PublicKeyCredentialRequestOptions as produced by py_webauthn."""

    kind: Literal["authentication"] = Field(default="authentication", exclude=True)
    challenge: str
    rp_id: str | None = Field(default=None, alias="rpId")
    allow_credentials: list[CredentialDescriptor] = Field(
        default_factory=list, alias="allowCredentials"
    )
    user_verification: str | None = Field(default=None, alias="userVerification")
    timeout: int | None = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# --- Ceremony responses (browser -> server) ---


class AttestationResponse(BaseModel):
    client_data_json: str = Field(alias="clientDataJSON")
    attestation_object: str = Field(alias="attestationObject")
    transports: list[str] | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("client_data_json", "attestation_object")
    @classmethod
    def _check_base64url(cls, value: str, info: ValidationInfo) -> str:
        return ensure_base64url(value, info.field_name)


class AssertionResponse(BaseModel):
    client_data_json: str = Field(alias="clientDataJSON")
    authenticator_data: str = Field(alias="authenticatorData")
    signature: str
    user_handle: str | None = Field(default=None, alias="userHandle")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("client_data_json", "authenticator_data", "signature")
    @classmethod
    def _check_base64url(cls, value: str, info: ValidationInfo) -> str:
        return ensure_base64url(value, info.field_name)

    @field_validator("user_handle")
    @classmethod
    def _check_user_handle(cls, value: str | None) -> str | None:
        if value in (None, ""):
            return None
        return ensure_base64url(value, "user_handle")


class _CredentialBase(BaseModel):
    id: str
    raw_id: str = Field(alias="rawId")
    type: Literal["public-key"] = "public-key"
    authenticator_attachment: str | None = Field(default=None, alias="authenticatorAttachment")
    client_extension_results: dict[str, Any] = Field(
        default_factory=dict, alias="clientExtensionResults"
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", "raw_id")
    @classmethod
    def _check_base64url(cls, value: str, info: ValidationInfo) -> str:
        return ensure_base64url(value, info.field_name)

    def to_credential(self) -> dict[str, Any]:
        """The credential in WebAuthn JSON form, as py_webauthn and Stytch expect it."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RegistrationResponse(_CredentialBase):
    """Result of navigator.credentials.create()."""

    response: AttestationResponse


class AuthenticationResponse(_CredentialBase):
    """Result of navigator.credentials.get()."""

    response: AssertionResponse


# --- Requests ---


class RegistrationOptionsRequest(BaseModel):
    """Request for passkey registration options."""

    account_id: str = Field(..., min_length=1)


class RegistrationVerifyRequest(BaseModel):
    """Request to verify a passkey registration."""

    account_id: str = Field(..., min_length=1)
    credential: RegistrationResponse = Field(
        description="Credential response from navigator.credentials.create()"
    )


class LoginOptionsRequest(BaseModel):
    """Request for passkey login options."""

    account_id: str = Field(..., min_length=1)


class LoginVerifyRequest(BaseModel):
    """Request to verify a passkey login."""

    account_id: str = Field(..., min_length=1)
    credential: AuthenticationResponse = Field(
        description="Credential response from navigator.credentials.get()"
    )


class HostedLoginOptionsRequest(BaseModel):
    """Request for platform-hosted passkey login options."""

    account_id: str | None = Field(
        default=None,
        description="Optional account id to restrict allowed credentials",
    )


class HostedLoginVerifyRequest(BaseModel):
    """Request to finish a platform-hosted passkey login."""

    credential: AuthenticationResponse


# --- Response data ---


class RegisteredData(BaseModel):
    """Registration verification payload."""

    verified: bool = True


class LoginVerifiedData(BaseModel):
    """
    Login verification payload.

    session_ticket is present only when verified is true; it must be passed
    to /auth/passkey-session to open the passkey session.
    """

    verified: bool
    session_ticket: str | None = None


class HostedSessionData(BaseModel):
    """Hosted login payload (the session secret travels only in the cookie)."""

    account_id: str
    session_id: str
