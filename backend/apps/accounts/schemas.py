"""
Auth API schemas - Pydantic models for request/response.
"""

from pydantic import BaseModel, EmailStr, Field

from apps.accounts.models import AuthMethod

# --- Request Schemas ---


class SendOTPRequest(BaseModel):
    """Request to (re)send an email one-time code."""

    email: EmailStr = Field(
        ...,
        description="Email address the code is sent to",
        examples=["user@example.com"],
    )


class SignUpRequest(BaseModel):
    """Request to create an account."""

    full_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name",
        examples=["Ada Lovelace"],
    )
    email: EmailStr = Field(..., examples=["user@example.com"])


class SignInRequest(BaseModel):
    """Request to start signing in."""

    email: EmailStr = Field(..., examples=["user@example.com"])


class VerifyOTPRequest(BaseModel):
    """Request to exchange a one-time code for a session."""

    account_id: str = Field(..., min_length=1, description="Account id returned by sign-up/sign-in")
    code: str = Field(
        ...,
        pattern=r"^\d{6}$",
        description="The 6-digit code from the email",
        examples=["123456"],
    )


class PasskeySessionRequest(BaseModel):
    """Request to open a passkey session after a verified assertion."""

    account_id: str = Field(..., min_length=1)
    ticket: str = Field(..., description="session_ticket returned by /passkeys/login/verify")


# --- Response data ---


class AccountIdData(BaseModel):
    """Account id payload."""

    account_id: str


class SignInData(BaseModel):
    """Sign-in lookup payload. account_id is null when no account matches."""

    account_id: str | None
    has_passkey: bool


class SessionData(BaseModel):
    """Native session payload (the secret travels only in the cookie)."""

    session_id: str


class AccountSchema(BaseModel):
    """Public view of an account."""

    account_id: str
    email: str
    full_name: str
    avatar: str
    auth_method: AuthMethod
    has_passkey: bool
    passkey_count: int

    model_config = {"from_attributes": True}
