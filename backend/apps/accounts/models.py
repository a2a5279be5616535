"""
Accounts models - the identity record shared by the OTP and passkey paths.
"""

from django.db import models


class AuthMethod(models.TextChoices):
    """Last successful authentication method (informational only)."""

    OTP = "otp", "Email OTP"
    PASSKEY = "passkey", "Passkey"


class Account(models.Model):
    """
    One record per human identity.

    account_id is issued by the identity platform on the first OTP dispatch
    and is the correlation key for both trust paths. Passkey material is
    stored as base64url text; a single credential is active at a time and
    re-enrollment overwrites it.
    """

    account_id = models.CharField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="Identity platform user id, e.g. 'user-test-xxx'",
    )
    email = models.EmailField(unique=True, db_index=True)

    # Profile
    full_name = models.CharField(max_length=255, blank=True)
    avatar = models.URLField(max_length=500, blank=True)

    auth_method = models.CharField(
        max_length=10,
        choices=AuthMethod.choices,
        default=AuthMethod.OTP,
    )

    # WebAuthn credential (single-credential model)
    has_passkey = models.BooleanField(default=False)
    passkey_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of successful passkey enrollments",
    )
    credential_id = models.TextField(
        blank=True,
        default="",
        help_text="Base64url credential id from the authenticator",
    )
    credential_public_key = models.TextField(
        blank=True,
        default="",
        help_text="Base64url COSE public key",
    )
    counter = models.PositiveBigIntegerField(
        default=0,
        help_text="Signature counter for replay detection",
    )

    # Outstanding ceremony challenges (cleared once consumed)
    current_challenge = models.CharField(max_length=255, null=True, blank=True)
    current_auth_challenge = models.CharField(max_length=255, null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.account_id})"

    @property
    def has_credential(self) -> bool:
        """Check if credential material is on file."""
        return bool(self.credential_id and self.credential_public_key)
