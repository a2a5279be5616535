"""
Identity store gateway.

The only code that reads or writes Account rows. Lookups are exact-match on
indexed fields; "no such account" is None, a failing database is BackendError.
"""

from typing import Any, Literal

from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from apps.accounts.models import Account
from apps.core.exceptions import BackendError
from apps.core.logging import get_logger

logger = get_logger(__name__)

ChallengeField = Literal["current_challenge", "current_auth_challenge"]


class IdentityStore:
    """Query/update interface over the Account table."""

    def find_by_email(self, email: str) -> Account | None:
        try:
            return Account.objects.filter(email=email).first()
        except DatabaseError as e:
            logger.exception("account_lookup_failed", field="email")
            raise BackendError("Failed to look up account") from e

    def find_by_account_id(self, account_id: str) -> Account | None:
        try:
            return Account.objects.filter(account_id=account_id).first()
        except DatabaseError as e:
            logger.exception("account_lookup_failed", field="account_id")
            raise BackendError("Failed to look up account") from e

    def create(self, **fields: Any) -> Account:
        """
        Create an account row.

        IntegrityError (duplicate email/account_id) is re-raised untouched so
        callers can resolve the race by re-reading.
        """
        try:
            return Account.objects.create(**fields)
        except IntegrityError:
            raise
        except DatabaseError as e:
            logger.exception("account_create_failed")
            raise BackendError("Failed to create account") from e

    def update(self, account_id: str, **fields: Any) -> None:
        """
        Apply a partial update.

        Values may be F() expressions, e.g. passkey_count=F("passkey_count") + 1.
        """
        try:
            Account.objects.filter(account_id=account_id).update(
                **fields, updated_at=timezone.now()
            )
        except DatabaseError as e:
            logger.exception("account_update_failed", account_id=account_id, fields=sorted(fields))
            raise BackendError("Failed to update account") from e

    def consume_challenge(self, account_id: str, field: ChallengeField, expected: str) -> bool:
        """
        Clear a challenge field only if it still holds ``expected``.

        Returns:
            True if this call consumed the challenge, False if it was already
            cleared or replaced by a newer one.
        """
        try:
            updated = Account.objects.filter(account_id=account_id, **{field: expected}).update(
                **{field: None}, updated_at=timezone.now()
            )
        except DatabaseError as e:
            logger.exception("challenge_consume_failed", account_id=account_id, field=field)
            raise BackendError("Failed to update account") from e
        return updated == 1


def get_identity_store() -> IdentityStore:
    """Get an IdentityStore instance."""
    return IdentityStore()
