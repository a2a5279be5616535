"""
Tests for the identity store gateway.
"""

from unittest.mock import patch

import pytest
from django.db import DatabaseError, IntegrityError
from django.db.models import F

from apps.accounts.models import Account
from apps.accounts.store import IdentityStore
from apps.core.exceptions import BackendError
from tests.accounts.factories import AccountFactory


@pytest.mark.django_db
class TestLookups:
    def test_find_by_email(self, store: IdentityStore):
        account = AccountFactory.create(email="ada@example.com")

        assert store.find_by_email("ada@example.com") == account

    def test_find_by_email_is_exact_match(self, store: IdentityStore):
        AccountFactory.create(email="ada@example.com")

        assert store.find_by_email("ada@example") is None
        assert store.find_by_email("da@example.com") is None

    def test_find_by_account_id_missing_returns_none(self, store: IdentityStore):
        assert store.find_by_account_id("user-test-missing") is None

    def test_database_failure_is_backend_error(self, store: IdentityStore):
        with patch.object(Account.objects, "filter", side_effect=DatabaseError("down")):
            with pytest.raises(BackendError):
                store.find_by_email("ada@example.com")


@pytest.mark.django_db
class TestCreate:
    def test_create(self, store: IdentityStore):
        account = store.create(account_id="user-test-new", email="new@example.com", full_name="New")

        assert Account.objects.get(account_id="user-test-new") == account

    def test_duplicate_email_raises_integrity_error(self, store: IdentityStore):
        AccountFactory.create(email="dup@example.com")

        with pytest.raises(IntegrityError):
            store.create(account_id="user-test-other", email="dup@example.com")


@pytest.mark.django_db
class TestUpdate:
    def test_partial_update(self, store: IdentityStore):
        account = AccountFactory.create(full_name="Before")

        store.update(account.account_id, full_name="After")

        account.refresh_from_db()
        assert account.full_name == "After"

    def test_update_with_f_expression(self, store: IdentityStore):
        account = AccountFactory.create(passkey_count=2)

        store.update(account.account_id, passkey_count=F("passkey_count") + 1)

        account.refresh_from_db()
        assert account.passkey_count == 3

    def test_update_bumps_updated_at(self, store: IdentityStore):
        account = AccountFactory.create()
        before = account.updated_at

        store.update(account.account_id, full_name="Changed")

        account.refresh_from_db()
        assert account.updated_at >= before

    def test_update_unknown_account_is_noop(self, store: IdentityStore):
        store.update("user-test-missing", full_name="Ghost")

        assert not Account.objects.filter(full_name="Ghost").exists()


@pytest.mark.django_db
class TestConsumeChallenge:
    def test_consumes_matching_challenge(self, store: IdentityStore):
        account = AccountFactory.create(current_challenge="Y2hhbGxlbmdl")

        assert store.consume_challenge(account.account_id, "current_challenge", "Y2hhbGxlbmdl")

        account.refresh_from_db()
        assert account.current_challenge is None

    def test_second_consume_fails(self, store: IdentityStore):
        account = AccountFactory.create(current_auth_challenge="Y2hhbGxlbmdl")

        assert store.consume_challenge(
            account.account_id, "current_auth_challenge", "Y2hhbGxlbmdl"
        )
        assert not store.consume_challenge(
            account.account_id, "current_auth_challenge", "Y2hhbGxlbmdl"
        )

    def test_replaced_challenge_is_not_consumed(self, store: IdentityStore):
        account = AccountFactory.create(current_challenge="bmV3ZXI")

        assert not store.consume_challenge(account.account_id, "current_challenge", "b2xkZXI")

        account.refresh_from_db()
        assert account.current_challenge == "bmV3ZXI"
