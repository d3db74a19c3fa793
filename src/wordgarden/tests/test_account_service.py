"""Tests for account service."""
import pytest
from faker import Faker
from sqlalchemy.orm import Session

from wordgarden.services.account_service import AccountService

fake = Faker()


@pytest.fixture
def account_service(db: Session) -> AccountService:
    """Create an account service instance."""
    return AccountService(db)


def test_get_or_create_account(account_service: AccountService) -> None:
    """Test account creation and retrieval."""
    email = fake.unique.email()
    account = account_service.get_or_create_account(email.upper(), display_name="Ana")

    assert account.email == email.lower()
    assert account.uid

    existing = account_service.get_or_create_account(email, display_name="Other")
    assert existing.id == account.id
    assert existing.display_name == "Ana"  # Should not change


def test_get_or_create_requires_email(account_service: AccountService) -> None:
    with pytest.raises(ValueError):
        account_service.get_or_create_account("  ")


def test_sign_in_and_out(account_service: AccountService) -> None:
    assert not account_service.is_logged_in
    assert account_service.current_identity() is None

    account = account_service.sign_in(fake.unique.email())
    assert account_service.is_logged_in
    assert account_service.current_identity() == account.uid

    account_service.sign_out()
    assert account_service.current_identity() is None


def test_sign_in_by_uid(account_service: AccountService) -> None:
    uid = account_service.get_or_create_account(fake.unique.email()).uid

    assert account_service.sign_in_by_uid(uid) is not None
    assert account_service.current_identity() == uid
    assert account_service.sign_in_by_uid("missing") is None
    assert not account_service.is_logged_in


def test_log_sync_activity(account_service: AccountService) -> None:
    account = account_service.get_or_create_account(fake.unique.email())

    account_service.log_sync_activity(account.uid, "upload", "failed", "offline")
    assert account.last_sync_at is None
    account_service.log_sync_activity(account.uid, "sync", "ok", "done")
    account_service.log_sync_activity("unknown", "sync", "ok", "ignored")

    logs = account_service.get_sync_logs(account.uid)
    assert [(log.operation, log.status) for log in logs] == [("sync", "ok"), ("upload", "failed")]
    assert account.last_sync_at is not None
