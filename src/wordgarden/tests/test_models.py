"""Tests for the database layer."""
import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wordgarden.models.base import create_db_engine
from wordgarden.models.models import CloudSnapshot


def test_sqlite_engine_enforces_foreign_keys() -> None:
    engine = create_db_engine("sqlite://")
    try:
        with engine.connect() as connection:
            assert connection.execute(text("PRAGMA foreign_keys")).scalar() == 1
    finally:
        engine.dispose()


def test_snapshot_requires_existing_account(db: Session) -> None:
    db.add(CloudSnapshot(account_id=12345, payload="{}"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
