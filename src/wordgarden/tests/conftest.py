"""Test configuration."""
import os
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).resolve().parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from wordgarden.config import ensure_directories
from wordgarden.models.base import SessionLocal, drop_db, init_db
from wordgarden.services.blob_store import BlobStore


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment and a clean database before each test."""
    ensure_directories()
    init_db()

    yield

    # Drop everything so the next test starts empty
    drop_db()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def blob_store(db: Session) -> BlobStore:
    """Blob store for a single device profile."""
    return BlobStore(db, namespace="phone")
