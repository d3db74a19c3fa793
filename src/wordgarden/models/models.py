"""Database models for WordGarden."""
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from wordgarden.models.base import Base, TimestampMixin


class StoredBlob(Base, TimestampMixin):
    """Key-value JSON blob holding a piece of local device state."""

    __tablename__ = "stored_blobs"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_stored_blob_key"),)

    id = Column(Integer, primary_key=True)
    namespace = Column(String, nullable=False, default="default")  # one per device profile
    key = Column(String, nullable=False)  # e.g. "words", "tree"
    value = Column(Text, nullable=False)


class Account(Base, TimestampMixin):
    """Signed-in cloud account."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String, unique=True, nullable=False)  # identity used for sync
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    snapshot = relationship("CloudSnapshot", back_populates="account", uselist=False)
    sync_logs = relationship("SyncLog", back_populates="account")


class CloudSnapshot(Base, TimestampMixin):
    """Remote copy of an account's data, stored as one JSON document."""

    __tablename__ = "cloud_snapshots"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)
    payload = Column(Text, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="snapshot")


class SyncLog(Base, TimestampMixin):
    """Sync activity log model."""

    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    operation = Column(String, nullable=False)  # upload, download, sync
    status = Column(String, nullable=False)  # ok, failed, rejected
    message = Column(String, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="sync_logs")
