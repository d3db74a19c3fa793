"""Database engine, session factory and declarative base."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from wordgarden.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for the given URL; SQLite connections enforce foreign keys."""
    db_engine = create_engine(url, echo=echo)
    if db_engine.dialect.name == "sqlite":
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


engine = create_db_engine(settings.database.url, echo=settings.database.echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """Creation and last-update times, stored as UTC."""
    created_at = Column(DateTime(timezone=True), default=_utc_now)
    updated_at = Column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now)


def init_db() -> None:
    """Create any missing tables."""
    # Register models on the metadata before creating tables
    import wordgarden.models.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_db() -> None:
    """Drop every table and close pooled connections."""
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
