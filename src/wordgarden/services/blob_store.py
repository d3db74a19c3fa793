"""Key-value blob persistence for local device state."""
import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from wordgarden.models.models import StoredBlob

logger = logging.getLogger(__name__)


class BlobStore:
    """Stores JSON values under string keys, scoped to one device namespace."""

    def __init__(self, db: Session, namespace: str = "default"):
        """Initialize the store with a database session."""
        self.db = db
        self.namespace = namespace

    def _get_row(self, key: str) -> Optional[StoredBlob]:
        return (
            self.db.query(StoredBlob)
            .filter(StoredBlob.namespace == self.namespace, StoredBlob.key == key)
            .first()
        )

    def get(self, key: str) -> Optional[str]:
        """Get the raw value stored under a key."""
        row = self._get_row(key)
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        """Store a raw value, replacing any previous one."""
        row = self._get_row(key)
        if row is None:
            row = StoredBlob(namespace=self.namespace, key=key, value=value)
            self.db.add(row)
        else:
            row.value = value
        self.db.commit()

    def delete(self, key: str) -> bool:
        row = self._get_row(key)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    def load_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON stored under a key, falling back to default if unreadable."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding unreadable blob %s/%s: %s", self.namespace, key, e)
            return default

    def save_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))
