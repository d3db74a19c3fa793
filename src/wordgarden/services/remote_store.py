"""Cloud storage for account snapshots."""
import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordgarden.errors import NetworkUnavailable, NotAuthenticated
from wordgarden.models.models import Account, CloudSnapshot
from wordgarden.models.snapshot_models import Snapshot

logger = logging.getLogger(__name__)


class RemoteStore(ABC):
    """Where an account's snapshot lives in the cloud."""

    def __init__(self):
        self.is_connected = True

    def set_connected(self, connected: bool) -> None:
        """Update the connectivity flag reported by the network layer."""
        if connected != self.is_connected:
            logger.info("Connectivity changed: %s", "online" if connected else "offline")
        self.is_connected = connected

    @abstractmethod
    async def fetch_remote_snapshot(self, identity: str) -> Snapshot:
        """Fetch the stored snapshot, or an empty one if nothing was uploaded yet."""

    @abstractmethod
    async def write_remote_snapshot(self, identity: str, snapshot: Snapshot) -> None:
        """Replace the stored snapshot."""


class DatabaseRemoteStore(RemoteStore):
    """Remote store keeping one JSON document per account in a SQL database.

    The queries run synchronously on the shared session and never yield to
    the event loop, so the sync timeout cannot interrupt them. A slow
    database blocks the caller until the query returns. Stores backed by a
    real network client await their I/O and are bounded by the timeout.
    """

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        super().__init__()
        self.db = db

    def _get_account(self, identity: str) -> Account:
        account = self.db.query(Account).filter(Account.uid == identity).first()
        if account is None:
            raise NotAuthenticated(f"No account for identity {identity}")
        return account

    async def fetch_remote_snapshot(self, identity: str) -> Snapshot:
        try:
            account = self._get_account(identity)
            row = (
                self.db.query(CloudSnapshot)
                .filter(CloudSnapshot.account_id == account.id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NetworkUnavailable(f"Failed to fetch snapshot: {e}", cause=e) from e

        if row is None:
            logger.debug("No remote snapshot for %s yet", identity)
            return Snapshot()
        return Snapshot.from_json(row.payload)

    async def write_remote_snapshot(self, identity: str, snapshot: Snapshot) -> None:
        payload = snapshot.to_json()
        try:
            account = self._get_account(identity)
            row = (
                self.db.query(CloudSnapshot)
                .filter(CloudSnapshot.account_id == account.id)
                .first()
            )
            if row is None:
                self.db.add(CloudSnapshot(account_id=account.id, payload=payload))
            else:
                row.payload = payload
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NetworkUnavailable(f"Failed to write snapshot: {e}", cause=e) from e
        logger.debug("Stored remote snapshot for %s (%d bytes)", identity, len(payload))
