"""Main application object wiring the services together."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from wordgarden.config import ensure_directories, settings
from wordgarden.models.base import SessionLocal, init_db
from wordgarden.monitoring import start_monitoring
from wordgarden.services.account_service import AccountService
from wordgarden.services.blob_store import BlobStore
from wordgarden.services.local_store import LocalSnapshotStore
from wordgarden.services.remote_store import DatabaseRemoteStore, RemoteStore
from wordgarden.services.sync_service import SyncService
from wordgarden.services.tree_service import TreeService
from wordgarden.services.word_storage import WordStorage

IDENTITY_KEY = "signed_in_uid"


class WordGardenApp:
    """Owns the database session and one instance of every service."""

    def __init__(self, profile: str = "default", remote_store: Optional[RemoteStore] = None):
        """Initialize the application for one local device profile."""
        self.profile = profile
        self._remote_store = remote_store
        self.db: Optional[Session] = None
        self.blob_store: Optional[BlobStore] = None
        self.word_storage: Optional[WordStorage] = None
        self.tree_service: Optional[TreeService] = None
        self.account_service: Optional[AccountService] = None
        self.remote_store: Optional[RemoteStore] = None
        self.sync_service: Optional[SyncService] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Open the database and build the services."""
        if self.running:
            return

        ensure_directories()
        init_db()
        self.db = SessionLocal()
        self.logger.debug("Database initialized")

        self.blob_store = BlobStore(self.db, namespace=self.profile)
        self.word_storage = WordStorage(self.blob_store)
        self.tree_service = TreeService(self.blob_store)
        self.account_service = AccountService(self.db)
        self.remote_store = self._remote_store or DatabaseRemoteStore(self.db)
        self.sync_service = SyncService(
            LocalSnapshotStore(self.word_storage, self.tree_service),
            self.remote_store,
            self.account_service,
        )

        # Restore the previous sign-in for this profile
        uid = self.blob_store.get(IDENTITY_KEY)
        if uid and self.account_service.sign_in_by_uid(uid) is None:
            self.logger.warning("Stored account %s no longer exists", uid)
            self.blob_store.delete(IDENTITY_KEY)

        if settings.sync.metrics_port:
            start_monitoring(settings.sync.metrics_port)
            self.logger.info("Metrics server listening on port %d", settings.sync.metrics_port)

        self.running = True

    def sign_in(self, email: str, display_name: Optional[str] = None) -> str:
        account = self.account_service.sign_in(email, display_name)
        self.blob_store.set(IDENTITY_KEY, account.uid)
        self.word_storage.add_log_entry("Signed in to cloud sync")
        return account.uid

    def sign_out(self) -> None:
        self.account_service.sign_out()
        self.blob_store.delete(IDENTITY_KEY)

    def stop(self) -> None:
        """Close the database session."""
        if not self.running:
            return

        if self.db:
            self.db.close()
            self.db = None
            self.logger.debug("Database session closed")

        self.sync_service = None
        self.running = False

    def __enter__(self) -> "WordGardenApp":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
