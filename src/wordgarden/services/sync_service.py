"""Service for syncing local data with the cloud."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Optional, Set, TypeVar

from wordgarden import monitoring
from wordgarden.config import settings
from wordgarden.errors import (
    ConcurrentSyncRejected,
    NetworkUnavailable,
    NotAuthenticated,
    SyncError,
)
from wordgarden.services.account_service import AccountService
from wordgarden.services.local_store import LocalSnapshotStore
from wordgarden.services.merge_service import (
    MergeReport,
    find_contract_violations,
    reconcile,
    summarize_merge,
)
from wordgarden.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPLOAD = "upload"
DOWNLOAD = "download"
SYNC = "sync"
OPERATIONS = (UPLOAD, DOWNLOAD, SYNC)


@dataclass
class SyncResult:
    """Outcome of a finished sync operation."""
    operation: str
    identity: str
    report: MergeReport
    local_applied: bool = False
    remote_written: bool = False


class SyncService:
    """Runs uploads, downloads and two-way syncs, one at a time per identity.

    A request for an identity that already has a sync running is rejected
    with ConcurrentSyncRejected rather than queued. The in-flight mark is
    cleared on every exit path, including timeouts and cancellation.
    """

    def __init__(
        self,
        local_store: LocalSnapshotStore,
        remote_store: RemoteStore,
        account_service: AccountService,
        timeout: Optional[float] = None,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.account_service = account_service
        self.timeout = timeout if timeout is not None else settings.sync.timeout_seconds
        self._in_flight: Set[str] = set()
        self.last_sync_error: Optional[str] = None
        self.last_result: Optional[SyncResult] = None

    @property
    def syncing(self) -> bool:
        return bool(self._in_flight)

    def is_syncing(self, identity: Optional[str] = None) -> bool:
        """Whether a sync is running for the identity (or for anyone)."""
        if identity is None:
            return self.syncing
        return identity in self._in_flight

    def _begin(self, operation: str) -> str:
        """Resolve the identity and claim the in-flight mark for it."""
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown sync operation: {operation}")
        identity = self.account_service.current_identity()
        if identity is None:
            self._record_error(operation, NotAuthenticated())
            raise NotAuthenticated()
        if identity in self._in_flight:
            error = ConcurrentSyncRejected()
            monitoring.sync_errors.labels(error_type=type(error).__name__).inc()
            logger.warning("Rejected %s for %s: %s", operation, identity, error)
            raise error
        self._in_flight.add(identity)
        monitoring.syncs_in_flight.inc()
        monitoring.sync_operations.labels(operation=operation).inc()
        return identity

    def _release(self, identity: str) -> None:
        if identity in self._in_flight:
            self._in_flight.discard(identity)
            monitoring.syncs_in_flight.dec()

    async def upload(self) -> SyncResult:
        """Merge local data into the cloud copy without touching local state."""
        return await self.run(UPLOAD)

    async def download(self) -> SyncResult:
        """Merge the cloud copy into local state without writing to the cloud."""
        return await self.run(DOWNLOAD)

    async def sync(self) -> SyncResult:
        """Merge both ways: local state and the cloud copy end up identical."""
        return await self.run(SYNC)

    async def run(self, operation: str) -> SyncResult:
        identity = self._begin(operation)
        try:
            return await self._execute(identity, operation)
        finally:
            self._release(identity)

    def start_sync(self, operation: str = SYNC) -> "asyncio.Task[SyncResult]":
        """Start a sync in the background and return its cancellable task.

        The in-flight mark is claimed before this returns, so a second call
        made right after is rejected.
        """
        identity = self._begin(operation)
        try:
            task = asyncio.get_running_loop().create_task(self._execute(identity, operation))
        except RuntimeError:
            self._release(identity)
            raise
        task.add_done_callback(lambda _: self._release(identity))
        return task

    async def _with_timeout(self, awaitable: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NetworkUnavailable(f"Timed out trying to {what} after {self.timeout}s", cause=e) from e

    async def _execute(self, identity: str, operation: str) -> SyncResult:
        started = time.monotonic()
        self.last_sync_error = None
        logger.info("Starting %s for %s", operation, identity)
        try:
            if not self.remote_store.is_connected:
                raise NetworkUnavailable("No network connection.")

            remote = await self._with_timeout(
                self.remote_store.fetch_remote_snapshot(identity),
                "fetch the cloud snapshot",
            )
            # Capture local state only now so edits made during the fetch are kept
            local = self.local_store.read_local_snapshot()
            merged = reconcile(local, remote)
            result = SyncResult(operation, identity, summarize_merge(local, merged))

            # A lenient reconcile that rejected either side is not a merge
            malformed = find_contract_violations(local) or find_contract_violations(remote)
            if malformed:
                logger.warning("Snapshots for %s are malformed, leaving both copies untouched", identity)
            else:
                if operation in (DOWNLOAD, SYNC):
                    self.local_store.apply_local_snapshot(merged)
                    result.local_applied = True

                if operation in (UPLOAD, SYNC):
                    await self._with_timeout(
                        self.remote_store.write_remote_snapshot(identity, merged),
                        "write the cloud snapshot",
                    )
                    result.remote_written = True
        except SyncError as e:
            self._record_error(operation, e, identity)
            raise
        except asyncio.CancelledError:
            logger.warning("%s for %s was cancelled", operation.capitalize(), identity)
            self.account_service.log_sync_activity(identity, operation, "cancelled", "Cancelled")
            raise
        finally:
            monitoring.sync_duration.labels(operation=operation).observe(time.monotonic() - started)

        if result.report.added_words:
            monitoring.words_merged.inc(result.report.added_words)
        self.last_result = result
        logger.info("Finished %s for %s: %s", operation, identity, result.report.describe())
        self.account_service.log_sync_activity(identity, operation, "ok", result.report.describe())
        return result

    def _record_error(self, operation: str, error: SyncError, identity: Optional[str] = None) -> None:
        self.last_sync_error = error.user_message
        monitoring.sync_errors.labels(error_type=type(error).__name__).inc()
        logger.error("%s failed: %s", operation.capitalize(), error)
        if identity is not None:
            self.account_service.log_sync_activity(identity, operation, "failed", error.user_message)