"""Errors surfaced by the sync layer."""
from typing import Optional


class SyncError(Exception):
    """Base class for recoverable sync failures."""

    default_message = "Sync failed."

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message or self.default_message)
        self.cause = cause

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the user."""
        return str(self)


class NotAuthenticated(SyncError):
    """No signed-in identity is available."""

    default_message = "User is not authenticated. Please sign in to sync data."


class NetworkUnavailable(SyncError):
    """The remote store could not be reached. Retryable."""

    default_message = "Cloud storage is unreachable. Please try again later."


class SerializationError(SyncError):
    """A snapshot payload could not be encoded or decoded."""

    default_message = "Failed to decode snapshot data."


class ConcurrentSyncRejected(SyncError):
    """A sync was requested while another one is running for the same identity."""

    default_message = "Sync operation already in progress."


class SnapshotContractError(SyncError):
    """A malformed snapshot reached the merge engine."""

    default_message = "Snapshot failed validation."
