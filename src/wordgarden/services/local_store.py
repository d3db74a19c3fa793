"""Local snapshot accessors over the word storage and the tree service."""
import copy
import logging

from wordgarden.models.snapshot_models import Snapshot
from wordgarden.services.tree_service import TreeService
from wordgarden.services.word_storage import WordStorage

logger = logging.getLogger(__name__)


class LocalSnapshotStore:
    """Captures and applies the device's full state as a Snapshot."""

    def __init__(self, word_storage: WordStorage, tree_service: TreeService):
        self.word_storage = word_storage
        self.tree_service = tree_service

    def read_local_snapshot(self) -> Snapshot:
        """Capture a detached copy of the current local state."""
        return Snapshot(
            words=copy.deepcopy(self.word_storage.words),
            daily_logs=copy.deepcopy(self.word_storage.daily_logs),
            progress_logs=copy.deepcopy(self.tree_service.watering_logs),
            progress_state=copy.deepcopy(self.tree_service.tree),
            completed_cycles=self.tree_service.trees_grown,
        )

    def apply_local_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the local state with the given snapshot and persist it."""
        snapshot = copy.deepcopy(snapshot)
        self.word_storage.replace_all(snapshot.words, snapshot.daily_logs)
        self.tree_service.replace_all(
            snapshot.progress_state,
            snapshot.progress_logs,
            snapshot.completed_cycles,
        )
        logger.debug(
            "Applied snapshot with %d words and %d daily logs",
            len(snapshot.words),
            len(snapshot.daily_logs),
        )
