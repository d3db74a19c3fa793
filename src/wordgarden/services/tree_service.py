"""Service for growing the user's tree."""
import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import List, Optional

from wordgarden.config import settings
from wordgarden.models.snapshot_models import ProgressLog, ProgressState
from wordgarden.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

TREE_KEY = "tree"
WATERING_LOGS_KEY = "watering_logs"
TREES_GROWN_KEY = "trees_grown"


class TreeGrowthPhase(Enum):
    """Visual growth phases of the tree."""
    SEED = "Seed"
    SPROUT = "Sprout"
    SAPLING = "Sapling"
    YOUNG_TREE = "Young Tree"
    MATURE_TREE = "Mature Tree"


def level_for_xp(xp: int) -> int:
    """Level reached with the given xp."""
    return sum(1 for threshold in settings.tree.level_thresholds if xp >= threshold)


class TreeService:
    """Tracks tree xp, its level and the watering history."""

    def __init__(self, store: BlobStore):
        """Initialize the service and load the saved tree."""
        self.store = store
        self.max_xp = settings.tree.max_xp
        self.xp_per_action = settings.tree.xp_per_action
        self.tree = ProgressState()
        self.watering_logs: List[ProgressLog] = []
        self.trees_grown = 0
        self.load()

    @property
    def xp_progress(self) -> float:
        """Progress towards a fully grown tree, 0.0 to 1.0."""
        return self.tree.xp / self.max_xp

    @property
    def current_phase(self) -> TreeGrowthPhase:
        phases = list(TreeGrowthPhase)
        return phases[min(level_for_xp(self.tree.xp), len(phases) - 1)]

    @property
    def is_fully_grown(self) -> bool:
        return self.tree.xp >= self.max_xp

    def can_water_tree(self, now: Optional[datetime] = None) -> bool:
        """The tree can be watered once per calendar day until fully grown."""
        if self.is_fully_grown:
            return False
        if self.watering_logs:
            now = now or datetime.now(UTC)
            return self.watering_logs[-1].date.date() != now.date()
        return True

    def water_tree(self, now: Optional[datetime] = None) -> bool:
        """Water the tree. Returns False if it cannot be watered right now."""
        if not self.can_water_tree(now):
            return False
        self._add_xp(now)
        return True

    def award_study_progress(self, now: Optional[datetime] = None) -> bool:
        """Grant xp for a study action. No daily limit."""
        if self.is_fully_grown:
            return False
        self._add_xp(now)
        return True

    def _add_xp(self, now: Optional[datetime]) -> None:
        now = now or datetime.now(UTC)
        self.tree.xp = min(self.tree.xp + self.xp_per_action, self.max_xp)
        # Level never drops within a cycle
        self.tree.level = max(self.tree.level, level_for_xp(self.tree.xp))
        self.tree.last_activity_date = now
        self.watering_logs.append(ProgressLog(date=now))
        self.save()

    def plant_new_tree(self) -> bool:
        """Start over with a new tree once the current one is fully grown."""
        if not self.is_fully_grown:
            return False
        self.trees_grown += 1
        self.tree = ProgressState()
        self.watering_logs = []
        self.save()
        logger.info("Planted tree number %d", self.trees_grown + 1)
        return True

    def prune_progress_logs(self, days: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Drop progress logs older than the retention window. Returns how many were removed."""
        if days is None:
            days = settings.sync.progress_log_retention_days
        cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
        kept = [log for log in self.watering_logs if log.date >= cutoff]
        removed = len(self.watering_logs) - len(kept)
        if removed:
            self.watering_logs = kept
            self.save()
        return removed

    def replace_all(self, tree: ProgressState, watering_logs: List[ProgressLog], trees_grown: int) -> None:
        """Replace the stored tree state, used when applying a merged snapshot."""
        self.tree = tree
        self.watering_logs = list(watering_logs)
        self.trees_grown = trees_grown
        self.save()

    def save(self) -> None:
        self.store.save_json(TREE_KEY, self.tree.to_dict())
        self.store.save_json(WATERING_LOGS_KEY, [log.to_dict() for log in self.watering_logs])
        self.store.save_json(TREES_GROWN_KEY, self.trees_grown)

    def load(self) -> None:
        tree_data = self.store.load_json(TREE_KEY)
        if tree_data:
            try:
                self.tree = ProgressState.from_dict(tree_data)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Discarding unreadable tree state: %s", e)

        logs = []
        for data in self.store.load_json(WATERING_LOGS_KEY, default=[]) or []:
            try:
                logs.append(ProgressLog.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable watering log: %s", e)
        self.watering_logs = sorted(logs, key=lambda log: log.date)

        trees_grown = self.store.load_json(TREES_GROWN_KEY, default=0)
        self.trees_grown = trees_grown if isinstance(trees_grown, int) else 0
