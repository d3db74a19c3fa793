"""Reconciliation of a local snapshot with its cloud copy.

Every function here is pure: inputs are never mutated and the result shares
no mutable records with them. The rules are deliberately simple (union by
key, ``max`` for counters) so that merging is commutative and idempotent:

* words are keyed by lowercase text; growth only goes up;
* daily logs are keyed by calendar day; lines are unioned and sorted;
* progress logs are keyed by exact timestamp;
* the progress state takes the highest level, xp and cycle count, and the
  latest activity seen anywhere, including in either side's progress logs.

Where both sides hold a different non-empty text field for the same word,
the local value wins. This is a best-effort policy, not a three-way merge.
"""
import copy
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Dict, List, Optional

from wordgarden import monitoring
from wordgarden.config import settings
from wordgarden.errors import SnapshotContractError
from wordgarden.models.snapshot_models import (
    DailyLogEntry,
    ProgressLog,
    ProgressState,
    Snapshot,
    WordEntry,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    """What a merge changed relative to the local snapshot."""
    added_words: int = 0
    grown_words: int = 0
    added_days: int = 0
    updated_days: int = 0
    added_progress_logs: int = 0
    level_before: int = 0
    level_after: int = 0

    @property
    def changed(self) -> bool:
        return any((
            self.added_words,
            self.grown_words,
            self.added_days,
            self.updated_days,
            self.added_progress_logs,
            self.level_after != self.level_before,
        ))

    def describe(self) -> str:
        return (
            f"{self.added_words} new words, {self.grown_words} grown, "
            f"{self.added_days} new days, {self.updated_days} updated days, "
            f"{self.added_progress_logs} new progress logs, "
            f"level {self.level_before} -> {self.level_after}"
        )


def _pick_text(local_value: Optional[str], remote_value: Optional[str]) -> Optional[str]:
    """Prefer the local value unless it is empty."""
    if local_value:
        return local_value
    if remote_value:
        return remote_value
    return local_value


def _latest(*values: Optional[datetime]) -> Optional[datetime]:
    return max((v for v in values if v is not None), default=None)


def merge_word(local: WordEntry, remote: WordEntry) -> WordEntry:
    """Merge two entries for the same word, keeping the local id and casing."""
    return replace(
        local,
        definition=_pick_text(local.definition, remote.definition),
        manual_definition=_pick_text(local.manual_definition, remote.manual_definition),
        example=_pick_text(local.example, remote.example),
        growth_level=max(local.growth_level, remote.growth_level),
        last_watered=_latest(local.last_watered, remote.last_watered),
    )


def merge_words(local: List[WordEntry], remote: List[WordEntry]) -> List[WordEntry]:
    """Union of both word lists keyed by lowercase text.

    Local words keep their order; remote-only words follow in remote order.
    """
    remote_by_key: Dict[str, WordEntry] = {w.key: w for w in remote}
    merged: List[WordEntry] = []
    seen = set()
    for word in local:
        other = remote_by_key.get(word.key)
        merged.append(merge_word(word, other) if other else copy.deepcopy(word))
        seen.add(word.key)
    for word in remote:
        if word.key not in seen:
            merged.append(copy.deepcopy(word))
            seen.add(word.key)
    return merged


def merge_daily_logs(local: List[DailyLogEntry], remote: List[DailyLogEntry]) -> List[DailyLogEntry]:
    """Union of daily logs keyed by calendar day, lines deduplicated and sorted."""
    merged: Dict[date, DailyLogEntry] = {}
    for entry in local:
        merged[entry.day] = DailyLogEntry(id=entry.id, day=entry.day, logs=sorted(set(entry.logs)))
    for entry in remote:
        existing = merged.get(entry.day)
        if existing is None:
            merged[entry.day] = DailyLogEntry(id=entry.id, day=entry.day, logs=sorted(set(entry.logs)))
        else:
            existing.logs = sorted(set(existing.logs) | set(entry.logs))
    return [merged[day] for day in sorted(merged)]


def merge_progress_logs(local: List[ProgressLog], remote: List[ProgressLog]) -> List[ProgressLog]:
    """Union of progress logs keyed by exact timestamp, sorted ascending."""
    by_date: Dict[datetime, ProgressLog] = {}
    for log in list(local) + list(remote):
        by_date.setdefault(log.date, copy.copy(log))
    return [by_date[d] for d in sorted(by_date)]


def merge_progress_state(local: Snapshot, remote: Snapshot) -> ProgressState:
    """Highest level and xp; latest activity across states and progress logs."""
    mine, theirs = local.progress_state, remote.progress_state
    return ProgressState(
        id=mine.id,
        level=max(mine.level, theirs.level),
        xp=max(mine.xp, theirs.xp),
        last_activity_date=_latest(local.latest_activity(), remote.latest_activity()),
    )


def merge_snapshots(local: Snapshot, remote: Snapshot) -> Snapshot:
    """Combine two snapshots without losing information from either."""
    return Snapshot(
        words=merge_words(local.words, remote.words),
        daily_logs=merge_daily_logs(local.daily_logs, remote.daily_logs),
        progress_logs=merge_progress_logs(local.progress_logs, remote.progress_logs),
        progress_state=merge_progress_state(local, remote),
        completed_cycles=max(local.completed_cycles, remote.completed_cycles),
    )


def find_contract_violations(snapshot: Snapshot) -> List[str]:
    """List the ways a snapshot breaks the assumptions of the merge."""
    problems = []
    max_growth = settings.tree.max_growth_level

    seen_words = set()
    for word in snapshot.words:
        if not word.text or not word.text.strip():
            problems.append(f"word {word.id} has empty text")
            continue
        if not 0 <= word.growth_level <= max_growth:
            problems.append(f"word {word.text!r} has growth level {word.growth_level}")
        if word.key in seen_words:
            problems.append(f"word {word.text!r} appears more than once")
        seen_words.add(word.key)

    seen_days = set()
    for entry in snapshot.daily_logs:
        if entry.day in seen_days:
            problems.append(f"daily log for {entry.day} appears more than once")
        seen_days.add(entry.day)

    timestamps = [log.date for log in snapshot.progress_logs]
    timestamps += [w.last_watered for w in snapshot.words if w.last_watered is not None]
    if snapshot.progress_state.last_activity_date is not None:
        timestamps.append(snapshot.progress_state.last_activity_date)
    # max() over mixed naive and aware datetimes raises
    if any(t.tzinfo is None for t in timestamps):
        problems.append("timestamps must be timezone-aware")

    if snapshot.progress_state.level < 0 or snapshot.progress_state.xp < 0:
        problems.append("progress state has negative level or xp")
    if snapshot.completed_cycles < 0:
        problems.append("completed cycles is negative")
    return problems


def validate_snapshot(snapshot: Snapshot, side: str = "snapshot") -> None:
    """Raise SnapshotContractError if the snapshot is malformed."""
    problems = find_contract_violations(snapshot)
    if problems:
        raise SnapshotContractError(f"Invalid {side}: " + "; ".join(problems))


def reconcile(local: Snapshot, remote: Snapshot, strict: Optional[bool] = None) -> Snapshot:
    """Validate both snapshots and merge them.

    A malformed input raises SnapshotContractError in strict mode. Otherwise
    the violation is logged and the local snapshot is returned unchanged.
    """
    if strict is None:
        strict = settings.sync.strict_contracts
    try:
        validate_snapshot(local, "local snapshot")
        validate_snapshot(remote, "remote snapshot")
    except SnapshotContractError as e:
        monitoring.contract_violations.inc()
        if strict:
            raise
        logger.error("Skipping merge, keeping local data: %s", e)
        return copy.deepcopy(local)
    return merge_snapshots(local, remote)


def summarize_merge(local: Snapshot, merged: Snapshot) -> MergeReport:
    """Compare a merge result with the local snapshot it started from."""
    local_words = {w.key: w for w in local.words}
    local_days = {d.day: d for d in local.daily_logs}
    local_dates = {log.date for log in local.progress_logs}

    report = MergeReport(
        level_before=local.progress_state.level,
        level_after=merged.progress_state.level,
    )
    for word in merged.words:
        before = local_words.get(word.key)
        if before is None:
            report.added_words += 1
        elif word.growth_level > before.growth_level:
            report.grown_words += 1
    for entry in merged.daily_logs:
        before = local_days.get(entry.day)
        if before is None:
            report.added_days += 1
        elif set(entry.logs) - set(before.logs):
            report.updated_days += 1
    report.added_progress_logs = sum(1 for log in merged.progress_logs if log.date not in local_dates)
    return report
