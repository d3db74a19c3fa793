"""Tests for the snapshot merge."""
import copy
from datetime import UTC, date, datetime, timedelta

import pytest
from faker import Faker

from wordgarden.errors import SnapshotContractError
from wordgarden.models.snapshot_models import (
    DailyLogEntry,
    ProgressLog,
    ProgressState,
    Snapshot,
    WordEntry,
)
from wordgarden.services.merge_service import (
    find_contract_violations,
    merge_daily_logs,
    merge_progress_logs,
    merge_snapshots,
    merge_words,
    reconcile,
    summarize_merge,
)

fake = Faker()

T0 = datetime(2024, 6, 1, 8, 0, tzinfo=UTC)


def at(hours: float) -> datetime:
    return T0 + timedelta(hours=hours)


@pytest.fixture
def phone() -> Snapshot:
    """Snapshot of a phone that has been used offline."""
    return Snapshot(
        words=[
            WordEntry(text="ephemeral", growth_level=2, definition="lasting a short time"),
            WordEntry(text="garden", growth_level=1, definition=""),
            WordEntry(text="lucid", growth_level=3),
        ],
        daily_logs=[
            DailyLogEntry(day=date(2024, 6, 1), logs=["[10:00:00] added X"]),
            DailyLogEntry(day=date(2024, 6, 2), logs=["[09:00:00] Opened app"]),
        ],
        progress_logs=[ProgressLog(date=at(0)), ProgressLog(date=at(24))],
        progress_state=ProgressState(level=2, xp=40, last_activity_date=at(24)),
        completed_cycles=0,
    )


@pytest.fixture
def tablet() -> Snapshot:
    """Snapshot of a tablet signed in to the same account."""
    return Snapshot(
        words=[
            WordEntry(text="Garden", growth_level=4, definition="a plot of land", example="She tends the garden."),
            WordEntry(text="serene", growth_level=0),
        ],
        daily_logs=[
            DailyLogEntry(day=date(2024, 6, 1), logs=["[14:00:00] added Y", "[10:00:00] added X"]),
            DailyLogEntry(day=date(2024, 6, 3), logs=["[07:30:00] Watered tree"]),
        ],
        progress_logs=[ProgressLog(date=at(0)), ProgressLog(date=at(48))],
        progress_state=ProgressState(level=4, xp=80, last_activity_date=at(48)),
        completed_cycles=1,
    )


def normalized(snapshot: Snapshot) -> dict:
    """Merge-relevant content, ignoring ids and tie-broken casing."""
    return {
        "words": {w.key: w.growth_level for w in snapshot.words},
        "days": {d.day: d.logs for d in snapshot.daily_logs},
        "progress": [log.date for log in snapshot.progress_logs],
        "level": snapshot.progress_state.level,
        "xp": snapshot.progress_state.xp,
        "last_activity": snapshot.progress_state.last_activity_date,
        "cycles": snapshot.completed_cycles,
    }


def test_merge_is_commutative(phone: Snapshot, tablet: Snapshot) -> None:
    """Merging in either direction gives the same content."""
    assert normalized(merge_snapshots(phone, tablet)) == normalized(merge_snapshots(tablet, phone))


def test_merge_is_idempotent(phone: Snapshot, tablet: Snapshot) -> None:
    """Merging the remote side in again changes nothing."""
    merged = merge_snapshots(phone, tablet)
    assert merge_snapshots(merged, tablet) == merged
    assert merge_snapshots(merged, merged) == merged


def test_merge_does_not_mutate_inputs(phone: Snapshot, tablet: Snapshot) -> None:
    """Inputs are left untouched and share nothing with the result."""
    phone_before = copy.deepcopy(phone)
    tablet_before = copy.deepcopy(tablet)

    merged = merge_snapshots(phone, tablet)
    merged.words[0].growth_level = 5
    merged.daily_logs[0].logs.append("[23:00:00] later")

    assert phone == phone_before
    assert tablet == tablet_before


def test_no_words_lost(phone: Snapshot, tablet: Snapshot) -> None:
    """Every word from either side is present exactly once."""
    merged = merge_snapshots(phone, tablet)
    keys = [w.key for w in merged.words]
    expected = {w.key for w in phone.words} | {w.key for w in tablet.words}
    assert set(keys) == expected
    assert len(keys) == len(expected)


def test_growth_takes_the_maximum(phone: Snapshot, tablet: Snapshot) -> None:
    """Shared words keep the higher growth level."""
    merged = {w.key: w for w in merge_snapshots(phone, tablet).words}
    for word in phone.words:
        other = next((w for w in tablet.words if w.key == word.key), None)
        if other:
            assert merged[word.key].growth_level == max(word.growth_level, other.growth_level)
        assert merged[word.key].growth_level >= word.growth_level


def test_word_only_on_one_side_is_kept() -> None:
    """A word missing on the remote side is kept as is, with its id."""
    word = WordEntry(text="ephemeral", growth_level=2)
    merged = merge_words([word], [])
    assert len(merged) == 1
    assert merged[0].text == "ephemeral"
    assert merged[0].growth_level == 2
    assert merged[0].id == word.id


def test_shared_word_fills_empty_fields() -> None:
    """Same word with different casing: local id and casing, non-empty definition wins."""
    local = WordEntry(text="garden", growth_level=1, definition="")
    remote = WordEntry(text="Garden", growth_level=4, definition="a plot of land")

    merged = merge_words([local], [remote])

    assert len(merged) == 1
    assert merged[0].id == local.id
    assert merged[0].text == "garden"
    assert merged[0].growth_level == 4
    assert merged[0].definition == "a plot of land"


def test_conflicting_text_fields_prefer_local() -> None:
    """When both sides have different non-empty values the local one is kept."""
    local = WordEntry(text="lucid", definition="clear", manual_definition=None, example="A lucid essay.")
    remote = WordEntry(text="LUCID", definition="easy to understand", manual_definition="my note", example="")

    merged = merge_words([local], [remote])[0]

    assert merged.definition == "clear"
    assert merged.manual_definition == "my note"
    assert merged.example == "A lucid essay."


def test_last_watered_takes_the_latest() -> None:
    local = WordEntry(text="lucid", last_watered=at(1))
    remote = WordEntry(text="lucid", last_watered=at(5))
    assert merge_words([local], [remote])[0].last_watered == at(5)
    assert merge_words([remote], [local])[0].last_watered == at(5)


def test_daily_logs_for_same_day_are_unioned() -> None:
    """Lines from both devices end up in one sorted log for the day."""
    local = [DailyLogEntry(day=date(2024, 6, 1), logs=["[10:00:00] added X"])]
    remote = [DailyLogEntry(day=date(2024, 6, 1), logs=["[14:00:00] added Y"])]

    merged = merge_daily_logs(local, remote)

    assert len(merged) == 1
    assert merged[0].id == local[0].id
    assert merged[0].logs == ["[10:00:00] added X", "[14:00:00] added Y"]


def test_daily_logs_are_superset_without_duplicates(phone: Snapshot, tablet: Snapshot) -> None:
    merged = {d.day: d.logs for d in merge_snapshots(phone, tablet).daily_logs}
    for snapshot in (phone, tablet):
        for entry in snapshot.daily_logs:
            assert set(entry.logs) <= set(merged[entry.day])
    for logs in merged.values():
        assert len(logs) == len(set(logs))
    assert list(merged) == sorted(merged)


def test_progress_logs_are_unioned_by_timestamp() -> None:
    shared = at(0)
    local = [ProgressLog(date=at(5)), ProgressLog(date=shared)]
    remote = [ProgressLog(date=shared), ProgressLog(date=at(2))]

    merged = merge_progress_logs(local, remote)

    assert [log.date for log in merged] == [shared, at(2), at(5)]
    assert merged[0].id == local[1].id


def test_progress_state_takes_the_maximum() -> None:
    local = Snapshot(progress_state=ProgressState(level=2), completed_cycles=0)
    remote = Snapshot(progress_state=ProgressState(level=4), completed_cycles=1)

    merged = merge_snapshots(local, remote)

    assert merged.progress_state.level == 4
    assert merged.completed_cycles == 1
    assert merged.progress_state.id == local.progress_state.id


def test_progress_never_regresses(phone: Snapshot, tablet: Snapshot) -> None:
    merged = merge_snapshots(phone, tablet)
    assert merged.progress_state.level >= max(phone.progress_state.level, tablet.progress_state.level)
    assert merged.progress_state.xp >= max(phone.progress_state.xp, tablet.progress_state.xp)


def test_last_activity_includes_progress_logs() -> None:
    """A progress log newer than the stated last activity is not lost."""
    local = Snapshot(
        progress_logs=[ProgressLog(date=at(30))],
        progress_state=ProgressState(last_activity_date=at(10)),
    )
    remote = Snapshot(progress_state=ProgressState(last_activity_date=at(20)))

    assert merge_snapshots(local, remote).progress_state.last_activity_date == at(30)
    assert merge_snapshots(remote, local).progress_state.last_activity_date == at(30)


def test_last_activity_stays_empty_for_fresh_snapshots() -> None:
    assert merge_snapshots(Snapshot(), Snapshot()).progress_state.last_activity_date is None


def test_contract_violations_are_reported() -> None:
    snapshot = Snapshot(
        words=[
            WordEntry(text="calm", growth_level=7),
            WordEntry(text="Calm"),
            WordEntry(text="  "),
        ],
        daily_logs=[DailyLogEntry(day=date(2024, 6, 1)), DailyLogEntry(day=date(2024, 6, 1))],
        progress_logs=[ProgressLog(date=datetime(2024, 6, 1, 8, 0))],
    )

    problems = find_contract_violations(snapshot)

    assert len(problems) == 5
    assert find_contract_violations(Snapshot()) == []


def test_reconcile_strict_raises_on_malformed_remote(phone: Snapshot) -> None:
    broken = Snapshot(words=[WordEntry(text="")])
    with pytest.raises(SnapshotContractError):
        reconcile(phone, broken, strict=True)


def test_reconcile_lenient_keeps_local(phone: Snapshot) -> None:
    broken = Snapshot(words=[WordEntry(text=fake.word(), growth_level=-1)])
    result = reconcile(phone, broken, strict=False)
    assert result == phone
    assert result is not phone


def test_reconcile_merges_valid_snapshots(phone: Snapshot, tablet: Snapshot) -> None:
    assert reconcile(phone, tablet, strict=True) == merge_snapshots(phone, tablet)


def test_summarize_merge(phone: Snapshot, tablet: Snapshot) -> None:
    report = summarize_merge(phone, merge_snapshots(phone, tablet))

    assert report.added_words == 1  # serene
    assert report.grown_words == 1  # garden 1 -> 4
    assert report.added_days == 1  # 2024-06-03
    assert report.updated_days == 1  # 2024-06-01 gained a line
    assert report.added_progress_logs == 1
    assert (report.level_before, report.level_after) == (2, 4)
    assert report.changed


def test_summarize_merge_without_changes(phone: Snapshot) -> None:
    assert not summarize_merge(phone, merge_snapshots(phone, Snapshot())).changed
