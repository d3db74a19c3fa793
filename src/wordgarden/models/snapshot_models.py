"""Snapshot records exchanged between the device and the cloud."""
import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any, Dict, List, Optional

from wordgarden.errors import SerializationError


def new_id() -> str:
    """Generate a new opaque record identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _optional_timestamp(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def _optional_text(data: Dict[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{name} must be a string, got {type(value).__name__}")
    return value


@dataclass
class WordEntry:
    """A single word in the user's garden."""
    text: str
    id: str = field(default_factory=new_id)
    definition: Optional[str] = None
    manual_definition: Optional[str] = None  # user-entered override
    example: Optional[str] = None
    growth_level: int = 0  # 0-5, raised by watering the word
    last_watered: Optional[datetime] = None

    @property
    def key(self) -> str:
        """Merge identity: the word text, case-insensitive."""
        return self.text.lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "definition": self.definition,
            "manual_definition": self.manual_definition,
            "example": self.example,
            "growth_level": self.growth_level,
            "last_watered": self.last_watered.isoformat() if self.last_watered else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WordEntry':
        text = data["text"]
        if not isinstance(text, str):
            raise TypeError(f"word text must be a string, got {type(text).__name__}")
        return cls(
            id=str(data["id"]),
            text=text,
            definition=_optional_text(data, "definition"),
            manual_definition=_optional_text(data, "manual_definition"),
            example=_optional_text(data, "example"),
            growth_level=int(data.get("growth_level", 0)),
            last_watered=_optional_timestamp(data.get("last_watered")),
        )


@dataclass
class DailyLogEntry:
    """All activity lines recorded on one calendar day."""
    day: date
    logs: List[str] = field(default_factory=list)  # "[HH:MM:SS] message"
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day.isoformat(),
            "logs": list(self.logs),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DailyLogEntry':
        raw_day = data["day"]
        # Accept full timestamps from older exports; only the day matters
        day = date.fromisoformat(raw_day[:10])
        logs = data.get("logs", [])
        if not isinstance(logs, list):
            raise TypeError("logs must be a list")
        return cls(id=str(data["id"]), day=day, logs=[str(line) for line in logs])


@dataclass
class ProgressLog:
    """One watering or study pulse."""
    date: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressLog':
        return cls(id=str(data["id"]), date=parse_timestamp(data["date"]))


@dataclass
class ProgressState:
    """The tree: accumulated xp, the level derived from it and the last activity."""
    id: str = field(default_factory=new_id)
    level: int = 0
    xp: int = 0
    last_activity_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level,
            "xp": self.xp,
            "last_activity_date": (
                self.last_activity_date.isoformat() if self.last_activity_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProgressState':
        return cls(
            id=str(data.get("id") or new_id()),
            level=int(data.get("level", 0)),
            xp=int(data.get("xp", 0)),
            last_activity_date=_optional_timestamp(data.get("last_activity_date")),
        )


@dataclass
class Snapshot:
    """Full exported state of one device or account."""
    words: List[WordEntry] = field(default_factory=list)
    daily_logs: List[DailyLogEntry] = field(default_factory=list)
    progress_logs: List[ProgressLog] = field(default_factory=list)
    progress_state: ProgressState = field(default_factory=ProgressState)
    completed_cycles: int = 0  # trees grown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "words": [w.to_dict() for w in self.words],
            "daily_logs": [log.to_dict() for log in self.daily_logs],
            "progress_logs": [log.to_dict() for log in self.progress_logs],
            "progress_state": self.progress_state.to_dict(),
            "completed_cycles": self.completed_cycles,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        """Build a snapshot from decoded JSON, raising SerializationError on bad shape."""
        try:
            return cls(
                words=[WordEntry.from_dict(w) for w in data.get("words", [])],
                daily_logs=[DailyLogEntry.from_dict(d) for d in data.get("daily_logs", [])],
                progress_logs=[ProgressLog.from_dict(p) for p in data.get("progress_logs", [])],
                progress_state=ProgressState.from_dict(data.get("progress_state") or {}),
                completed_cycles=int(data.get("completed_cycles", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SerializationError(f"Failed to decode snapshot: {e}", cause=e) from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)

    @classmethod
    def from_json(cls, payload: str) -> 'Snapshot':
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Snapshot payload is not valid JSON: {e}", cause=e) from e
        if not isinstance(data, dict):
            raise SerializationError("Snapshot payload must be a JSON object")
        return cls.from_dict(data)

    def latest_activity(self) -> Optional[datetime]:
        """Latest of the stated last activity and every progress log."""
        candidates = [log.date for log in self.progress_logs]
        if self.progress_state.last_activity_date is not None:
            candidates.append(self.progress_state.last_activity_date)
        return max(candidates, default=None)
