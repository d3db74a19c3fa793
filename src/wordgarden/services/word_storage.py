"""Service for managing the user's words and daily activity logs."""
import logging
from datetime import UTC, date, datetime
from typing import List, Optional

from wordgarden.config import settings
from wordgarden.models.snapshot_models import DailyLogEntry, WordEntry
from wordgarden.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

WORDS_KEY = "words"
DAILY_LOGS_KEY = "daily_logs"


class WordStorage:
    """Local word list and daily logs, saved after every change."""

    def __init__(self, store: BlobStore):
        """Initialize the storage and load saved data."""
        self.store = store
        self.words: List[WordEntry] = []
        self.daily_logs: List[DailyLogEntry] = []
        self.load()

    def load(self) -> None:
        """Load words and daily logs from the blob store."""
        self.words = self._load_list(WORDS_KEY, WordEntry.from_dict)
        self.daily_logs = self._load_list(DAILY_LOGS_KEY, DailyLogEntry.from_dict)

    def _load_list(self, key: str, decode) -> list:
        items = []
        for data in self.store.load_json(key, default=[]) or []:
            try:
                items.append(decode(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unreadable %s entry: %s", key, e)
        return items

    def save_words(self) -> None:
        self.store.save_json(WORDS_KEY, [w.to_dict() for w in self.words])

    def save_daily_logs(self) -> None:
        self.store.save_json(DAILY_LOGS_KEY, [d.to_dict() for d in self.daily_logs])

    def get_word(self, text: str) -> Optional[WordEntry]:
        """Get a word by its text, ignoring case."""
        key = text.strip().lower()
        return next((w for w in self.words if w.key == key), None)

    def add_word(
        self,
        text: str,
        definition: Optional[str] = None,
        example: Optional[str] = None,
        manual_definition: Optional[str] = None,
    ) -> WordEntry:
        """Add a new word to the garden."""
        text = text.strip()
        if not text:
            raise ValueError("Word text cannot be empty")
        if self.get_word(text):
            raise ValueError(f"Word '{text}' is already in the garden")

        word = WordEntry(
            text=text,
            definition=definition,
            manual_definition=manual_definition,
            example=example,
        )
        self.words.append(word)
        self.save_words()
        self.add_log_entry(f"Added word: {text}")
        return word

    def water_word(self, text: str) -> WordEntry:
        """Review a word, raising its growth level up to the cap."""
        word = self.get_word(text)
        if word is None:
            raise ValueError(f"Word '{text}' not found")
        if word.growth_level < settings.tree.max_growth_level:
            word.growth_level += 1
        word.last_watered = datetime.now(UTC)
        self.save_words()
        self.add_log_entry(f"Watered word: {word.text}")
        return word

    def delete_word(self, text: str) -> bool:
        """Delete a word."""
        word = self.get_word(text)
        if word is None:
            return False
        self.words.remove(word)
        self.save_words()
        self.add_log_entry(f"Deleted word: {word.text}")
        return True

    def add_log_entry(self, message: str, at: Optional[datetime] = None) -> str:
        """Append a timestamped line to the day's activity log."""
        at = at or datetime.now(UTC)
        line = f"[{at.strftime('%H:%M:%S')}] {message}"
        entry = self._get_daily_log(at.date())
        if entry is None:
            entry = DailyLogEntry(day=at.date())
            self.daily_logs.append(entry)
        entry.logs.append(line)
        self.save_daily_logs()
        return line

    def _get_daily_log(self, day: date) -> Optional[DailyLogEntry]:
        return next((d for d in self.daily_logs if d.day == day), None)

    def logs_for_day(self, day: date) -> List[str]:
        entry = self._get_daily_log(day)
        return list(entry.logs) if entry else []

    def delete_daily_log(self, day: date) -> bool:
        """Delete the log for one day."""
        entry = self._get_daily_log(day)
        if entry is None:
            return False
        self.daily_logs.remove(entry)
        self.save_daily_logs()
        return True

    def replace_all(self, words: List[WordEntry], daily_logs: List[DailyLogEntry]) -> None:
        """Replace the stored words and logs, used when applying a merged snapshot."""
        self.words = list(words)
        self.daily_logs = list(daily_logs)
        self.save_words()
        self.save_daily_logs()
