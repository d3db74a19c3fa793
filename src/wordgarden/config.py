"""Configuration settings for WordGarden."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# Define data directories from environment variables
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Tree growth settings
XP_LEVEL_THRESHOLDS = [20, 40, 60, 80]  # xp needed for levels 1..4
MAX_GROWTH_LEVEL = 5  # per-word growth cap


def ensure_directories() -> None:
    """Ensure all required directories exist."""
    directories = [
        DATA_DIR,
        EXPORTS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PathSettings:
    """Path configuration settings."""
    base_dir: Path = BASE_DIR
    data_dir: Path = DATA_DIR
    exports_dir: Path = EXPORTS_DIR


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///wordgarden.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class SyncSettings:
    """Cloud sync settings."""
    timeout_seconds: float = float(os.getenv("SYNC_TIMEOUT_SECONDS", "30"))
    # Raise on malformed snapshots instead of falling back to the local copy
    strict_contracts: bool = os.getenv("SYNC_STRICT_CONTRACTS", "false").lower() == "true"
    progress_log_retention_days: int = int(os.getenv("PROGRESS_LOG_RETENTION_DAYS", "7"))
    metrics_port: int = int(os.getenv("METRICS_PORT", "0"))


@dataclass
class TreeSettings:
    """Tree growth settings."""
    max_xp: int = int(os.getenv("TREE_MAX_XP", "100"))
    xp_per_action: int = int(os.getenv("TREE_XP_PER_ACTION", "10"))
    max_level: int = len(XP_LEVEL_THRESHOLDS)
    level_thresholds: list[int] = field(default_factory=lambda: XP_LEVEL_THRESHOLDS)
    max_growth_level: int = MAX_GROWTH_LEVEL


def get_path_settings() -> PathSettings:
    """Get path settings."""
    return PathSettings()


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_sync_settings() -> SyncSettings:
    """Get sync settings."""
    return SyncSettings()


def get_tree_settings() -> TreeSettings:
    """Get tree settings."""
    return TreeSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    paths: PathSettings = field(default_factory=get_path_settings)
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    sync: SyncSettings = field(default_factory=get_sync_settings)
    tree: TreeSettings = field(default_factory=get_tree_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if self.sync.timeout_seconds <= 0:
            raise ValueError("SYNC_TIMEOUT_SECONDS must be positive")

        if self.sync.progress_log_retention_days < 1:
            raise ValueError("PROGRESS_LOG_RETENTION_DAYS must be positive")

        if self.tree.xp_per_action < 1:
            raise ValueError("TREE_XP_PER_ACTION must be positive")

        if self.tree.max_xp <= self.tree.level_thresholds[-1]:
            raise ValueError("TREE_MAX_XP must exceed the highest level threshold")


# Create global settings instance
settings = Settings()
settings.validate()
