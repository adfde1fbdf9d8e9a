"""
Configuration for the Validator Balance Monitor

All settings in one place. Values come from the environment, with a
project-root .env file loaded first if present.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

from dotenv import load_dotenv

from .exceptions import ConfigError

_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


# Server-enforced maximum number of validator ids per balances request
MAX_IDS_PER_REQUEST = 512

DEFAULT_MONITOR_INTERVAL_SEC = 300
DEFAULT_DB_PATH = _project_root / "data" / "state.db"
DEFAULT_LOG_FILE = _project_root / "logs" / "monitor.log"
DEFAULT_DB_TIMEOUT_SEC = 30.0

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def db_path_from_env() -> Path:
    """Watch-list database path from DB_PATH, or the default."""
    db_path = os.environ.get("DB_PATH")
    return Path(db_path) if db_path else DEFAULT_DB_PATH


def _parse_interval(raw: Optional[str]) -> int:
    if raw is None or raw == "":
        return DEFAULT_MONITOR_INTERVAL_SEC
    try:
        interval = int(raw)
    except ValueError:
        raise ConfigError(f"failed to parse MONITOR_INTERVAL: {raw!r}") from None
    if interval <= 0:
        raise ConfigError(f"MONITOR_INTERVAL must be positive, got {interval}")
    return interval


def _parse_log_level(raw: Optional[str]) -> str:
    level = (raw or "INFO").upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {raw!r}")
    return level


@dataclass
class Config:
    """All configuration settings."""

    # -------------------------------------------------------------------------
    # Beacon Node API
    # -------------------------------------------------------------------------
    # Base URL of the beacon node, e.g. "http://localhost:5052"
    node_api_url: Optional[str] = None

    max_ids_per_request: int = MAX_IDS_PER_REQUEST

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------
    # Seconds between monitor runs
    monitor_interval_sec: int = DEFAULT_MONITOR_INTERVAL_SEC

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)

    # Seconds to wait on a locked database before failing
    db_timeout_sec: float = DEFAULT_DB_TIMEOUT_SEC

    # -------------------------------------------------------------------------
    # Telegram / Logging
    # -------------------------------------------------------------------------
    telegram_bot_token: Optional[str] = None
    log_level: str = "INFO"
    log_file: Path = field(default_factory=lambda: DEFAULT_LOG_FILE)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a Config from environment variables."""
        log_file = os.environ.get("LOG_FILE")
        return cls(
            node_api_url=os.environ.get("NODE_API_URL") or None,
            monitor_interval_sec=_parse_interval(os.environ.get("MONITOR_INTERVAL")),
            db_path=db_path_from_env(),
            telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN") or None,
            log_level=_parse_log_level(os.environ.get("LOG_LEVEL")),
            log_file=Path(log_file) if log_file else DEFAULT_LOG_FILE,
        )

    def require_node_api_url(self) -> str:
        """Return the beacon node URL or raise if it is not configured."""
        if not self.node_api_url:
            raise ConfigError("missing NODE_API_URL")
        return self.node_api_url
