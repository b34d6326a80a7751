"""Configuration management for Anime Update Bot."""

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_SOURCE_URL = "https://ani.gamer.com.tw/"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36 Edg/125.0.0.0"
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class TelegramConfig:
    """Configuration for Telegram Bot API."""

    bot_token: str
    chat_id: str
    parse_mode: str | None = None
    retry_attempts: int = 3
    backoff_factor: float = 2.0
    timeout: int = 30


@dataclass
class SourceConfig:
    """Configuration for the anime timeline page."""

    url: str = DEFAULT_SOURCE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = 30
    settle_delay: float = 30.0


@dataclass
class ScheduleConfig:
    """Configuration for scheduled execution."""

    interval_minutes: int = 15
    timezone: str = "Asia/Taipei"
    run_on_start: bool = True
    deliver_on_first_run: bool = False


@dataclass
class StorageConfig:
    """Configuration for snapshot persistence."""

    data_path: Path = Path("data.json")


class Config:
    """Main configuration manager."""

    REQUIRED_VARIABLES = ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHANNEL_ID")

    def __init__(self, load_env_file: bool = True):
        """Initialize configuration from environment variables.

        Args:
            load_env_file: Read a .env file into the environment first
        """
        if load_env_file:
            load_dotenv()

        self.bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
        self.channel_id = os.getenv("TELEGRAM_CHANNEL_ID", "").strip()
        self.source_url = os.getenv("SOURCE_URL", DEFAULT_SOURCE_URL)
        self.data_path = os.getenv("DATA_PATH", "data.json")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.timezone = os.getenv("SCHEDULE_TIMEZONE", "Asia/Taipei")
        self.interval_minutes = _env_int("SCHEDULE_INTERVAL_MINUTES", 15)
        self.settle_delay = _env_int("SETTLE_DELAY_SECONDS", 30)
        self.run_on_start = _env_bool("RUN_ON_START", True)
        self.deliver_on_first_run = _env_bool("DELIVER_ON_FIRST_RUN", False)

    def validate(self) -> None:
        """Check required values and ranges.

        Raises:
            ConfigurationError: If anything required is missing or out of range
        """
        missing = [
            name
            for name, value in zip(
                self.REQUIRED_VARIABLES, (self.bot_token, self.channel_id)
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"{' and '.join(missing)} must be set")

        if not 1 <= self.interval_minutes <= 60 or 60 % self.interval_minutes:
            raise ConfigurationError(
                "SCHEDULE_INTERVAL_MINUTES must divide an hour evenly, "
                f"got {self.interval_minutes}"
            )

        if self.settle_delay < 0:
            raise ConfigurationError("SETTLE_DELAY_SECONDS must not be negative")

        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f"Unknown SCHEDULE_TIMEZONE: {self.timezone}"
            ) from e

    def get_telegram_config(self) -> TelegramConfig:
        """Get Telegram configuration."""
        return TelegramConfig(bot_token=self.bot_token, chat_id=self.channel_id)

    def get_source_config(self) -> SourceConfig:
        """Get source page configuration."""
        return SourceConfig(url=self.source_url, settle_delay=float(self.settle_delay))

    def get_schedule_config(self) -> ScheduleConfig:
        """Get schedule configuration."""
        return ScheduleConfig(
            interval_minutes=self.interval_minutes,
            timezone=self.timezone,
            run_on_start=self.run_on_start,
            deliver_on_first_run=self.deliver_on_first_run,
        )

    def get_storage_config(self) -> StorageConfig:
        """Get snapshot storage configuration."""
        return StorageConfig(data_path=Path(self.data_path))


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")
