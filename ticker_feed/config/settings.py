"""
Ticker Feed - Central Configuration
All settings are loaded from environment variables with sensible defaults.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_OUTPUT_PATH = "bar-data.json"
DEFAULT_TIMESTAMP_OFFSET_MINUTES = 330  # +05:30


class DataSourceSettings(BaseSettings):
    """Upstream endpoints and HTTP client behaviour."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    stooq_base_url: str = "https://stooq.com"
    stooq_alternate_url: str = "https://stooq.pl"

    coingecko_base_url: str = "https://api.coingecko.com/api/v3"

    yahoo_base_url: str = "https://query1.finance.yahoo.com"
    yahoo_alternate_url: str = "https://query2.finance.yahoo.com"

    request_timeout_seconds: float = 15.0
    # Some providers answer differently depending on the client identity
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrency: int = 4


class FeedSettings(BaseSettings):
    """Output file and source selection."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    output_path: str = DEFAULT_OUTPUT_PATH
    timestamp_offset_minutes: int = DEFAULT_TIMESTAMP_OFFSET_MINUTES
    enabled_sources: List[str] = ["stooq", "coingecko"]


class AppSettings(BaseSettings):
    """Top-level application settings."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Ticker Feed"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    data: DataSourceSettings = Field(default_factory=DataSourceSettings)
    feed: FeedSettings = Field(default_factory=FeedSettings)


# Singleton
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
