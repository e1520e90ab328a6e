"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_holdings_path() -> Path:
    """Return the default holdings file location."""
    return Path.cwd() / "data" / "holdings.csv"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Portfolio Feed"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Holdings source (CSV file)
    holdings_path: Optional[Path] = None

    # Quote resolution
    quote_cache_ttl_seconds: float = 60
    provider_timeout_seconds: float = 10
    max_concurrent_requests: int = 5
    min_request_interval_seconds: float = 0.0
    exchange_suffixes: list[str] = [".NS", ".BO"]
    use_stub_provider: bool = False

    # Secondary (scraped) quote source
    scrape_base_url: str = "https://www.google.com/finance/quote"
    scrape_exchange: str = "NSE"

    # Broadcast schedule
    refresh_interval_seconds: float = 15
    cycle_deadline_seconds: float = 30

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    def get_holdings_path(self) -> Path:
        """Get the holdings file path, falling back to the default location."""
        return self.holdings_path or get_default_holdings_path()

    @property
    def primary_suffix(self) -> str:
        """Suffix appended to bare exchange codes."""
        return self.exchange_suffixes[0] if self.exchange_suffixes else ""


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
