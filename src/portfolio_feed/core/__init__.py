"""Core utilities and shared functionality."""

from portfolio_feed.core.timezone import (
    now_market,
    MARKET_TZ,
)
from portfolio_feed.core.exceptions import (
    AppError,
    HoldingsSourceError,
    RecordParseError,
    ProviderError,
    ProviderTimeout,
    ProviderNoData,
)
from portfolio_feed.core.numbers import parse_number, round2, safe_percent

__all__ = [
    "now_market",
    "MARKET_TZ",
    "AppError",
    "HoldingsSourceError",
    "RecordParseError",
    "ProviderError",
    "ProviderTimeout",
    "ProviderNoData",
    "parse_number",
    "round2",
    "safe_percent",
]
