"""Domain models."""

from portfolio_feed.domain.models.holding import Holding, MARKET_FIELDS

__all__ = [
    "Holding",
    "MARKET_FIELDS",
]
