"""Domain layer - pure business models with no external dependencies."""

from portfolio_feed.domain.models import Holding, MARKET_FIELDS
from portfolio_feed.domain.views import (
    QuoteResolution,
    EnrichmentReport,
    SectorRollup,
    PortfolioSnapshot,
)

__all__ = [
    "Holding",
    "MARKET_FIELDS",
    "QuoteResolution",
    "EnrichmentReport",
    "SectorRollup",
    "PortfolioSnapshot",
]
