"""View models for service outputs."""

from portfolio_feed.domain.views.portfolio import (
    QuoteResolution,
    EnrichmentReport,
    SectorRollup,
    PortfolioSnapshot,
)

__all__ = [
    "QuoteResolution",
    "EnrichmentReport",
    "SectorRollup",
    "PortfolioSnapshot",
]
