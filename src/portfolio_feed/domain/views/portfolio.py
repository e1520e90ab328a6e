"""View models for quote resolution and aggregation outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from portfolio_feed.domain.models import Holding


@dataclass
class QuoteResolution:
    """Result of running the provider chain for one holding."""

    symbol: str
    price: Optional[float] = None
    provider_id: Optional[str] = None
    corrected_symbol: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.price is not None


@dataclass
class EnrichmentReport:
    """Outcome counts for one enrichment pass."""

    resolved: int = 0
    unresolved: int = 0
    abandoned: int = 0
    corrected_symbols: dict[str, str] = field(default_factory=dict)


@dataclass
class SectorRollup:
    """Aggregated totals for all holdings sharing a sector tag."""

    sector: str
    total_investment: float = 0.0
    present_value: float = 0.0
    gain_loss: float = 0.0
    gain_loss_percent: float = 0.0
    portfolio_percentage: float = 0.0
    # Set when total_investment is 0 and gain_loss_percent was substituted
    zero_investment: bool = False
    stocks: list[Holding] = field(default_factory=list)


@dataclass
class PortfolioSnapshot:
    """One internally consistent result of a refresh cycle."""

    success: bool
    data: list[SectorRollup] = field(default_factory=list)
    error: Optional[str] = None
    as_of: Optional[datetime] = None
    report: Optional[EnrichmentReport] = None

    @classmethod
    def failure(cls, error: str, as_of: Optional[datetime] = None) -> "PortfolioSnapshot":
        return cls(success=False, error=error, as_of=as_of)
