"""API schemas package."""

from portfolio_feed.api.schemas.portfolio import (
    HoldingResponse,
    SectorRollupResponse,
    PortfolioResponse,
    snapshot_to_response,
    snapshot_to_json,
)

__all__ = [
    "HoldingResponse",
    "SectorRollupResponse",
    "PortfolioResponse",
    "snapshot_to_response",
    "snapshot_to_json",
]
