"""Pydantic schemas for portfolio endpoints and stream events."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from portfolio_feed.domain.models import Holding
from portfolio_feed.domain.views import PortfolioSnapshot, SectorRollup


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class HoldingResponse(_CamelModel):
    """A single holding with its current valuation (percentages pre-scaled)."""

    id: int
    name: str
    purchase_price: float
    qty: float
    investment: float
    portfolio_percentage: float
    symbol: str
    sector: str
    cmp: float
    present_value: float
    gain_loss: float
    gain_loss_percent: float
    market_cap: Optional[Any] = None
    pe: Optional[Any] = None
    latest_earnings: Optional[Any] = None
    stage: Optional[str] = None
    remark: str = ""
    fundamentals: dict[str, Any] = {}
    # Explicit alias: to_camel would turn this into "growth3Yr"
    growth3yr: dict[str, Any] = Field(default_factory=dict, alias="growth3yr")


class SectorRollupResponse(_CamelModel):
    """Aggregated totals for one sector."""

    sector: str
    total_investment: float
    portfolio_percentage: float
    present_value: float
    gain_loss: float
    gain_loss_percent: float
    zero_investment: bool = False
    stocks: list[HoldingResponse]


class PortfolioResponse(_CamelModel):
    """`{success, data}` on success, `{success: false, error}` on failure."""

    success: bool
    data: Optional[list[SectorRollupResponse]] = None
    error: Optional[str] = None


def rollup_to_response(rollup: SectorRollup) -> SectorRollupResponse:
    return SectorRollupResponse(
        sector=rollup.sector,
        total_investment=rollup.total_investment,
        portfolio_percentage=rollup.portfolio_percentage,
        present_value=rollup.present_value,
        gain_loss=rollup.gain_loss,
        gain_loss_percent=rollup.gain_loss_percent,
        zero_investment=rollup.zero_investment,
        stocks=[holding_to_response(h) for h in rollup.stocks],
    )


def holding_to_response(holding: Holding) -> HoldingResponse:
    return HoldingResponse.model_validate(holding)


def snapshot_to_response(snapshot: PortfolioSnapshot) -> PortfolioResponse:
    if not snapshot.success:
        return PortfolioResponse(success=False, error=snapshot.error or "Unknown error")
    return PortfolioResponse(
        success=True,
        data=[rollup_to_response(r) for r in snapshot.data],
    )


def snapshot_to_json(snapshot: PortfolioSnapshot) -> str:
    """Serialize a snapshot exactly as the HTTP endpoint would."""
    return snapshot_to_response(snapshot).model_dump_json(by_alias=True, exclude_none=True)
