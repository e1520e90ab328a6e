"""Holding domain model."""

from dataclasses import dataclass, field
from typing import Any, Optional

# Fields rewritten by a successful quote resolution
MARKET_FIELDS = ("cmp", "present_value", "gain_loss", "gain_loss_percent")


@dataclass
class Holding:
    """
    One portfolio position with cost basis, quantity and derived market metrics.

    `symbol` is mutable: the quote chain may replace it once per resolution
    when a provider-side search discovers the correct identifier.
    Percentages are pre-scaled (6.67 means 6.67%).
    """

    id: int
    name: str
    purchase_price: float
    qty: float
    investment: float
    symbol: str
    sector: str = ""
    cmp: float = 0.0
    present_value: float = 0.0
    gain_loss: float = 0.0
    gain_loss_percent: float = 0.0
    portfolio_percentage: float = 0.0
    market_cap: Optional[Any] = None
    pe: Optional[Any] = None
    latest_earnings: Optional[Any] = None
    stage: Optional[str] = None
    remark: str = ""
    fundamentals: dict[str, Any] = field(default_factory=dict)
    growth3yr: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> tuple[int, str]:
        """Key used to match the same position across reloads."""
        return (self.id, self.name)

    def carry_market_fields(self, previous: "Holding") -> None:
        """Copy the last known market fields (and corrected symbol) from a prior cycle."""
        if not previous.cmp:
            return
        for name in MARKET_FIELDS:
            setattr(self, name, getattr(previous, name))
        self.symbol = previous.symbol
