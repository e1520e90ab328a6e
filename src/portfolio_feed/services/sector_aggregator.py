"""Group holdings into per-sector rollups."""

import logging
from typing import Sequence

from portfolio_feed.core.numbers import round2, safe_percent
from portfolio_feed.domain.models import Holding
from portfolio_feed.domain.views import SectorRollup

logger = logging.getLogger(__name__)

DEFAULT_SECTOR = "Others"


class SectorAggregator:
    """
    Compute sector rollups from enriched holdings.

    Sectors appear in first-seen order; holdings keep their input order
    within a sector. Holdings with an empty sector go to "Others".
    """

    def __init__(self, default_sector: str = DEFAULT_SECTOR):
        self._default_sector = default_sector

    def sector_of(self, holding: Holding) -> str:
        return (holding.sector or "").strip() or self._default_sector

    def aggregate(self, holdings: Sequence[Holding]) -> list[SectorRollup]:
        groups: dict[str, list[Holding]] = {}
        for holding in holdings:
            groups.setdefault(self.sector_of(holding), []).append(holding)

        portfolio_investment = sum(h.investment for h in holdings)
        rollups: list[SectorRollup] = []

        for sector, members in groups.items():
            total_investment = round2(sum(h.investment for h in members))
            present_value = round2(sum(h.present_value for h in members))
            gain_loss = round2(present_value - total_investment)
            zero_investment = total_investment == 0
            if zero_investment:
                logger.warning("Sector %r has zero total investment; reporting 0%% gain", sector)

            for holding in members:
                holding.portfolio_percentage = safe_percent(holding.investment, portfolio_investment)

            rollups.append(
                SectorRollup(
                    sector=sector,
                    total_investment=total_investment,
                    present_value=present_value,
                    gain_loss=gain_loss,
                    gain_loss_percent=safe_percent(gain_loss, total_investment),
                    portfolio_percentage=safe_percent(total_investment, portfolio_investment),
                    zero_investment=zero_investment,
                    stocks=list(members),
                )
            )

        return rollups
