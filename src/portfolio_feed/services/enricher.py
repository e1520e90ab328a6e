"""Apply resolved prices to holdings with bounded concurrency."""

import asyncio
import logging
from typing import Optional, Sequence

from portfolio_feed.core.numbers import round2, safe_percent
from portfolio_feed.domain.models import Holding
from portfolio_feed.domain.views import EnrichmentReport, QuoteResolution
from portfolio_feed.services.quote_chain import QuoteProviderChain

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5


def apply_price(holding: Holding, price: float) -> Holding:
    """
    Set cmp and recompute valuation fields.

    present_value = cmp * qty
    gain_loss = present_value - investment
    gain_loss_percent = gain_loss / investment * 100 (0 when investment is 0)
    """
    holding.cmp = round2(price)
    holding.present_value = round2(holding.cmp * holding.qty)
    holding.gain_loss = round2(holding.present_value - holding.investment)
    holding.gain_loss_percent = safe_percent(holding.gain_loss, holding.investment)
    return holding


class Enricher:
    """
    Resolve and apply prices for a set of holdings.

    At most `max_concurrency` holdings are resolved at once; the rest wait
    on the gate. Holdings without a resolved price keep their previous
    valuation fields.
    """

    def __init__(
        self,
        chain: QuoteProviderChain,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._chain = chain
        self._max_concurrency = max(max_concurrency, 1)

    async def enrich_one(self, holding: Holding) -> QuoteResolution:
        resolution = await self._chain.resolve(holding)
        if resolution.resolved:
            apply_price(holding, resolution.price)
        return resolution

    async def enrich_all(
        self,
        holdings: Sequence[Holding],
        deadline_seconds: Optional[float] = None,
    ) -> EnrichmentReport:
        """
        Enrich every holding, abandoning whatever is still pending at the deadline.

        Abandoned holdings are cancelled and keep their prior values.
        """
        report = EnrichmentReport()
        if not holdings:
            return report

        gate = asyncio.Semaphore(self._max_concurrency)

        async def worker(holding: Holding) -> QuoteResolution:
            async with gate:
                return await self.enrich_one(holding)

        tasks = {asyncio.create_task(worker(h)): h for h in holdings}
        try:
            done, pending = await asyncio.wait(tasks, timeout=deadline_seconds)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Cycle deadline reached; abandoned %d of %d holdings: %s",
                len(pending),
                len(tasks),
                ", ".join(sorted(tasks[t].symbol for t in pending)),
            )
        report.abandoned = len(pending)

        for task in done:
            holding = tasks[task]
            if task.cancelled():
                report.abandoned += 1
                continue
            if task.exception() is not None:
                logger.error("Enrichment failed for %s: %s", holding.symbol, task.exception())
                report.unresolved += 1
                continue
            resolution = task.result()
            if resolution.resolved:
                report.resolved += 1
                if resolution.corrected_symbol:
                    report.corrected_symbols[holding.name] = resolution.corrected_symbol
            else:
                report.unresolved += 1

        return report
