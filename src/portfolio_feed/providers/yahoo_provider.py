"""
Yahoo Finance providers via yfinance: primary price lookup and name search.

yfinance is blocking, so calls run on a small dedicated thread pool. A call
that hangs holds one pool thread at most; calls still queued when the chain
times out are dropped before they start.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional, Sequence

from portfolio_feed.core.exceptions import ProviderNoData
from portfolio_feed.core.numbers import parse_number

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_SEARCH_TIMEOUT_SECONDS = 10


# Lazy import so tests can patch before import
def _get_yf():
    import yfinance as yf
    return yf


def _price_from_info(info: object) -> Optional[float]:
    """Pick currentPrice, then regularMarketPrice, from a yfinance info dict."""
    if not isinstance(info, dict):
        return None
    for key in ("currentPrice", "regularMarketPrice"):
        price = parse_number(info.get(key))
        if price is not None and price > 0:
            return price
    return None


class _YahooBase:
    """Runs blocking yfinance calls on a bounded executor owned by the provider."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        self._executor = ThreadPoolExecutor(
            max_workers=max(max_workers, 1),
            thread_name_prefix=self.provider_id,
        )

    async def _run(self, func: Callable, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args))

    async def aclose(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


class YahooQuoteProvider(_YahooBase):
    """Primary quote source: yfinance ticker info for the holding's symbol."""

    provider_id = "yahoo"

    async def resolve(self, symbol: str) -> Optional[float]:
        return await self._run(self._fetch_price, symbol)

    def _fetch_price(self, symbol: str) -> Optional[float]:
        yf = _get_yf()
        ticker = yf.Ticker(symbol)
        price = _price_from_info(ticker.info)
        if price is None:
            raise ProviderNoData(self.provider_id, symbol, "no price in quote")
        return price


class YahooSymbolSearch(_YahooBase):
    """
    Name-based symbol discovery via yfinance search.

    Results are restricted to the configured local-exchange suffixes
    (e.g. ".NS", ".BO"); the first matching quote wins.
    """

    provider_id = "yahoo-search"

    def __init__(
        self,
        exchange_suffixes: Sequence[str] = (".NS", ".BO"),
        max_results: int = 10,
        timeout: float = DEFAULT_SEARCH_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        super().__init__(max_workers=max_workers)
        self._suffixes = tuple(s.upper() for s in exchange_suffixes)
        self._max_results = max_results
        self._timeout = timeout

    async def discover(self, name: str) -> Optional[str]:
        return await self._run(self._search, name)

    def _search(self, name: str) -> Optional[str]:
        yf = _get_yf()
        search = yf.Search(name, max_results=self._max_results, timeout=self._timeout)
        return self.pick_symbol(search.quotes or [])

    def pick_symbol(self, quotes: list) -> Optional[str]:
        """Return the first search hit listed on a recognized exchange."""
        for quote in quotes:
            if not isinstance(quote, dict):
                continue
            symbol = (quote.get("symbol") or "").strip().upper()
            if symbol and symbol.endswith(self._suffixes):
                return symbol
        return None
