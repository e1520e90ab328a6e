"""Ordered quote provider fallback with per-step caching and symbol correction."""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Optional, Sequence

from portfolio_feed.core.exceptions import ProviderError, ProviderNoData, ProviderTimeout
from portfolio_feed.domain.models import Holding
from portfolio_feed.domain.views import QuoteResolution
from portfolio_feed.providers.quote_provider import QuoteProvider, SymbolSearchProvider
from portfolio_feed.services.quote_cache import QuoteCache

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 10


class RateLimiter:
    """Spaces successive calls to one provider at least `min_interval` seconds apart."""

    def __init__(self, min_interval: float, clock: Callable[[], float] = time.monotonic):
        self.min_interval = min_interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._next_time = 0.0

    async def wait(self) -> None:
        if self.min_interval <= 0:
            return
        async with self._lock:
            now = self._clock()
            delay = self._next_time - now
            if delay > 0:
                await asyncio.sleep(delay)
                now = self._clock()
            self._next_time = now + self.min_interval


class QuoteProviderChain:
    """
    Resolve a holding's price through an ordered list of providers.

    Steps, each cache-checked and cache-populated under (provider_id, symbol):

    1. Primary lookup with the holding's current symbol.
    2. Symbol discovery: name search restricted to local exchanges; on a hit
       the primary is retried with the discovered symbol.
    3. Fallback providers, in order, with the best known symbol.

    Provider failures of any kind (timeout, bad payload, no match) are logged
    and treated as misses. When a price is found using a discovered symbol,
    that symbol is written onto the holding.
    """

    def __init__(
        self,
        cache: QuoteCache,
        providers: Sequence[QuoteProvider],
        symbol_search: Optional[SymbolSearchProvider] = None,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        min_request_interval_seconds: float = 0.0,
    ):
        if not providers:
            raise ValueError("QuoteProviderChain needs at least one provider")
        self._cache = cache
        self._primary = providers[0]
        self._fallbacks = list(providers[1:])
        self._search = symbol_search
        self._timeout = timeout_seconds

        ids = [p.provider_id for p in providers]
        if symbol_search is not None:
            ids.append(symbol_search.provider_id)
        self._limiters = {pid: RateLimiter(min_request_interval_seconds) for pid in ids}

    @property
    def provider_ids(self) -> list[str]:
        return [self._primary.provider_id] + [p.provider_id for p in self._fallbacks]

    async def resolve(self, holding: Holding) -> QuoteResolution:
        """Run the chain for one holding. Never raises for provider failures."""
        original = holding.symbol
        working = original

        price = await self._lookup(self._primary, working)
        provider_id = self._primary.provider_id

        if price is None and self._search is not None:
            discovered = await self._discover(holding.name)
            if discovered and discovered != original:
                logger.info("Symbol search mapped %r (%s) -> %s", holding.name, original, discovered)
                working = discovered
                price = await self._lookup(self._primary, working)

        if price is None:
            for provider in self._fallbacks:
                price = await self._lookup(provider, working)
                if price is not None:
                    provider_id = provider.provider_id
                    break

        if price is None:
            logger.warning("No price after fallbacks for %s (%s)", original, holding.name)
            return QuoteResolution(symbol=original)

        corrected = working if working != original else None
        if corrected:
            holding.symbol = corrected
        return QuoteResolution(
            symbol=holding.symbol,
            price=price,
            provider_id=provider_id,
            corrected_symbol=corrected,
        )

    async def _lookup(self, provider: QuoteProvider, symbol: str) -> Optional[float]:
        key = (provider.provider_id, symbol)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = await self._call(provider.provider_id, symbol, lambda: provider.resolve(symbol))
        price = _as_price(result)
        if price is None:
            if result is not None:
                logger.debug("%s", ProviderNoData(provider.provider_id, symbol, f"unusable price {result!r}"))
            return None
        self._cache.set(key, price)
        return price

    async def _discover(self, name: str) -> Optional[str]:
        search = self._search
        if not name:
            return None
        key = (search.provider_id, name.strip().lower())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        symbol = await self._call(search.provider_id, name, lambda: search.discover(name))
        if not symbol:
            return None
        symbol = str(symbol).strip().upper()
        self._cache.set(key, symbol)
        return symbol

    async def _call(self, provider_id: str, subject: str, factory: Callable[[], Awaitable]):
        try:
            await self._limiters[provider_id].wait()
            return await asyncio.wait_for(factory(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("%s", ProviderTimeout(provider_id, subject, self._timeout))
        except ProviderError as exc:
            logger.debug("%s", exc)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Quote provider %s failed for %s: %s", provider_id, subject, exc)
        return None


def _as_price(value: object) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)
