"""Application context for in-process service management.

Wires the quote pipeline once per process: cache, providers, chain,
enricher, aggregator and broadcaster all share one lifetime.
"""

from typing import Optional

from portfolio_feed.config.settings import Settings, get_settings
from portfolio_feed.providers import (
    QuoteProvider,
    ScrapeQuoteProvider,
    StubQuoteProvider,
    SymbolSearchProvider,
    YahooQuoteProvider,
    YahooSymbolSearch,
)
from portfolio_feed.services import (
    Enricher,
    QuoteCache,
    QuoteProviderChain,
    SectorAggregator,
    UpdateBroadcaster,
)
from portfolio_feed.sources import CsvHoldingsSource, HoldingsSource


class AppContext:
    """
    Application context providing access to the quote pipeline.

    Collaborators can be injected (tests, alternative sources); anything not
    supplied is built lazily from settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        holdings_source: Optional[HoldingsSource] = None,
        providers: Optional[list[QuoteProvider]] = None,
        symbol_search: Optional[SymbolSearchProvider] = None,
    ):
        self._settings = settings
        self._holdings_source = holdings_source
        self._providers = providers
        self._symbol_search = symbol_search
        self._search_resolved = symbol_search is not None

        # Service instances (lazy initialized)
        self._cache: Optional[QuoteCache] = None
        self._chain: Optional[QuoteProviderChain] = None
        self._enricher: Optional[Enricher] = None
        self._aggregator: Optional[SectorAggregator] = None
        self._broadcaster: Optional[UpdateBroadcaster] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def holdings_source(self) -> HoldingsSource:
        if self._holdings_source is None:
            self._holdings_source = CsvHoldingsSource(
                self.settings.get_holdings_path(),
                default_suffix=self.settings.primary_suffix,
            )
        return self._holdings_source

    @property
    def providers(self) -> list[QuoteProvider]:
        """Ordered providers: primary first, then fallbacks."""
        if self._providers is None:
            settings = self.settings
            if settings.use_stub_provider:
                self._providers = [StubQuoteProvider()]
            else:
                self._providers = [
                    YahooQuoteProvider(max_workers=settings.max_concurrent_requests),
                    ScrapeQuoteProvider(
                        base_url=settings.scrape_base_url,
                        exchange=settings.scrape_exchange,
                        exchange_suffixes=settings.exchange_suffixes,
                        timeout=settings.provider_timeout_seconds,
                    ),
                ]
        return self._providers

    @property
    def symbol_search(self) -> Optional[SymbolSearchProvider]:
        if not self._search_resolved:
            if not self.settings.use_stub_provider:
                self._symbol_search = YahooSymbolSearch(
                    self.settings.exchange_suffixes,
                    timeout=self.settings.provider_timeout_seconds,
                    max_workers=self.settings.max_concurrent_requests,
                )
            self._search_resolved = True
        return self._symbol_search

    @property
    def cache(self) -> QuoteCache:
        if self._cache is None:
            self._cache = QuoteCache(ttl_seconds=self.settings.quote_cache_ttl_seconds)
        return self._cache

    @property
    def chain(self) -> QuoteProviderChain:
        if self._chain is None:
            self._chain = QuoteProviderChain(
                cache=self.cache,
                providers=self.providers,
                symbol_search=self.symbol_search,
                timeout_seconds=self.settings.provider_timeout_seconds,
                min_request_interval_seconds=self.settings.min_request_interval_seconds,
            )
        return self._chain

    @property
    def enricher(self) -> Enricher:
        if self._enricher is None:
            self._enricher = Enricher(
                chain=self.chain,
                max_concurrency=self.settings.max_concurrent_requests,
            )
        return self._enricher

    @property
    def aggregator(self) -> SectorAggregator:
        if self._aggregator is None:
            self._aggregator = SectorAggregator()
        return self._aggregator

    @property
    def broadcaster(self) -> UpdateBroadcaster:
        if self._broadcaster is None:
            self._broadcaster = UpdateBroadcaster(
                source=self.holdings_source,
                enricher=self.enricher,
                aggregator=self.aggregator,
                interval_seconds=self.settings.refresh_interval_seconds,
                cycle_deadline_seconds=self.settings.cycle_deadline_seconds,
            )
        return self._broadcaster

    async def aclose(self) -> None:
        """Stop the schedule and release provider resources."""
        if self._broadcaster is not None:
            await self._broadcaster.stop()
        for provider in [*(self._providers or []), self._symbol_search]:
            aclose = getattr(provider, "aclose", None)
            if aclose is not None:
                await aclose()


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
