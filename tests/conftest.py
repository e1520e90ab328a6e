"""
Pytest configuration and fixtures for the portfolio feed tests.

This module provides:
- Deterministic fake quote providers and symbol search
- A controllable clock for cache TTL tests
- Holding factories and an in-memory holdings source
- CSV holdings files on disk
- An API test client wired to offline collaborators
"""

import asyncio
import copy
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from portfolio_feed.app_context import AppContext, set_app_context
from portfolio_feed.config.settings import Settings, reset_settings
from portfolio_feed.core.exceptions import HoldingsSourceError, ProviderNoData
from portfolio_feed.core.timezone import now_market
from portfolio_feed.domain.models import Holding
from portfolio_feed.services import (
    Enricher,
    QuoteCache,
    QuoteProviderChain,
    SectorAggregator,
    UpdateBroadcaster,
)


# =============================================================================
# CLOCK HELPERS
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(fake_clock) -> QuoteCache:
    """Fresh cache per test with a 60 second TTL."""
    return QuoteCache(ttl_seconds=60, clock=fake_clock)


# =============================================================================
# QUOTE PROVIDER FAKES
# =============================================================================


class FakeQuoteProvider:
    """
    Deterministic quote provider for testing.

    Returns fixed prices, records every call, and can be told to hang
    (simulating a provider slower than any timeout) for chosen symbols.
    """

    def __init__(
        self,
        provider_id: str = "fake",
        prices: Optional[dict[str, float]] = None,
        slow_symbols: Optional[set[str]] = None,
        delay: float = 3600.0,
    ):
        self.provider_id = provider_id
        self.prices = dict(prices or {})
        self.slow_symbols = set(slow_symbols or ())
        self.delay = delay
        self.calls: list[str] = []

    async def resolve(self, symbol: str) -> Optional[float]:
        self.calls.append(symbol)
        if symbol in self.slow_symbols:
            await asyncio.sleep(self.delay)
        return self.prices.get(symbol)

    def call_count(self, symbol: str) -> int:
        return self.calls.count(symbol)


class MissingQuoteProvider(FakeQuoteProvider):
    """Provider that knows no symbols and says so with ProviderNoData."""

    async def resolve(self, symbol: str) -> Optional[float]:
        self.calls.append(symbol)
        raise ProviderNoData(self.provider_id, symbol)


class FailingQuoteProvider(FakeQuoteProvider):
    """Provider that always raises a transport error."""

    async def resolve(self, symbol: str) -> Optional[float]:
        self.calls.append(symbol)
        raise ConnectionError("Network unavailable")


class FakeSymbolSearch:
    """Name -> symbol search with a fixed mapping."""

    provider_id = "fake-search"

    def __init__(self, mapping: Optional[dict[str, str]] = None):
        self.mapping = dict(mapping or {})
        self.calls: list[str] = []

    async def discover(self, name: str) -> Optional[str]:
        self.calls.append(name)
        return self.mapping.get(name)


# =============================================================================
# HOLDINGS
# =============================================================================


def make_holding(
    holding_id: int = 1,
    name: str = "Tata Consultancy Services",
    symbol: str = "TCS.NS",
    purchase_price: float = 3000.0,
    qty: float = 10,
    investment: Optional[float] = None,
    sector: str = "Tech",
    cmp: float = 0.0,
    present_value: float = 0.0,
    gain_loss: float = 0.0,
    gain_loss_percent: float = 0.0,
) -> Holding:
    """Build a Holding; investment defaults to purchase_price * qty."""
    return Holding(
        id=holding_id,
        name=name,
        purchase_price=purchase_price,
        qty=qty,
        investment=purchase_price * qty if investment is None else investment,
        symbol=symbol,
        sector=sector,
        cmp=cmp,
        present_value=present_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
    )


class InMemoryHoldingsSource:
    """Holdings source returning fresh copies of a fixed list."""

    def __init__(self, holdings: list[Holding], error: Optional[str] = None):
        self.holdings = holdings
        self.error = error
        self.load_count = 0

    def load(self) -> list[Holding]:
        self.load_count += 1
        if self.error:
            raise HoldingsSourceError(self.error)
        return copy.deepcopy(self.holdings)


@pytest.fixture
def sample_holdings() -> list[Holding]:
    """Five holdings over three sectors (one with no sector)."""
    return [
        make_holding(1, "Tata Consultancy Services", "TCS.NS", 3000, 10, sector="Tech"),
        make_holding(2, "HDFC Bank", "HDFCBANK.NS", 1500, 20, sector="Financial"),
        make_holding(3, "Infosys", "INFY.NS", 1400, 10, sector="Tech"),
        make_holding(4, "ITC", "ITC.NS", 400, 100, sector=""),
        make_holding(5, "ICICI Bank", "ICICIBANK.NS", 1000, 10, sector="Financial"),
    ]


SAMPLE_PRICES = {
    "TCS.NS": 3200.0,
    "HDFCBANK.NS": 1600.0,
    "INFY.NS": 1500.0,
    "ITC.NS": 450.0,
    "ICICIBANK.NS": 1100.0,
}


def build_broadcaster(
    source,
    providers: list,
    symbol_search=None,
    cache: Optional[QuoteCache] = None,
    deadline: Optional[float] = 5.0,
    timeout: float = 10.0,
    interval: float = 3600.0,
    max_concurrency: int = 5,
    clock=None,
) -> UpdateBroadcaster:
    """Wire a full pipeline around the given collaborators."""
    chain = QuoteProviderChain(
        cache=cache or QuoteCache(ttl_seconds=60),
        providers=providers,
        symbol_search=symbol_search,
        timeout_seconds=timeout,
    )
    return UpdateBroadcaster(
        source=source,
        enricher=Enricher(chain, max_concurrency=max_concurrency),
        aggregator=SectorAggregator(),
        interval_seconds=interval,
        cycle_deadline_seconds=deadline,
        clock=clock or now_market,
    )


# =============================================================================
# CSV FILES
# =============================================================================


HOLDINGS_CSV = """name,purchase_price,qty,investment,symbol,sector,cmp,fundamentals.revenue,growth3yr.profit,remark
Particulars,,,,,,,,,
Tech Sector,,,,,,,,,
Tata Consultancy Services,3000,10,30000,TCS,,3100,240000,12.5,core
Infosys,1400,10,,INFY.NS,,,,,
Broken Co,abc,10,,BRK,,,,,
Financial Sector,,,,,,,,,
HDFC Bank,1500,20,30000,HDFCBANK,,,,,
Others,,,,,,,,,
Some Small Cap,100,50,5000,,,,,,
Explicit Sector Co,200,5,1000,ESC,Energy,,,,
"""


@pytest.fixture
def holdings_csv(tmp_path: Path) -> Path:
    path = tmp_path / "holdings.csv"
    path.write_text(HOLDINGS_CSV, encoding="utf-8")
    return path


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def api_settings(holdings_csv) -> Settings:
    """Offline settings: stub provider, long interval, CSV from tmp_path."""
    reset_settings()
    return Settings(
        holdings_path=holdings_csv,
        use_stub_provider=True,
        refresh_interval_seconds=3600,
        cycle_deadline_seconds=5,
    )


@pytest.fixture
def client(api_settings):
    """Test client with lifespan running against an offline AppContext."""
    from portfolio_feed.main import app

    context = AppContext(settings=api_settings)
    set_app_context(context)
    with TestClient(app) as test_client:
        yield test_client
    set_app_context(None)
    reset_settings()
