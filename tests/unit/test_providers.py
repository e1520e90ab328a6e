"""
Unit tests for the concrete quote providers.

Uses fakes and httpx.MockTransport to avoid hitting Yahoo Finance or Google.
"""

import asyncio
import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest

from portfolio_feed.core.exceptions import ProviderNoData
from portfolio_feed.providers import (
    ScrapeQuoteProvider,
    StubQuoteProvider,
    YahooQuoteProvider,
    YahooSymbolSearch,
)
from portfolio_feed.providers.scrape_provider import extract_price, parse_price_text


# -----------------------------------------------------------------------------
# Price text parsing
# -----------------------------------------------------------------------------


class TestParsePriceText:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("₹3,245.60", 3245.60),
            ("$1,024", 1024.0),
            ("Rs. 812.75", 812.75),
            ("  428.30 ", 428.30),
        ],
    )
    def test_strips_currency_and_separators(self, text, expected):
        assert parse_price_text(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", [None, "", "N/A", "-12.5", "0", "₹"])
    def test_non_positive_or_non_numeric_is_none(self, text):
        assert parse_price_text(text) is None


class TestExtractPrice:
    def test_first_matching_candidate_wins(self):
        html = """
        <div data-last-price="3200.5"></div>
        <div class="YMlKec fxKbKc">₹3,100.00</div>
        """
        assert extract_price(html) == 3200.5

    def test_falls_through_to_later_candidates(self):
        html = """
        <div data-last-price="n/a"></div>
        <div class="YMlKec fxKbKc">₹3,245.60</div>
        """
        assert extract_price(html) == pytest.approx(3245.60)

    def test_skips_unparseable_matches_of_same_selector(self):
        html = '<div class="YMlKec">—</div><div class="YMlKec">₹1,510.25</div>'
        assert extract_price(html) == pytest.approx(1510.25)

    def test_no_match_returns_none(self):
        assert extract_price("<html><body><p>Nothing here</p></body></html>") is None


# -----------------------------------------------------------------------------
# ScrapeQuoteProvider
# -----------------------------------------------------------------------------


def scrape_provider(handler) -> ScrapeQuoteProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScrapeQuoteProvider(base_url="https://finance.example/quote", client=client)


class TestScrapeQuoteProvider:
    def test_build_url_strips_exchange_suffix(self):
        provider = ScrapeQuoteProvider(base_url="https://finance.example/quote/")
        assert provider.build_url("RELIANCE.NS") == "https://finance.example/quote/RELIANCE:NSE"
        assert provider.build_url("tcs.bo") == "https://finance.example/quote/TCS:NSE"
        asyncio.run(provider.aclose())

    def test_resolve_parses_page(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text='<div class="YMlKec fxKbKc">₹2,875.40</div>')

        provider = scrape_provider(handler)

        price = asyncio.run(provider.resolve("RELIANCE.NS"))

        assert price == pytest.approx(2875.40)
        assert requested == ["https://finance.example/quote/RELIANCE:NSE"]

    def test_page_without_price_raises_no_data(self):
        provider = scrape_provider(lambda request: httpx.Response(200, text="<html></html>"))

        with pytest.raises(ProviderNoData):
            asyncio.run(provider.resolve("RELIANCE.NS"))

    def test_http_error_raises(self):
        provider = scrape_provider(lambda request: httpx.Response(503))

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(provider.resolve("RELIANCE.NS"))


# -----------------------------------------------------------------------------
# Yahoo providers (yfinance patched)
# -----------------------------------------------------------------------------


class TestYahooQuoteProvider:
    def test_current_price_preferred(self):
        yf = MagicMock()
        yf.Ticker.return_value = MagicMock(info={"currentPrice": 3200.0, "regularMarketPrice": 3100.0})

        with patch("portfolio_feed.providers.yahoo_provider._get_yf", return_value=yf):
            price = asyncio.run(YahooQuoteProvider().resolve("TCS.NS"))

        assert price == 3200.0
        yf.Ticker.assert_called_once_with("TCS.NS")

    def test_regular_market_price_fallback(self):
        yf = MagicMock()
        yf.Ticker.return_value = MagicMock(info={"regularMarketPrice": 3100.0})

        with patch("portfolio_feed.providers.yahoo_provider._get_yf", return_value=yf):
            assert asyncio.run(YahooQuoteProvider().resolve("TCS.NS")) == 3100.0

    def test_missing_price_raises_no_data(self):
        yf = MagicMock()
        yf.Ticker.return_value = MagicMock(info={"longName": "Unknown"})

        with patch("portfolio_feed.providers.yahoo_provider._get_yf", return_value=yf):
            with pytest.raises(ProviderNoData):
                asyncio.run(YahooQuoteProvider().resolve("NOPE.NS"))

    def test_hung_call_holds_one_worker_and_queued_calls_are_dropped(self):
        """
        GIVEN a single-worker provider whose first yfinance call hangs
        WHEN three lookups each time out while waiting
        THEN only the first call ever reaches yfinance, even after it unblocks
        """
        release = threading.Event()
        yf = MagicMock()

        def slow_ticker(symbol):
            release.wait(5)
            return MagicMock(info={"currentPrice": 100.0})

        yf.Ticker.side_effect = slow_ticker
        provider = YahooQuoteProvider(max_workers=1)

        async def scenario():
            for symbol in ("A.NS", "B.NS", "C.NS"):
                with pytest.raises(asyncio.TimeoutError):
                    await asyncio.wait_for(provider.resolve(symbol), timeout=0.05)
            calls_while_hung = yf.Ticker.call_count
            release.set()
            await asyncio.sleep(0.2)
            total_calls = yf.Ticker.call_count
            await provider.aclose()
            return calls_while_hung, total_calls

        with patch("portfolio_feed.providers.yahoo_provider._get_yf", return_value=yf):
            calls_while_hung, total_calls = asyncio.run(scenario())

        assert calls_while_hung == 1
        assert total_calls == 1
        yf.Ticker.assert_called_once_with("A.NS")


class TestYahooSymbolSearch:
    def test_picks_first_local_exchange_hit(self):
        yf = MagicMock()
        yf.Search.return_value = MagicMock(
            quotes=[
                {"symbol": "TTE"},
                {"symbol": "TCS.BO"},
                {"symbol": "TCS.NS"},
            ]
        )

        with patch("portfolio_feed.providers.yahoo_provider._get_yf", return_value=yf):
            symbol = asyncio.run(YahooSymbolSearch([".NS", ".BO"]).discover("Tata Consultancy"))

        assert symbol == "TCS.BO"
        yf.Search.assert_called_once_with("Tata Consultancy", max_results=10, timeout=10)

    def test_no_local_match_returns_none(self):
        search = YahooSymbolSearch([".NS"])
        assert search.pick_symbol([{"symbol": "AAPL"}, "garbage", {"symbol": None}]) is None


class TestStubQuoteProvider:
    def test_known_symbol_fixed_price(self):
        assert asyncio.run(StubQuoteProvider().resolve("tcs.ns")) == 3200.0

    def test_unknown_symbol_is_deterministic(self):
        provider = StubQuoteProvider(seed=7)
        first = asyncio.run(provider.resolve("NEWCO.NS"))
        second = asyncio.run(provider.resolve("NEWCO.NS"))
        assert first == second
        assert first > 0
