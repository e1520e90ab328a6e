"""Quote providers module."""

from portfolio_feed.providers.quote_provider import QuoteProvider, SymbolSearchProvider
from portfolio_feed.providers.scrape_provider import ScrapeQuoteProvider
from portfolio_feed.providers.stub_provider import StubQuoteProvider
from portfolio_feed.providers.yahoo_provider import YahooQuoteProvider, YahooSymbolSearch

__all__ = [
    "QuoteProvider",
    "SymbolSearchProvider",
    "ScrapeQuoteProvider",
    "StubQuoteProvider",
    "YahooQuoteProvider",
    "YahooSymbolSearch",
]
