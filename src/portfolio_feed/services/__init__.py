"""Service layer - quote resolution, valuation and broadcast orchestration."""

from portfolio_feed.services.quote_cache import QuoteCache, CacheEntry
from portfolio_feed.services.quote_chain import QuoteProviderChain, RateLimiter
from portfolio_feed.services.enricher import Enricher, apply_price
from portfolio_feed.services.sector_aggregator import SectorAggregator
from portfolio_feed.services.broadcaster import (
    UpdateBroadcaster,
    Subscriber,
    SubscriberState,
)

__all__ = [
    "QuoteCache",
    "CacheEntry",
    "QuoteProviderChain",
    "RateLimiter",
    "Enricher",
    "apply_price",
    "SectorAggregator",
    "UpdateBroadcaster",
    "Subscriber",
    "SubscriberState",
]
