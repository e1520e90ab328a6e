"""Stub quote provider for offline/testing use."""

import random
from typing import Optional


# Deterministic fake prices for common NSE symbols
_STUB_PRICES: dict[str, float] = {
    "TCS.NS": 3200.00,
    "INFY.NS": 1510.25,
    "RELIANCE.NS": 2875.40,
    "HDFCBANK.NS": 1642.10,
    "ICICIBANK.NS": 1105.55,
    "ITC.NS": 428.30,
    "SBIN.NS": 812.75,
    "BAJFINANCE.NS": 6920.00,
}


class StubQuoteProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; unknown symbols get a price
    derived from a per-symbol seeded generator, so repeated calls agree.
    """

    provider_id = "stub"

    def __init__(self, seed: int = 42, prices: Optional[dict[str, float]] = None):
        self._seed = seed
        self._prices = dict(_STUB_PRICES if prices is None else prices)

    async def resolve(self, symbol: str) -> Optional[float]:
        upper_symbol = symbol.upper()
        if upper_symbol in self._prices:
            return self._prices[upper_symbol]
        rng = random.Random(f"{self._seed}:{upper_symbol}")
        return round(50 + rng.random() * 2000, 2)
