"""
Secondary quote source: scrape a rendered quote page.

The page layout is not under our control, so the price is located by trying
a prioritized list of selector candidates; the first one whose text parses
as a positive number wins.
"""

import logging
import re
from typing import Optional, Sequence

import httpx
from bs4 import BeautifulSoup

from portfolio_feed.core.exceptions import ProviderNoData

logger = logging.getLogger(__name__)

# (css selector, attribute to read or None for element text), highest priority first
SELECTOR_CANDIDATES: list[tuple[str, Optional[str]]] = [
    ("[data-last-price]", "data-last-price"),
    ("div.YMlKec.fxKbKc", None),
    ("div.YMlKec", None),
    ("span[jsname='ip75Cb'] div", None),
    ("[itemprop='price']", "content"),
]

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

_CURRENCY_RE = re.compile(r"(₹|\$|€|£|rs\.?|inr|usd)", re.IGNORECASE)


def parse_price_text(text: Optional[str]) -> Optional[float]:
    """Strip currency and thousands formatting; return a positive float or None."""
    if not text:
        return None
    cleaned = _CURRENCY_RE.sub("", text).replace(",", "").replace(" ", "").strip()
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if value > 0 else None


def extract_price(
    html: str,
    candidates: Sequence[tuple[str, Optional[str]]] = SELECTOR_CANDIDATES,
) -> Optional[float]:
    """Return the first candidate value that parses as a positive price."""
    soup = BeautifulSoup(html, "html.parser")
    for selector, attribute in candidates:
        for element in soup.select(selector):
            raw = element.get(attribute) if attribute else element.get_text(strip=True)
            price = parse_price_text(raw)
            if price is not None:
                return price
    return None


class ScrapeQuoteProvider:
    """Fallback provider scraping `<base_url>/<SYMBOL>:<EXCHANGE>`."""

    provider_id = "scrape"

    def __init__(
        self,
        base_url: str = "https://www.google.com/finance/quote",
        exchange: str = "NSE",
        exchange_suffixes: Sequence[str] = (".NS", ".BO"),
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._exchange = exchange
        self._suffixes = tuple(exchange_suffixes)
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=REQUEST_HEADERS,
            follow_redirects=True,
        )

    def build_url(self, symbol: str) -> str:
        clean = symbol.strip().upper()
        for suffix in self._suffixes:
            if clean.endswith(suffix.upper()):
                clean = clean[: -len(suffix)]
                break
        return f"{self._base_url}/{clean}:{self._exchange}"

    async def resolve(self, symbol: str) -> Optional[float]:
        url = self.build_url(symbol)
        resp = await self._client.get(url)
        resp.raise_for_status()
        price = extract_price(resp.text)
        if price is None:
            raise ProviderNoData(self.provider_id, symbol, "no selector matched a price")
        return price

    async def aclose(self) -> None:
        await self._client.aclose()
