"""Quote provider protocols."""

from typing import Optional, Protocol


class QuoteProvider(Protocol):
    """
    Protocol for price quote providers.

    `resolve` returns the latest price for a symbol, or None when the provider
    has nothing for it. Implementations may also raise; the provider chain
    treats any exception as a miss.
    """

    provider_id: str

    async def resolve(self, symbol: str) -> Optional[float]:
        """Return the current price for `symbol`, or None on a miss."""
        ...


class SymbolSearchProvider(Protocol):
    """
    Protocol for providers that map a company name to a tradable symbol.

    Only symbols on a recognized local exchange are returned.
    """

    provider_id: str

    async def discover(self, name: str) -> Optional[str]:
        """Return a corrected symbol for the company `name`, or None."""
        ...
