"""Holdings sources."""

from portfolio_feed.sources.holdings_source import (
    HoldingsSource,
    CsvHoldingsSource,
    LoadSummary,
    CSV_COLUMNS,
)

__all__ = [
    "HoldingsSource",
    "CsvHoldingsSource",
    "LoadSummary",
    "CSV_COLUMNS",
]
