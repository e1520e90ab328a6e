"""API routers package."""

from portfolio_feed.api.routers.portfolio import router as portfolio_router

__all__ = [
    "portfolio_router",
]
