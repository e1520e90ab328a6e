"""Dependency injection for FastAPI."""

from fastapi import Depends

from portfolio_feed.app_context import AppContext, get_app_context
from portfolio_feed.services import UpdateBroadcaster


def get_context() -> AppContext:
    """Provide the process-wide AppContext."""
    return get_app_context()


def get_broadcaster(context: AppContext = Depends(get_context)) -> UpdateBroadcaster:
    """Provide the UpdateBroadcaster instance."""
    return context.broadcaster
