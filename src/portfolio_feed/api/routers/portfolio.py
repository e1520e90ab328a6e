"""Portfolio endpoints: current sector rollups, on-demand refresh, live stream."""

import asyncio
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from portfolio_feed.api.deps import get_broadcaster
from portfolio_feed.api.schemas import PortfolioResponse, snapshot_to_json, snapshot_to_response
from portfolio_feed.domain.views import PortfolioSnapshot
from portfolio_feed.services import Subscriber, UpdateBroadcaster

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])
logger = logging.getLogger(__name__)

# How often the stream checks for client disconnect while idle
DISCONNECT_POLL_SECONDS = 1.0


def _respond(snapshot: PortfolioSnapshot):
    body = snapshot_to_response(snapshot)
    if not snapshot.success:
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True, exclude_none=True))
    return body


@router.get("", response_model=PortfolioResponse, response_model_exclude_none=True)
async def get_portfolio(
    broadcaster: UpdateBroadcaster = Depends(get_broadcaster),
):
    """
    Return the current sector rollups.

    Runs a cycle first when none has completed yet or the latest one is older
    than the refresh interval. Answers 503 with `{success: false, error}` when
    the holdings source is unreadable.
    """
    snapshot = await broadcaster.current()
    return _respond(snapshot)


@router.post("/refresh", response_model=PortfolioResponse, response_model_exclude_none=True)
async def refresh_portfolio(
    broadcaster: UpdateBroadcaster = Depends(get_broadcaster),
):
    """Run a refresh cycle now, push it to subscribers and return it."""
    snapshot = await broadcaster.refresh()
    return _respond(snapshot)


def snapshot_event(snapshot: PortfolioSnapshot) -> dict:
    """SSE event for one snapshot: `snapshot` on success, `error` otherwise."""
    return {
        "event": "snapshot" if snapshot.success else "error",
        "data": snapshot_to_json(snapshot),
    }


async def snapshot_events(
    request: Request,
    broadcaster: UpdateBroadcaster,
    subscriber: Subscriber,
) -> AsyncGenerator[dict, None]:
    """Yield one event per snapshot until the client leaves or the subscriber closes."""
    try:
        while subscriber.is_open:
            if await request.is_disconnected():
                break
            try:
                snapshot = await asyncio.wait_for(subscriber.next(), timeout=DISCONNECT_POLL_SECONDS)
            except asyncio.TimeoutError:
                continue
            if snapshot is None:
                break
            yield snapshot_event(snapshot)
    except asyncio.CancelledError:
        logger.info("Stream connection cancelled")
        raise
    finally:
        broadcaster.unsubscribe(subscriber)


@router.get("/stream")
async def stream_portfolio(
    request: Request,
    broadcaster: UpdateBroadcaster = Depends(get_broadcaster),
) -> EventSourceResponse:
    """
    Server-Sent Events stream of snapshots, one event per completed cycle.

    Clients own their reconnect policy; a reconnect is simply a new subscriber.
    """
    subscriber = broadcaster.subscribe()
    return EventSourceResponse(snapshot_events(request, broadcaster, subscriber), ping=15)
