"""Scheduled refresh cycles pushed to live subscribers."""

import asyncio
import dataclasses
import logging
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from portfolio_feed.core.exceptions import HoldingsSourceError
from portfolio_feed.core.timezone import now_market
from portfolio_feed.domain.models import Holding
from portfolio_feed.domain.views import PortfolioSnapshot
from portfolio_feed.services.enricher import Enricher
from portfolio_feed.services.sector_aggregator import SectorAggregator
from portfolio_feed.sources.holdings_source import HoldingsSource

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_SECONDS = 15
DEFAULT_CYCLE_DEADLINE_SECONDS = 30


class SubscriberState(str, Enum):
    """Lifecycle of a push subscriber."""

    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    ERROR = "ERROR"
    CLOSED = "CLOSED"


class Subscriber:
    """
    One connected push consumer with a small pending-snapshot buffer.

    A slow consumer never blocks the broadcaster: when the buffer is full the
    oldest pending snapshot is dropped.
    """

    def __init__(self, max_pending: int = 8):
        self.state = SubscriberState.CONNECTING
        self.error: Optional[BaseException] = None
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max(max_pending, 1))

    @property
    def is_open(self) -> bool:
        return self.state is SubscriberState.OPEN

    def open(self) -> None:
        if self.state is SubscriberState.CONNECTING:
            self.state = SubscriberState.OPEN

    def push(self, snapshot: PortfolioSnapshot) -> None:
        if not self.is_open:
            raise RuntimeError(f"subscriber is {self.state.value}")
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(snapshot)

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.state = SubscriberState.ERROR
        self._wake_consumer()

    def close(self) -> None:
        if self.state in (SubscriberState.CONNECTING, SubscriberState.OPEN):
            self.state = SubscriberState.CLOSED
        self._wake_consumer()

    def _wake_consumer(self) -> None:
        # None is the end-of-stream marker
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def next(self) -> Optional[PortfolioSnapshot]:
        """Wait for the next snapshot; None once the subscriber is no longer open."""
        if not self.is_open and self._queue.empty():
            return None
        snapshot = await self._queue.get()
        if snapshot is None or not self.is_open:
            return None
        return snapshot

    async def __aiter__(self):
        while True:
            snapshot = await self.next()
            if snapshot is None:
                return
            yield snapshot


class UpdateBroadcaster:
    """
    Owns the refresh cycle and the set of live subscribers.

    A cycle loads holdings, carries over the last known market fields,
    enriches under an overall deadline, aggregates by sector and publishes one
    consistent snapshot. The schedule loop idles while nobody is subscribed and
    wakes as soon as someone joins.
    """

    def __init__(
        self,
        source: HoldingsSource,
        enricher: Enricher,
        aggregator: SectorAggregator,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        cycle_deadline_seconds: Optional[float] = DEFAULT_CYCLE_DEADLINE_SECONDS,
        clock: Callable = now_market,
    ):
        self._source = source
        self._enricher = enricher
        self._aggregator = aggregator
        self._interval = interval_seconds
        self._deadline = cycle_deadline_seconds
        self._clock = clock

        self._subscribers: set[Subscriber] = set()
        self._holdings: dict[tuple[int, str], Holding] = {}
        self._latest: Optional[PortfolioSnapshot] = None
        self._cycle_lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # -- subscribers -------------------------------------------------------------
    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def latest(self) -> Optional[PortfolioSnapshot]:
        return self._latest

    def subscribe(self, max_pending: int = 8) -> Subscriber:
        """Register a new subscriber; it receives the latest snapshot right away."""
        subscriber = Subscriber(max_pending=max_pending)
        subscriber.open()
        self._subscribers.add(subscriber)
        if self._latest is not None:
            subscriber.push(self._latest)
        self._wake.set()
        logger.info("Subscriber joined (%d active)", len(self._subscribers))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        subscriber.close()
        self._prune(subscriber)

    def _prune(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            logger.info(
                "Subscriber removed (%s, %d active)",
                subscriber.state.value,
                len(self._subscribers),
            )

    def publish(self, snapshot: PortfolioSnapshot) -> int:
        """Push a snapshot to every open subscriber; prune the rest. Returns deliveries."""
        delivered = 0
        for subscriber in list(self._subscribers):
            if not subscriber.is_open:
                self._prune(subscriber)
                continue
            try:
                subscriber.push(snapshot)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Push to subscriber failed: %s", exc)
                subscriber.fail(exc)
                self._prune(subscriber)
                continue
            delivered += 1
        return delivered

    # -- cycles ------------------------------------------------------------------
    async def run_cycle(self) -> PortfolioSnapshot:
        """Build one snapshot. Cycles never overlap."""
        async with self._cycle_lock:
            snapshot = await self._build_snapshot()
            self._latest = snapshot
            return snapshot

    async def current(self) -> PortfolioSnapshot:
        """Latest snapshot, rebuilt first when missing or older than one refresh interval."""
        latest = self._latest
        if latest is None or latest.as_of is None:
            return await self.run_cycle()
        if self._clock() - latest.as_of >= timedelta(seconds=self._interval):
            return await self.run_cycle()
        return latest

    async def refresh(self) -> PortfolioSnapshot:
        """Run a cycle and push the result to all subscribers."""
        snapshot = await self.run_cycle()
        delivered = self.publish(snapshot)
        logger.debug("Snapshot delivered to %d subscribers", delivered)
        return snapshot

    async def _build_snapshot(self) -> PortfolioSnapshot:
        try:
            loaded = await asyncio.to_thread(self._source.load)
        except HoldingsSourceError as e:
            logger.error("Holdings source unavailable: %s", e.message)
            return PortfolioSnapshot.failure(e.message, as_of=self._clock())
        except Exception as e:
            logger.exception("Holdings source failed")
            return PortfolioSnapshot.failure(f"Holdings source unavailable: {e}", as_of=self._clock())

        try:
            holdings = [dataclasses.replace(h) for h in loaded]
            for holding in holdings:
                previous = self._holdings.get(holding.identity)
                if previous is not None:
                    holding.carry_market_fields(previous)

            report = await self._enricher.enrich_all(holdings, deadline_seconds=self._deadline)
            rollups = self._aggregator.aggregate(holdings)
        except Exception:
            logger.exception("Refresh cycle failed")
            return PortfolioSnapshot.failure("Internal error while refreshing portfolio", as_of=self._clock())

        self._holdings = {h.identity: h for h in holdings}
        logger.info(
            "Cycle complete: %d sectors, %d resolved, %d unresolved, %d abandoned",
            len(rollups),
            report.resolved,
            report.unresolved,
            report.abandoned,
        )
        return PortfolioSnapshot(success=True, data=rollups, as_of=self._clock(), report=report)

    # -- schedule ----------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Broadcaster started (interval %ss)", self._interval)

    async def stop(self) -> None:
        self._stopping.set()
        self._wake.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Broadcast loop had already failed")
            self._task = None
        for subscriber in list(self._subscribers):
            self.unsubscribe(subscriber)
        logger.info("Broadcaster stopped")

    async def _run_loop(self) -> None:
        while not self._stopping.is_set():
            self._wake.clear()
            if not self._subscribers:
                await self._wake.wait()
                continue
            try:
                await self.refresh()
            except Exception:
                logger.exception("Scheduled refresh failed; retrying next interval")
            await self._sleep(self._interval)

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
