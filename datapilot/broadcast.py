"""Broadcast engine: fans telemetry snapshots out to every connected observer."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone

from datapilot.config import SUBSCRIBER_QUEUE_SIZE, TICK_INTERVAL
from datapilot.models import MetricsSnapshot, generate_id
from datapilot.telemetry import TelemetrySimulator

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "metrics_update"


def make_message(snapshot: MetricsSnapshot, timestamp: datetime | None = None) -> dict:
    """Wrap a snapshot in the wire envelope sent to observers."""
    ts = timestamp or datetime.now(timezone.utc)
    return {"type": MESSAGE_TYPE, "timestamp": ts.isoformat(), "metrics": snapshot.to_dict()}


class Subscription:
    """One observer's mailbox. Holds only the most recent messages."""

    def __init__(self, maxsize: int = SUBSCRIBER_QUEUE_SIZE):
        self.id = generate_id()
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max(1, maxsize))
        self.closed = False

    def offer(self, message: dict):
        """Non-blocking put; a full mailbox drops its oldest message first."""
        if self.queue.full():
            with contextlib.suppress(asyncio.QueueEmpty):
                self.queue.get_nowait()
        self.queue.put_nowait(message)

    async def get(self) -> dict:
        return await self.queue.get()

    def close(self):
        self.closed = True


class BroadcastEngine:
    """Ticks the simulator on a fixed period and publishes to all subscriptions."""

    def __init__(
        self,
        simulator: TelemetrySimulator | None = None,
        interval: float = TICK_INTERVAL,
        queue_size: int = SUBSCRIBER_QUEUE_SIZE,
    ):
        self.simulator = simulator or TelemetrySimulator()
        self.interval = interval
        self.queue_size = queue_size
        self._subscribers: dict[str, Subscription] = {}
        self._latest: dict | None = None
        self._task: asyncio.Task | None = None

    @property
    def latest(self) -> dict | None:
        return self._latest

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self) -> Subscription:
        """Register an observer and hand it the latest snapshot straight away."""
        sub = Subscription(self.queue_size)
        self._subscribers[sub.id] = sub
        if self._latest is None:
            self._latest = make_message(self.simulator.tick())
        sub.offer(self._latest)
        logger.info(f"Telemetry subscriber {sub.id} joined ({len(self._subscribers)} total)")
        return sub

    def unsubscribe(self, sub: Subscription):
        sub.close()
        if self._subscribers.pop(sub.id, None) is not None:
            logger.info(f"Telemetry subscriber {sub.id} left ({len(self._subscribers)} total)")

    def publish(self, snapshot: MetricsSnapshot) -> int:
        """Deliver a snapshot to every open subscription. Returns the delivery count."""
        message = make_message(snapshot)
        self._latest = message

        delivered = 0
        # Iterate over a copy: subscribe/unsubscribe may run while we deliver
        for sub in list(self._subscribers.values()):
            if sub.closed:
                self._subscribers.pop(sub.id, None)
                logger.debug(f"Pruned closed subscriber {sub.id}")
                continue
            try:
                sub.offer(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber {sub.id}: {e}")
                self.unsubscribe(sub)
        return delivered

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    def start(self):
        """Start the periodic tick loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Telemetry broadcast started (every {self.interval}s)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        for sub in list(self._subscribers.values()):
            self.unsubscribe(sub)
        logger.info("Telemetry broadcast stopped")

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                snapshot = self.simulator.tick()
            except Exception as e:
                logger.error(f"Telemetry tick failed: {e}", exc_info=True)
                continue
            delivered = self.publish(snapshot)
            logger.debug(f"Tick {self.simulator.ticks}: delivered to {delivered} subscribers")
