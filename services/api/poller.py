"""
Gateway Flow - Log Poller

Fetches full log snapshots from the gateway and hands them to the LiveView.

  - on demand:  refresh_once()
  - live:       start(interval_ms) ... stop()
  - settle:     one last refresh after a delay, then stop

Every fetch is stamped with a generation when it is issued. Fetches run in
a worker thread and may finish out of order; LiveView keeps the newest.
A failed fetch means no new snapshot: the current timeline stays.
"""
import asyncio
from typing import Optional

from gateway_client import GatewayClient, GatewayError
from live_view import LiveView
from log import get_logger
from metrics import polling_active, snapshots

logger = get_logger()


class LogPoller:
    def __init__(self, gateway: GatewayClient, view: LiveView, interval_ms: int = 500):
        self.gateway = gateway
        self.view = view
        self.interval_ms = interval_ms
        self._issued = 0
        self._task: Optional[asyncio.Task] = None
        self._settle_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> bool:
        """Fetch one snapshot now. True if it replaced the displayed one."""
        self._issued += 1
        generation = self._issued
        try:
            logs = await asyncio.to_thread(self.gateway.fetch_logs)
        except GatewayError as e:
            snapshots.labels(outcome="failed").inc()
            logger.warning("poll.failed", generation=generation, error=str(e))
            return False
        return self.view.apply_snapshot(logs, generation)

    def clear(self) -> None:
        """Empty the view; fetches already in flight are treated as stale."""
        self.view.clear(self._issued)

    def start(self, interval_ms: Optional[int] = None) -> None:
        """(Re)start periodic polling; replaces any running loop."""
        self.stop()
        interval_s = (interval_ms or self.interval_ms) / 1000
        self._task = asyncio.create_task(self._run(interval_s))
        polling_active.set(1)
        logger.info("poll.started", interval_ms=int(interval_s * 1000))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            polling_active.set(0)
            logger.info("poll.stopped")

    def settle(self, delay_ms: int) -> None:
        """Give logs a final chance to arrive, then stop polling."""
        if self._settle_task is not None:
            self._settle_task.cancel()
        self._settle_task = asyncio.create_task(self._settle(delay_ms / 1000))

    async def shutdown(self) -> None:
        for task in (self._settle_task, self._task):
            if task is not None:
                task.cancel()
        self.stop()
        self._settle_task = None

    async def _run(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            await self.refresh_once()

    async def _settle(self, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        await self.refresh_once()
        self.stop()
