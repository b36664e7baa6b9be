"""
Device telemetry tracking and HTTP polling fallback.

While the WebSocket is up, telemetry arrives as JSON pushed by the device.
While it is down, StatusPoller fetches /status every few seconds instead, and
the reachability of that endpoint stands in for the connection indicator.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from .client import DeviceClient
from .protocol import DeviceTelemetry, telemetry_from_dict
from ..scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0


class TelemetryMonitor:
    """Latest telemetry reading plus a short history for display."""

    def __init__(self, limit: int = 100):
        self.current = DeviceTelemetry()
        self.limit = limit
        self.history: List[dict] = []
        self.last_update_time: Optional[float] = None
        self.on_update: Optional[Callable[[DeviceTelemetry], None]] = None

    def update(self, reading: DeviceTelemetry) -> DeviceTelemetry:
        self.current.merge(reading)
        self.last_update_time = reading.timestamp
        self.history.append(self.current.to_dict())
        if len(self.history) > self.limit:
            self.history.pop(0)
        if self.on_update:
            self.on_update(self.current)
        return self.current

    def get_history(self, limit: int = 100) -> List[dict]:
        return self.history[-min(limit, self.limit):]

    def age(self) -> Optional[float]:
        """Seconds since the last reading, or None if nothing arrived yet."""
        if self.last_update_time is None:
            return None
        return time.time() - self.last_update_time


class StatusPoller:
    """
    Periodic GET /status while the socket is down.

    Polls never overlap: the next one is scheduled only after the previous
    request finished. The blocking HTTP call runs in a worker thread.
    """

    def __init__(self, client: DeviceClient, scheduler: Scheduler, monitor: TelemetryMonitor,
                 interval: float = DEFAULT_POLL_INTERVAL):
        self.client = client
        self.scheduler = scheduler
        self.monitor = monitor
        self.interval = interval
        self.reachable = False
        self._timer: Optional[ScheduledTask] = None
        self._inflight: Optional[asyncio.Task] = None
        self._running = False

        self.on_reachability_changed: Optional[Callable[[bool], None]] = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        if self._running:
            return False
        logger.info("Starting HTTP polling fallback")
        self._running = True
        self._timer = self.scheduler.call_later(self.interval, self._on_timer)
        return True

    def stop(self) -> bool:
        if not self._running:
            return False
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        logger.info("Stopped HTTP polling fallback")
        return True

    def _on_timer(self) -> None:
        self._timer = None
        if not self._running:
            return
        self._inflight = asyncio.get_running_loop().create_task(self._poll_and_rearm())

    async def _poll_and_rearm(self) -> None:
        await self.poll_once()
        if self._running:
            self._timer = self.scheduler.call_later(self.interval, self._on_timer)

    async def poll_once(self) -> bool:
        """Fetch /status once; returns whether the device answered."""
        try:
            data = await asyncio.to_thread(self.client.get_status)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Status poll failed: {e}")
            self._set_reachable(False)
            return False
        if not isinstance(data, dict):
            logger.warning("Status poll returned a non-object payload")
            self._set_reachable(False)
            return False
        self.monitor.update(telemetry_from_dict(data))
        self._set_reachable(True)
        return True

    def _set_reachable(self, reachable: bool) -> None:
        if self.reachable != reachable:
            self.reachable = reachable
            if self.on_reachability_changed:
                self.on_reachability_changed(reachable)
