"""Liveness signalling for an active session."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from agents.schemas import KeepAliveFrame, PingPongFrame
from session.connection import FrameConnection

LOGGER = logging.getLogger(__name__)


def epoch_ms() -> int:
    return int(time.time() * 1000)


class HeartbeatScheduler:
    """Two independent repeating timers: ``ping_pong`` and ``keep_alive``.

    Beats are skipped, not queued, while the connection is not writable.
    """

    def __init__(
        self,
        connection: FrameConnection,
        *,
        heartbeat_interval: float = 5.0,
        keepalive_interval: float = 10.0,
        clock: Callable[[], int] = epoch_ms,
        label: str = "",
    ) -> None:
        self._connection = connection
        self._heartbeat_interval = heartbeat_interval
        self._keepalive_interval = keepalive_interval
        self._clock = clock
        self._label = label
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(
                self._repeat(self._heartbeat_interval, self.send_ping),
                name=f"heartbeat:{self._label}",
            ),
            asyncio.create_task(
                self._repeat(self._keepalive_interval, self.send_keep_alive),
                name=f"keepalive:{self._label}",
            ),
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def send_ping(self) -> bool:
        if not self._connection.writable:
            return False
        return await self._connection.send_frame(PingPongFrame(timestamp=self._clock()))

    async def send_keep_alive(self) -> bool:
        if not self._connection.writable:
            return False
        return await self._connection.send_frame(KeepAliveFrame(timestamp=self._clock()))

    async def _repeat(self, interval: float, beat: Callable[[], Awaitable[bool]]) -> None:
        while True:
            await asyncio.sleep(interval)
            if not await beat():
                LOGGER.debug("Skipped liveness beat for %s", self._label or "session")
