"""Periodic ping sweep that prunes chat sockets whose peers stopped answering."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from .connection_registry import TRANSPORT_ERRORS, ClientConnection, ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


class LivenessMonitor:
    """Probe every open connection once per interval.

    A connection that has sent nothing since the previous probe, not even a
    ``pong``, is terminated and evicted at the next tick, so a dead peer is
    detected within two intervals.
    """

    def __init__(
        self,
        connections: Callable[[], Iterable[ClientConnection]],
        registry: ConnectionRegistry,
        *,
        interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("Heartbeat interval must be positive")
        self._connections = connections
        self._registry = registry
        self.interval = interval
        self._task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="chat-liveness-monitor")

    async def stop(self) -> None:
        self._stop.set()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def sweep(self) -> list[ClientConnection]:
        """Run one probe cycle and return the connections that were evicted."""

        evicted: list[ClientConnection] = []
        for connection in list(self._connections()):
            if not connection.is_open:
                continue

            if not connection.is_alive:
                if connection.user_id is not None:
                    self._registry.remove_if(connection.user_id, connection)
                logger.info("Terminating unresponsive connection %r", connection)
                await connection.terminate()
                evicted.append(connection)
                continue

            connection.is_alive = False
            try:
                await connection.ping()
            except TRANSPORT_ERRORS:
                logger.debug("Ping to %r failed; it will be evicted next sweep", connection)
        return evicted

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            else:
                break
            try:
                await self.sweep()
            except Exception:
                logger.exception("Liveness sweep failed")


__all__ = ["DEFAULT_HEARTBEAT_INTERVAL", "LivenessMonitor"]
