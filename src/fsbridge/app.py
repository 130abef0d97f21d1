"""Application context wiring the bridge together."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

from fsbridge.config import BridgeConfig
from fsbridge.connection import ConnectionManager
from fsbridge.server import QueryService
from fsbridge.source import TelemetrySource
from fsbridge.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


class BridgeApp:
    """Single-instance context owning the store, the connection manager and the HTTP service.

    Usage::

        async with BridgeApp(source, config) as app:
            await app.wait_closed()
    """

    def __init__(self, source: TelemetrySource, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig()
        self.source = source
        self.store = SnapshotStore()
        self.manager = ConnectionManager(
            source=source,
            store=self.store,
            app_name=self.config.app_name,
            retry_interval=self.config.retry_interval,
        )
        self.service = QueryService(store=self.store, config=self.config)
        source.on_connection_changed = self.manager.on_connection_changed
        source.on_data_received = self.manager.on_snapshot_received
        self._closed = asyncio.Event()
        self._stop_requested = asyncio.Event()

    async def __aenter__(self) -> BridgeApp:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Start serving HTTP, then begin connecting to the simulator."""
        await self.service.start()
        self.manager.start()

    async def stop(self) -> None:
        self._stop_requested.set()
        try:
            await self.manager.stop()
        finally:
            await self.service.stop()
            self._closed.set()
        _logger.info("Bridge stopped")

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def request_stop(self) -> None:
        """Make :meth:`run` return after a clean shutdown.  Call on the loop thread."""
        if not self._stop_requested.is_set():
            _logger.info("Shutdown requested")
        self._stop_requested.set()

    async def run(self) -> None:
        """Serve until SIGTERM, :meth:`request_stop` or cancellation (Ctrl+C under :func:`asyncio.run`).

        The simulator link and the HTTP listener are closed on every exit path.
        """
        loop = asyncio.get_running_loop()
        async with self:
            try:
                loop.add_signal_handler(signal.SIGTERM, self.request_stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops, or a loop outside the main thread.
                _logger.debug("SIGTERM handler not installed", exc_info=True)
                sigterm_handled = False
            else:
                sigterm_handled = True
            try:
                await self._stop_requested.wait()
            finally:
                if sigterm_handled:
                    loop.remove_signal_handler(signal.SIGTERM)
