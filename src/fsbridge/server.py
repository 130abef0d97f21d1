"""Read-only HTTP query service.

Every ``GET`` (any path) returns the latest telemetry snapshot as JSON;
every other method gets an empty ``405``.  Handlers only read the
snapshot store and never wait for new data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from aiohttp import web

from fsbridge._constants import TIMESTAMP_FORMAT
from fsbridge.config import BridgeConfig
from fsbridge.models.snapshot import SNAPSHOT_DEFINITION, TelemetrySnapshot
from fsbridge.state.store import EMPTY_SNAPSHOT, SnapshotStore

_logger = logging.getLogger(__name__)

# No-data body served to existing clients.  Its field names differ from a
# real snapshot and it has no timestamp.
LEGACY_EMPTY_RESPONSE: dict[str, Any] = {
    "Title": "",
    "Latitude": 0.0,
    "Longitude": 0.0,
    "Altitude": 0.0,
    "Heading": 0.0,
    "Airspeed": 0.0,
    "VerticalSpeed": 0.0,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def empty_payload(*, unified: bool = False) -> dict[str, Any]:
    """Body returned before any snapshot was received."""
    if not unified:
        return dict(LEGACY_EMPTY_RESPONSE)
    fields = TelemetrySnapshot.model_fields
    return {fields[f.field].alias or f.field: "" if f.is_text else 0.0 for f in SNAPSHOT_DEFINITION}


def snapshot_payload(snapshot: TelemetrySnapshot, now: datetime) -> dict[str, Any]:
    """Body for a received snapshot, stamped with *now* at second precision (UTC)."""
    body = snapshot.to_wire()
    body["timestamp"] = now.astimezone(UTC).strftime(TIMESTAMP_FORMAT)
    return body


class QueryService:
    """aiohttp application serving the snapshot store."""

    def __init__(
        self,
        *,
        store: SnapshotStore,
        config: BridgeConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._config = config or BridgeConfig()
        self._clock = clock
        self._runner: web.AppRunner | None = None
        self._app = web.Application()
        self._app.router.add_route("*", "/{tail:.*}", self._handle)

    @property
    def app(self) -> web.Application:
        return self._app

    def render(self) -> dict[str, Any]:
        """Build the JSON body from the current store content."""
        snapshot = self._store.read_latest_or_empty()
        if snapshot is EMPTY_SNAPSHOT:
            return empty_payload(unified=self._config.unified_empty_response)
        return snapshot_payload(snapshot, self._clock())

    async def _handle(self, request: web.Request) -> web.StreamResponse:
        if request.method != "GET":
            return web.Response(status=405, headers={"Allow": "GET"})
        return web.json_response(self.render())

    async def start(self) -> None:
        """Bind the listener on the configured address.

        Raises ``OSError`` when the address cannot be bound (e.g. the port is
        already in use).
        """
        runner = web.AppRunner(self._app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        _logger.info("HTTP server listening on %s", self._config.url)
        if not self._config.unified_empty_response:
            _logger.info("Serving legacy no-data response shape (set FSBRIDGE_UNIFIED_EMPTY_RESPONSE=1 to unify)")

    async def stop(self) -> None:
        runner = self._runner
        self._runner = None
        if runner is not None:
            await runner.cleanup()
