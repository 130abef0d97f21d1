"""Simulator connection management.

Owns:
- the connection state machine (``DISCONNECTED -> CONNECTING -> CONNECTED``)
- the fixed-interval connect loop
- registering the standing telemetry subscription once the link is up
- forwarding every matching delivery into the snapshot store
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from fsbridge._constants import DEFAULT_APP_NAME, DEFAULT_RETRY_INTERVAL, PLANE_INFO_REQUEST, USER_OBJECT_ID
from fsbridge.models.connection import ConnectionState
from fsbridge.models.snapshot import SNAPSHOT_DEFINITION, TelemetrySnapshot
from fsbridge.source import RequestFlag, SubscriptionPeriod, TelemetrySource
from fsbridge.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


class _Trigger(StrEnum):
    START = "start"
    LINK_UP = "link_up"
    LINK_DOWN = "link_down"
    STOP = "stop"


_TRANSITIONS: dict[tuple[ConnectionState, _Trigger], ConnectionState] = {
    (ConnectionState.DISCONNECTED, _Trigger.START): ConnectionState.CONNECTING,
    (ConnectionState.DISCONNECTED, _Trigger.LINK_UP): ConnectionState.CONNECTED,
    (ConnectionState.DISCONNECTED, _Trigger.LINK_DOWN): ConnectionState.DISCONNECTED,
    (ConnectionState.CONNECTING, _Trigger.LINK_UP): ConnectionState.CONNECTED,
    # A loop is already running; it keeps retrying.
    (ConnectionState.CONNECTING, _Trigger.LINK_DOWN): ConnectionState.CONNECTING,
    (ConnectionState.CONNECTING, _Trigger.STOP): ConnectionState.DISCONNECTED,
    (ConnectionState.CONNECTED, _Trigger.LINK_DOWN): ConnectionState.DISCONNECTED,
    (ConnectionState.CONNECTED, _Trigger.STOP): ConnectionState.DISCONNECTED,
}


class ConnectionManager:
    """Keeps exactly one logical link to the simulator and retries forever.

    ``on_connection_changed`` and ``on_snapshot_received`` are the callbacks
    the telemetry source invokes, possibly from its own thread.  Connection
    changes are marshalled onto the event loop so every state transition
    runs serially there; deliveries go straight into the lock-guarded
    :class:`SnapshotStore`.

    The ``CONNECTING`` state is the "attempt in progress" marker: a connect
    loop runs exactly while the manager is in that state.
    """

    def __init__(
        self,
        *,
        source: TelemetrySource,
        store: SnapshotStore,
        app_name: str = DEFAULT_APP_NAME,
        retry_interval: float = DEFAULT_RETRY_INTERVAL,
        request_id: int = PLANE_INFO_REQUEST,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._app_name = app_name
        self._retry_interval = retry_interval
        self._request_id = request_id
        self._loop = loop
        self._state = ConnectionState.DISCONNECTED
        self._task: asyncio.Task[None] | None = None
        self._subscription: asyncio.Task[None] | None = None
        self._confirmed = asyncio.Event()
        self._definition_id: int | None = None
        self._links = 0
        self._closed = False
        self._loops_started = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def definition_id(self) -> int | None:
        """Handle of the registered snapshot data definition, if any."""
        return self._definition_id

    @property
    def loops_started(self) -> int:
        """How many connect loops were started over the manager's lifetime."""
        return self._loops_started

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _fire(self, trigger: _Trigger) -> ConnectionState | None:
        target = _TRANSITIONS.get((self._state, trigger))
        if target is None:
            _logger.debug("Ignoring %s while %s", trigger, self._state)
            return None
        if target is not self._state:
            _logger.debug("Connection state %s -> %s (%s)", self._state, target, trigger)
        self._state = target
        return target

    def start(self) -> None:
        """Begin connecting unless an attempt is already running or the link is up.

        Must be called from the event loop thread.  Repeated calls are no-ops.
        """
        if self._closed:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        if self._fire(_Trigger.START) is None:
            return
        self._confirmed.clear()
        self._loops_started += 1
        self._task = self._loop.create_task(self._connect_loop(), name="fsbridge-connect")

    async def _connect_loop(self) -> None:
        loop = asyncio.get_running_loop()
        me = asyncio.current_task()
        attempt = 0
        while self._state is ConnectionState.CONNECTING and self._task is me:
            attempt += 1
            _logger.info("Connecting to simulator as %s (attempt %d)", self._app_name, attempt)
            try:
                await loop.run_in_executor(None, self._source.connect, self._app_name)
            except Exception as exc:
                _logger.warning("Simulator connection attempt failed: %s", exc)
                _logger.debug("Connection attempt failure details", exc_info=True)
                await asyncio.sleep(self._retry_interval)
                continue

            if await self._wait_for_confirmation():
                break
            if self._state is ConnectionState.CONNECTING:
                _logger.info(
                    "Simulator did not confirm the connection within %.1fs, retrying",
                    self._retry_interval,
                )

    async def _wait_for_confirmation(self) -> bool:
        try:
            await asyncio.wait_for(self._confirmed.wait(), self._retry_interval)
        except TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        """Cancel any connect loop and close the simulator link.

        After ``stop`` the manager ignores further notifications.
        """
        self._closed = True
        self._fire(_Trigger.STOP)
        self._confirmed.clear()
        for task in (self._task, self._subscription):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._task = None
        self._subscription = None
        loop = self._loop or asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._source.disconnect)
        except Exception:
            _logger.debug("Simulator disconnect failed", exc_info=True)

    # ------------------------------------------------------------------
    # Source callbacks
    # ------------------------------------------------------------------

    def on_connection_changed(self, connected: bool) -> None:
        """Link status callback (thread-safe)."""
        loop = self._loop
        if loop is None or self._closed:
            _logger.debug("Dropping connection change %s: manager not running", connected)
            return
        try:
            loop.call_soon_threadsafe(self._handle_connection_changed, connected)
        except RuntimeError:
            # Event loop already closed during shutdown.
            _logger.debug("Dropping connection change %s: event loop closed", connected)

    def _handle_connection_changed(self, connected: bool) -> None:
        if self._closed:
            return
        if connected:
            if self._fire(_Trigger.LINK_UP) is None:
                return
            _logger.info("Connected to simulator")
            self._links += 1
            self._confirmed.set()
            loop = self._loop or asyncio.get_running_loop()
            self._subscription = loop.create_task(self._subscribe(self._links), name="fsbridge-subscribe")
            return

        was_connected = self._state is ConnectionState.CONNECTED
        self._fire(_Trigger.LINK_DOWN)
        if was_connected:
            _logger.info("Disconnected from simulator")
        self._confirmed.clear()
        if self._state is ConnectionState.DISCONNECTED:
            self.start()

    def _link_is_current(self, link: int) -> bool:
        return not self._closed and self._state is ConnectionState.CONNECTED and self._links == link

    async def _subscribe(self, link: int) -> None:
        loop = asyncio.get_running_loop()
        try:
            definition_id = await loop.run_in_executor(
                None, self._source.register_data_definition, SNAPSHOT_DEFINITION
            )
            await loop.run_in_executor(
                None,
                self._source.request_data_on_sim_object,
                self._request_id,
                definition_id,
                USER_OBJECT_ID,
                SubscriptionPeriod.SECOND,
                RequestFlag.DEFAULT,
            )
        except Exception:
            if not self._link_is_current(link):
                _logger.debug("Subscription on a dropped link failed", exc_info=True)
                return
            _logger.warning("Telemetry subscription failed, reconnecting", exc_info=True)
            self._fire(_Trigger.LINK_DOWN)
            self._confirmed.clear()
            self.start()
            return
        if not self._link_is_current(link):
            _logger.debug("Link dropped while subscribing, definition=%s discarded", definition_id)
            return
        self._definition_id = definition_id
        _logger.debug("Subscribed request=%s definition=%s", self._request_id, definition_id)

    def on_snapshot_received(self, request_id: int, data: Sequence[Any]) -> None:
        """Data delivery callback (thread-safe).

        Deliveries for other request ids, with no payload, or arriving after
        :meth:`stop` are ignored.
        """
        if self._closed or request_id != self._request_id or not data:
            return
        payload = data[0]
        try:
            snapshot = (
                payload if isinstance(payload, TelemetrySnapshot) else TelemetrySnapshot.model_validate(payload)
            )
        except ValidationError:
            _logger.debug("Dropping malformed telemetry delivery", exc_info=True)
            return
        self._store.write(snapshot)
        _logger.debug("Telemetry updated title=%s", snapshot.title)
