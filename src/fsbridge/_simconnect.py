"""SimConnect telemetry source backed by the ``SimConnect`` package.

The SDK wrapper opens the link synchronously and exposes polled
variable requests, so this adapter runs a daemon thread per standing
subscription that reads the registered variables once per period and
emits them through ``on_data_received``.  Link loss is reported through
``on_connection_changed``.  Besides an explicit quit or a failed read,
``max_incomplete_reads`` empty reads in a row also count as link loss.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any

from fsbridge._constants import USER_OBJECT_ID
from fsbridge.exceptions import SourceConnectionError, SourceError, SourceUnavailableError
from fsbridge.models.snapshot import SimVarField
from fsbridge.source import ConnectionChangedCallback, DataReceivedCallback, RequestFlag, SubscriptionPeriod

_logger = logging.getLogger(__name__)


def _load_sdk() -> Any:
    try:
        import SimConnect as sdk
    except (ImportError, OSError) as exc:
        raise SourceUnavailableError(
            "Missing dependency 'SimConnect' (Windows only). Install with: pip install 'fsbridge[simconnect]'",
        ) from exc
    return sdk


class SimConnectSource:
    """:class:`~fsbridge.source.TelemetrySource` implementation for MSFS/P3D."""

    def __init__(self, *, max_incomplete_reads: int = 10) -> None:
        self.on_connection_changed: ConnectionChangedCallback | None = None
        self.on_data_received: DataReceivedCallback | None = None
        self._sdk = _load_sdk()
        self._sm: Any = None
        self._lock = threading.Lock()
        self._definitions: dict[int, tuple[SimVarField, ...]] = {}
        self._next_definition_id = 1
        self._stop = threading.Event()
        self._poller: threading.Thread | None = None
        self._max_incomplete_reads = max_incomplete_reads

    def connect(self, app_name: str) -> None:
        self.disconnect()
        _logger.debug("Opening SimConnect link for %s", app_name)
        try:
            sm = self._sdk.SimConnect()
        except (ConnectionError, OSError) as exc:
            raise SourceConnectionError(f"Could not reach the simulator: {exc}", app_name=app_name) from exc
        with self._lock:
            self._sm = sm
            self._stop = threading.Event()
        self._emit_connection(True)

    def disconnect(self) -> None:
        with self._lock:
            sm = self._sm
            self._sm = None
            self._stop.set()
            poller = self._poller
            self._poller = None
            self._definitions.clear()
        if poller is not None and poller is not threading.current_thread():
            poller.join(timeout=2.0)
        if sm is not None:
            try:
                sm.exit()
            except Exception:
                _logger.debug("SimConnect exit failed", exc_info=True)

    def register_data_definition(self, fields: Sequence[SimVarField]) -> int:
        with self._lock:
            definition_id = self._next_definition_id
            self._next_definition_id += 1
            self._definitions[definition_id] = tuple(fields)
        return definition_id

    def request_data_on_sim_object(
        self,
        request_id: int,
        definition_id: int,
        object_id: int,
        period: SubscriptionPeriod,
        flags: RequestFlag = RequestFlag.DEFAULT,
    ) -> None:
        if object_id != USER_OBJECT_ID:
            raise SourceError(f"Only the user aircraft is supported, got object id {object_id}")
        interval = period.seconds
        if interval is None:
            raise SourceError(f"Unsupported subscription period {period!r}")
        with self._lock:
            sm = self._sm
            fields = self._definitions.get(definition_id)
            stop = self._stop
        if sm is None:
            raise SourceError("Not connected to the simulator")
        if fields is None:
            raise SourceError(f"Unknown data definition {definition_id}")

        poll_ms = max(int(interval * 1000), 1)
        requests = [
            (field, self._sdk.Request((field.sim_var.encode(), (field.unit or "").encode()), sm, _time=poll_ms))
            for field in fields
        ]
        poller = threading.Thread(
            target=self._poll,
            args=(sm, stop, request_id, requests, interval, flags),
            name="fsbridge-simconnect",
            daemon=True,
        )
        with self._lock:
            self._poller = poller
        poller.start()

    def _poll(
        self,
        sm: Any,
        stop: threading.Event,
        request_id: int,
        requests: list[tuple[SimVarField, Any]],
        interval: float,
        flags: RequestFlag,
    ) -> None:
        last: dict[str, Any] | None = None
        incomplete = 0
        while not stop.wait(interval):
            if getattr(sm, "quit", 0):
                _logger.debug("SimConnect reported quit")
                self._link_lost(stop)
                return
            try:
                values = {field.field: request.value for field, request in requests}
            except OSError:
                _logger.debug("SimConnect read failed", exc_info=True)
                self._link_lost(stop)
                return
            if any(value is None for value in values.values()):
                incomplete += 1
                if incomplete >= self._max_incomplete_reads:
                    _logger.debug("SimConnect returned %d incomplete reads in a row", incomplete)
                    self._link_lost(stop)
                    return
                continue
            incomplete = 0
            if flags is RequestFlag.CHANGED and values == last:
                continue
            last = values
            callback = self.on_data_received
            if callback is not None:
                callback(request_id, [values])

    def _link_lost(self, stop: threading.Event) -> None:
        with self._lock:
            if stop is not self._stop or stop.is_set():
                return
            stop.set()
            self._sm = None
            self._poller = None
        self._emit_connection(False)

    def _emit_connection(self, connected: bool) -> None:
        callback = self.on_connection_changed
        if callback is not None:
            callback(connected)
