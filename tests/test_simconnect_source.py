from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any

import pytest

from fsbridge import _simconnect
from fsbridge.exceptions import SourceConnectionError, SourceError
from fsbridge.models.snapshot import SNAPSHOT_DEFINITION
from fsbridge.source import RequestFlag, SubscriptionPeriod

_VALUES: dict[str, Any] = {
    "TITLE": b"Cessna 172\x00\x00\x00",
    "PLANE LATITUDE": 47.6,
    "PLANE LONGITUDE": -122.3,
    "PLANE ALTITUDE": 1200.0,
    "PLANE HEADING DEGREES MAGNETIC": 90.0,
    "AIRSPEED TRUE": 110.0,
    "VERTICAL SPEED": 0.0,
}


class _FakeSimConnect:
    reachable = True
    instances: list[_FakeSimConnect] = []

    def __init__(self) -> None:
        if not _FakeSimConnect.reachable:
            raise ConnectionError("Could not find MSFS running")
        self.quit = 0
        self.exited = False
        self.values = dict(_VALUES)
        _FakeSimConnect.instances.append(self)

    def exit(self) -> None:
        self.exited = True


class _FakeRequest:
    def __init__(self, deff: tuple[bytes, bytes], sm: _FakeSimConnect, _time: int = 0) -> None:
        self.name = deff[0].decode()
        self.unit = deff[1].decode()
        self.sm = sm

    @property
    def value(self) -> Any:
        return self.sm.values[self.name]


@pytest.fixture
def fake_sdk(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    _FakeSimConnect.reachable = True
    _FakeSimConnect.instances = []
    sdk = SimpleNamespace(SimConnect=_FakeSimConnect, Request=_FakeRequest)
    monkeypatch.setattr(_simconnect, "_load_sdk", lambda: sdk)
    return sdk


def test_connect_reports_link_up(fake_sdk: SimpleNamespace) -> None:
    source = _simconnect.SimConnectSource()
    changes: list[bool] = []
    source.on_connection_changed = changes.append

    source.connect("FsConnectApp")

    assert changes == [True]
    source.disconnect()
    assert _FakeSimConnect.instances[0].exited


def test_unreachable_simulator_raises_connection_error(fake_sdk: SimpleNamespace) -> None:
    _FakeSimConnect.reachable = False
    source = _simconnect.SimConnectSource()

    with pytest.raises(SourceConnectionError) as excinfo:
        source.connect("FsConnectApp")
    assert excinfo.value.app_name == "FsConnectApp"


def test_subscription_delivers_polled_values(fake_sdk: SimpleNamespace) -> None:
    source = _simconnect.SimConnectSource()
    received = threading.Event()
    deliveries: list[tuple[int, list[Any]]] = []

    def on_data(request_id: int, data: Any) -> None:
        deliveries.append((request_id, list(data)))
        received.set()

    source.on_data_received = on_data
    source.connect("FsConnectApp")
    definition_id = source.register_data_definition(SNAPSHOT_DEFINITION)
    source.request_data_on_sim_object(0, definition_id, 0, SubscriptionPeriod.VISUAL_FRAME)

    assert received.wait(2.0)
    source.disconnect()

    request_id, data = deliveries[0]
    assert request_id == 0
    assert data[0]["title"] == b"Cessna 172\x00\x00\x00"
    assert data[0]["altitude"] == 1200.0


def test_quit_reports_link_down(fake_sdk: SimpleNamespace) -> None:
    source = _simconnect.SimConnectSource()
    down = threading.Event()
    source.on_connection_changed = lambda connected: None if connected else down.set()

    source.connect("FsConnectApp")
    definition_id = source.register_data_definition(SNAPSHOT_DEFINITION)
    source.request_data_on_sim_object(0, definition_id, 0, SubscriptionPeriod.VISUAL_FRAME, RequestFlag.CHANGED)
    _FakeSimConnect.instances[0].quit = 1

    assert down.wait(2.0)
    source.disconnect()


def test_invalid_subscription_arguments(fake_sdk: SimpleNamespace) -> None:
    source = _simconnect.SimConnectSource()

    with pytest.raises(SourceError, match="Not connected"):
        source.request_data_on_sim_object(0, 1, 0, SubscriptionPeriod.SECOND)

    source.connect("FsConnectApp")
    with pytest.raises(SourceError, match="Unknown data definition"):
        source.request_data_on_sim_object(0, 99, 0, SubscriptionPeriod.SECOND)
    with pytest.raises(SourceError, match="user aircraft"):
        source.request_data_on_sim_object(0, 1, 42, SubscriptionPeriod.SECOND)
    with pytest.raises(SourceError, match="Unsupported subscription period"):
        source.request_data_on_sim_object(0, 1, 0, SubscriptionPeriod.ONCE)
    source.disconnect()


def test_silent_simulator_reports_link_down(fake_sdk: SimpleNamespace) -> None:
    source = _simconnect.SimConnectSource(max_incomplete_reads=3)
    down = threading.Event()
    deliveries: list[Any] = []
    source.on_connection_changed = lambda connected: None if connected else down.set()
    source.on_data_received = lambda request_id, data: deliveries.append(data)

    source.connect("FsConnectApp")
    _FakeSimConnect.instances[0].values["PLANE ALTITUDE"] = None
    definition_id = source.register_data_definition(SNAPSHOT_DEFINITION)
    source.request_data_on_sim_object(0, definition_id, 0, SubscriptionPeriod.VISUAL_FRAME)

    assert down.wait(2.0)
    assert deliveries == []
    source.disconnect()
