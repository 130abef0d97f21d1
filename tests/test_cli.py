from __future__ import annotations

import socket

import pytest
from _fakes import FakeSource

from fsbridge import __main__ as cli
from fsbridge import _simconnect
from fsbridge.exceptions import SourceUnavailableError


def test_overrides_only_include_given_flags() -> None:
    args = cli._parse_args(["--port", "8080", "--retry-interval", "1.5"])

    assert cli._overrides(args) == {"port": 8080, "retry_interval": 1.5}


def test_unified_flag_is_forwarded() -> None:
    args = cli._parse_args(["--unified-empty-response", "-v"])

    assert cli._overrides(args) == {"unified_empty_response": True}
    assert args.verbose is True


def test_invalid_configuration_exits_with_2(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("FSBRIDGE_PORT", "abc")

    assert cli.main([]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_missing_sdk_exits_with_2(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def _missing() -> None:
        raise SourceUnavailableError("Missing dependency 'SimConnect'")

    monkeypatch.setattr(_simconnect, "_load_sdk", _missing)

    assert cli.main(["--port", "5001"]) == 2
    assert "SimConnect" in capsys.readouterr().err


def test_port_in_use_exits_with_2(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(_simconnect, "SimConnectSource", FakeSource)

    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        port = sock.getsockname()[1]

        assert cli.main(["--host", "127.0.0.1", "--port", str(port)]) == 2

    err = capsys.readouterr().err
    assert f"cannot listen on http://127.0.0.1:{port}/" in err
