"""Bridge configuration for fsbridge."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from fsbridge._constants import DEFAULT_APP_NAME, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_RETRY_INTERVAL
from fsbridge.exceptions import BridgeConfigError


def _env_bool(env_key: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise BridgeConfigError(f"{env_key} must be a boolean, got {value!r}")


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise BridgeConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class BridgeConfig:
    """Bridge configuration.

    The defaults reproduce the fixed listening address and retry policy,
    so the bridge runs without any environment.

    Parameters
    ----------
    host : str
        Address the HTTP listener binds to.
    port : int
        TCP port of the HTTP listener.
    app_name : str
        Application name announced to the simulator on connect.
    retry_interval : float
        Seconds between connection attempts.  Fixed, no exponential growth.
    unified_empty_response : bool
        Render the no-data response with the same field names as a real
        snapshot (zero values, no ``timestamp``).  Off by default to keep the
        legacy ``Latitude``/``Longitude``/... shape for existing clients.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    app_name: str = DEFAULT_APP_NAME
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    unified_empty_response: bool = False

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise BridgeConfigError("host must be non-empty")
        if not 0 <= self.port <= 65535:
            raise BridgeConfigError(f"port must be between 0 and 65535, got {self.port}")
        if not self.app_name.strip():
            raise BridgeConfigError("app_name must be non-empty")
        if self.retry_interval <= 0:
            raise BridgeConfigError(f"retry_interval must be positive, got {self.retry_interval}")

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @classmethod
    def from_env(cls, **overrides: Any) -> BridgeConfig:
        """Create configuration from environment variables.

        Reads the optional ``FSBRIDGE_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BridgeConfig
            Populated configuration.

        Raises
        ------
        BridgeConfigError
            If a numeric or boolean variable cannot be parsed, or a value is
            out of range.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        host_env = env.get("FSBRIDGE_HOST")
        if host_env is not None:
            config_kwargs["host"] = host_env

        app_name_env = env.get("FSBRIDGE_APP_NAME")
        if app_name_env is not None:
            config_kwargs["app_name"] = app_name_env

        port_env = env.get("FSBRIDGE_PORT")
        if port_env is not None and "port" not in overrides:
            config_kwargs["port"] = _env_number("FSBRIDGE_PORT", port_env, int)

        retry_env = env.get("FSBRIDGE_RETRY_INTERVAL")
        if retry_env is not None and "retry_interval" not in overrides:
            config_kwargs["retry_interval"] = _env_number("FSBRIDGE_RETRY_INTERVAL", retry_env, float)

        if "unified_empty_response" not in overrides:
            config_kwargs["unified_empty_response"] = _env_bool(
                "FSBRIDGE_UNIFIED_EMPTY_RESPONSE",
                env.get("FSBRIDGE_UNIFIED_EMPTY_RESPONSE"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
