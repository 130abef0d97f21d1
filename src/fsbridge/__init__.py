"""fsbridge - Serve live flight simulator telemetry over a pollable HTTP JSON endpoint."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fsbridge")
except PackageNotFoundError:
    __version__ = "0+local"
from fsbridge.app import BridgeApp
from fsbridge.config import BridgeConfig
from fsbridge.connection import ConnectionManager
from fsbridge.exceptions import (
    BridgeConfigError,
    BridgeError,
    SourceConnectionError,
    SourceError,
    SourceUnavailableError,
)
from fsbridge.models import SNAPSHOT_DEFINITION, ConnectionState, SimVarField, TelemetrySnapshot
from fsbridge.server import QueryService
from fsbridge.source import RequestFlag, SubscriptionPeriod, TelemetrySource
from fsbridge.state import EMPTY_SNAPSHOT, SnapshotStore

__all__ = [
    "__version__",
    "BridgeApp",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeError",
    "ConnectionManager",
    "ConnectionState",
    "EMPTY_SNAPSHOT",
    "QueryService",
    "RequestFlag",
    "SNAPSHOT_DEFINITION",
    "SimVarField",
    "SnapshotStore",
    "SourceConnectionError",
    "SourceError",
    "SourceUnavailableError",
    "SubscriptionPeriod",
    "TelemetrySnapshot",
    "TelemetrySource",
]
