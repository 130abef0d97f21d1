"""Data models for simulator telemetry."""

from fsbridge.models.connection import ConnectionState
from fsbridge.models.snapshot import SNAPSHOT_DEFINITION, SimVarField, TelemetrySnapshot

__all__ = [
    "ConnectionState",
    "SNAPSHOT_DEFINITION",
    "SimVarField",
    "TelemetrySnapshot",
]
