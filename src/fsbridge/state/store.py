"""Single-slot, lock-guarded snapshot store.

This is the only mutable state shared between the simulator callback
thread (writer) and the HTTP handlers (reader).
"""

from __future__ import annotations

import enum
import threading
from typing import Final, Literal

from fsbridge.models.snapshot import TelemetrySnapshot


class _Empty(enum.Enum):
    EMPTY = "empty"

    def __repr__(self) -> str:
        return "EMPTY_SNAPSHOT"


EMPTY_SNAPSHOT: Final = _Empty.EMPTY
"""Marker returned by :meth:`SnapshotStore.read_latest_or_empty` before the first write."""

StoredSnapshot = TelemetrySnapshot | Literal[_Empty.EMPTY]


class SnapshotStore:
    """Holds at most one :class:`TelemetrySnapshot`.

    The lock is held only for the reference assignment or copy, never
    across I/O, so neither side can stall the other.  Snapshots are
    immutable, so handing out the stored reference is a safe copy.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: StoredSnapshot = EMPTY_SNAPSHOT
        self._writes = 0

    def write(self, snapshot: TelemetrySnapshot) -> None:
        """Replace the stored snapshot unconditionally."""
        with self._lock:
            self._snapshot = snapshot
            self._writes += 1

    def read_latest_or_empty(self) -> StoredSnapshot:
        """Return the latest snapshot, or :data:`EMPTY_SNAPSHOT` if none was written."""
        with self._lock:
            return self._snapshot

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return self._snapshot is EMPTY_SNAPSHOT

    @property
    def writes(self) -> int:
        """Number of snapshots written since construction."""
        with self._lock:
            return self._writes
