"""State layer.

Holds the single shared hand-off point between the push-based simulator
feed and the pull-based HTTP reader.
"""

from fsbridge.state.store import EMPTY_SNAPSHOT, SnapshotStore

__all__ = ["EMPTY_SNAPSHOT", "SnapshotStore"]
