"""Telemetry source adapter contract.

The simulator SDK is an external collaborator.  The bridge only depends
on the structural :class:`TelemetrySource` protocol below, which makes it
easy to plug in test doubles while keeping the production adapter
(:mod:`fsbridge._simconnect`) concrete.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import IntEnum
from typing import Any, Protocol

from fsbridge.models.snapshot import SimVarField

ConnectionChangedCallback = Callable[[bool], None]
DataReceivedCallback = Callable[[int, Sequence[Any]], None]


class SubscriptionPeriod(IntEnum):
    """How often the simulator delivers data for a subscription."""

    NEVER = 0
    ONCE = 1
    VISUAL_FRAME = 2
    SIM_FRAME = 3
    SECOND = 4

    @property
    def seconds(self) -> float | None:
        """Wall-clock period for pollers, ``None`` when not time based."""
        if self is SubscriptionPeriod.SECOND:
            return 1.0
        if self is SubscriptionPeriod.VISUAL_FRAME or self is SubscriptionPeriod.SIM_FRAME:
            return 1.0 / 30.0
        return None


class RequestFlag(IntEnum):
    """Delivery filter of a subscription."""

    DEFAULT = 0
    """Deliver every period, no value filtering."""
    CHANGED = 1
    """Deliver only when a value changed."""
    TAGGED = 2


class TelemetrySource(Protocol):
    """Structural interface of a simulator client.

    Callbacks may be invoked on a thread owned by the adapter.
    ``on_connection_changed`` must be delivered serially.
    """

    on_connection_changed: ConnectionChangedCallback | None
    on_data_received: DataReceivedCallback | None

    def connect(self, app_name: str) -> None:
        """Open the link.  Raises when the simulator is unreachable.

        Calling it again replaces any previous link.
        """
        ...

    def disconnect(self) -> None:
        ...

    def register_data_definition(self, fields: Sequence[SimVarField]) -> int:
        """Declare the snapshot layout and return an opaque definition handle."""
        ...

    def request_data_on_sim_object(
        self,
        request_id: int,
        definition_id: int,
        object_id: int,
        period: SubscriptionPeriod,
        flags: RequestFlag = RequestFlag.DEFAULT,
    ) -> None:
        """Start a standing subscription delivering ``definition_id`` data."""
        ...
