"""Telemetry snapshot model and its simulator data definition.

A :class:`TelemetrySnapshot` is one reading of the user aircraft.  Field
aliases are the wire names served over HTTP (``Title``,
``PlaneLatitude``, ...); validation also accepts the python field names
so adapters can hand over either form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fsbridge._constants import TITLE_MAX_LENGTH


@dataclass(frozen=True)
class SimVarField:
    """One simulation variable in the snapshot data definition.

    ``text_length`` is set for fixed-length string variables; numeric
    variables carry a unit instead.
    """

    field: str
    sim_var: str
    unit: str | None = None
    text_length: int | None = None

    @property
    def is_text(self) -> bool:
        return self.text_length is not None


SNAPSHOT_DEFINITION: tuple[SimVarField, ...] = (
    SimVarField("title", "TITLE", text_length=TITLE_MAX_LENGTH),
    SimVarField("latitude", "PLANE LATITUDE", "degrees"),
    SimVarField("longitude", "PLANE LONGITUDE", "degrees"),
    SimVarField("altitude", "PLANE ALTITUDE", "feet"),
    SimVarField("heading_magnetic", "PLANE HEADING DEGREES MAGNETIC", "degrees"),
    SimVarField("airspeed_true", "AIRSPEED TRUE", "knots"),
    SimVarField("vertical_speed", "VERTICAL SPEED", "feet per minute"),
)
"""Ordered data definition registered with the simulator."""


class TelemetrySnapshot(BaseModel):
    """One immutable reading of the user aircraft.

    Parameters
    ----------
    title : str
        Aircraft display name, at most 256 characters.
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    altitude : float
        Altitude in feet.
    heading_magnetic : float
        Magnetic heading in degrees.
    airspeed_true : float
        True airspeed in knots.
    vertical_speed : float
        Vertical speed in feet per minute.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    title: str = Field(alias="Title")
    latitude: float = Field(alias="PlaneLatitude", allow_inf_nan=False)
    longitude: float = Field(alias="PlaneLongitude", allow_inf_nan=False)
    altitude: float = Field(alias="PlaneAltitude", allow_inf_nan=False)
    heading_magnetic: float = Field(alias="PlaneHeadingDegreesMagnetic", allow_inf_nan=False)
    airspeed_true: float = Field(alias="AirspeedTrue", allow_inf_nan=False)
    vertical_speed: float = Field(alias="VerticalSpeed", allow_inf_nan=False)

    @field_validator("title", mode="before")
    @classmethod
    def _decode_fixed_text(cls, value: Any) -> Any:
        # Fixed-length strings arrive NUL padded, sometimes as raw bytes.
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8", errors="replace")
        if isinstance(value, str):
            return value.split("\x00", 1)[0][:TITLE_MAX_LENGTH]
        return value

    def to_wire(self) -> dict[str, Any]:
        """Return the snapshot keyed by its HTTP wire names, in definition order."""
        return self.model_dump(by_alias=True)
