"""Position sample model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from isstrack.ingestion.normalize import safe_float, safe_str, strict_float


class PositionSample(BaseModel):
    """One accepted observation of the tracked object.

    Parameters
    ----------
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    altitude : float
        Altitude in kilometers.
    velocity : float
        Velocity in km/h.
    sequence : int
        Issue-order number of the request that produced this sample.
    payload_timestamp : float or None
        Epoch seconds reported by the endpoint, if any.
    visibility : str or None
        Upstream visibility label (e.g. ``"daylight"``, ``"eclipsed"``).
    raw : dict
        Original payload dict.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    latitude: float
    longitude: float
    altitude: float
    velocity: float
    sequence: int = Field(ge=1)
    payload_timestamp: float | None = Field(default=None, validation_alias=AliasChoices("timestamp", "payload_timestamp"))
    visibility: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        if "raw" in values:
            return values
        original = {k: v for k, v in values.items() if k != "sequence"}
        return {**values, "raw": original}

    @field_validator("latitude", "longitude", "altitude", "velocity", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> float:
        parsed = strict_float(value)
        if parsed is None:
            raise ValueError(f"expected a finite number, got {value!r}")
        return parsed

    @field_validator("payload_timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("visibility", mode="before")
    @classmethod
    def _coerce_visibility(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def lat_lng(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)
