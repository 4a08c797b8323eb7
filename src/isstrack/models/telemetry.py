"""HUD telemetry models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from isstrack.models.position import PositionSample


class MetricRatios(BaseModel):
    """Gauge fill ratios derived from raw telemetry.

    Clamped at 1.0 from above only; physical magnitudes are expected to
    be non-negative so no lower clamp is applied.
    """

    model_config = ConfigDict(frozen=True)

    altitude_ratio: float
    velocity_ratio: float

    @property
    def altitude_percent(self) -> float:
        return self.altitude_ratio * 100.0

    @property
    def velocity_percent(self) -> float:
        return self.velocity_ratio * 100.0


class TelemetryReadout(BaseModel):
    """Display strings for the raw values of a sample."""

    model_config = ConfigDict(frozen=True)

    latitude: str
    longitude: str
    altitude: str
    velocity: str

    @classmethod
    def from_sample(cls, sample: PositionSample) -> TelemetryReadout:
        return cls(
            latitude=f"{sample.latitude:.4f}",
            longitude=f"{sample.longitude:.4f}",
            altitude=f"{sample.altitude:.2f}",
            velocity=f"{sample.velocity:.2f}",
        )
