"""Telemetry display scaling.

Maps raw altitude/velocity onto gauge ratios.  The reference maxima are
display constants, not physical limits, and can be overridden through
:class:`~isstrack.config.TrackerConfig`.
"""

from __future__ import annotations

from isstrack._constants import ALTITUDE_REFERENCE_MAX, VELOCITY_REFERENCE_MAX
from isstrack.exceptions import TrackerConfigError
from isstrack.models.telemetry import MetricRatios


def normalize_ratio(value: float, reference_max: float) -> float:
    """``value / reference_max`` clamped to at most 1.0."""
    return min(value / reference_max, 1.0)


class MetricNormalizer:
    def __init__(
        self,
        altitude_reference_max: float = ALTITUDE_REFERENCE_MAX,
        velocity_reference_max: float = VELOCITY_REFERENCE_MAX,
    ) -> None:
        if altitude_reference_max <= 0 or velocity_reference_max <= 0:
            raise TrackerConfigError(
                f"reference maxima must be positive, got altitude={altitude_reference_max} "
                f"velocity={velocity_reference_max}"
            )
        self.altitude_reference_max = altitude_reference_max
        self.velocity_reference_max = velocity_reference_max

    def normalize(self, altitude: float, velocity: float) -> MetricRatios:
        return MetricRatios(
            altitude_ratio=normalize_ratio(altitude, self.altitude_reference_max),
            velocity_ratio=normalize_ratio(velocity, self.velocity_reference_max),
        )
