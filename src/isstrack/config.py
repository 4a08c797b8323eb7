"""Tracker configuration for isstrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from isstrack._constants import (
    ALTITUDE_REFERENCE_MAX,
    API_URL,
    VELOCITY_REFERENCE_MAX,
)
from isstrack.exceptions import TrackerConfigError


def _env_ms(value: str) -> float:
    """Parse a millisecond env value into seconds."""
    try:
        return float(value) / 1000.0
    except ValueError as exc:
        raise TrackerConfigError(f"Expected a number of milliseconds, got {value!r}") from exc


def _env_number(value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise TrackerConfigError(f"Expected a {cast.__name__}, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Durations are stored in seconds; the ``*_ms`` properties expose
    the millisecond view used by the environment variables.

    Parameters
    ----------
    endpoint_url : str
        URL polled for the tracked object's position.
    poll_interval : float
        Seconds between acquisition ticks.  Ticks fire on this cadence
        whether or not the previous request has completed.
    trail_capacity : int
        Maximum number of samples kept in the trail.
    lock_duration : float
        Seconds the camera keeps following after a recenter request.
    altitude_reference_max : float
        Altitude (km) that maps to a full altitude gauge.
    velocity_reference_max : float
        Velocity (km/h) that maps to a full velocity gauge.
    request_timeout : float
        Total timeout in seconds for a single position request.
    uptime_interval : float
        Seconds between uptime display ticks.
    boot_delay : float
        Seconds after start before the boot-complete signal fires.
    """

    endpoint_url: str = API_URL
    poll_interval: float = 2.0
    trail_capacity: int = 500
    lock_duration: float = 2.0
    altitude_reference_max: float = ALTITUDE_REFERENCE_MAX
    velocity_reference_max: float = VELOCITY_REFERENCE_MAX
    request_timeout: float = 10.0
    uptime_interval: float = 1.0
    boot_delay: float = 2.5

    def __post_init__(self) -> None:
        if not self.endpoint_url or not self.endpoint_url.strip():
            raise TrackerConfigError("endpoint_url must be non-empty")
        if self.poll_interval <= 0:
            raise TrackerConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.trail_capacity < 1:
            raise TrackerConfigError(f"trail_capacity must be at least 1, got {self.trail_capacity}")
        if self.lock_duration < 0:
            raise TrackerConfigError(f"lock_duration must not be negative, got {self.lock_duration}")
        if self.altitude_reference_max <= 0 or self.velocity_reference_max <= 0:
            raise TrackerConfigError("reference maxima must be positive")
        if self.request_timeout <= 0:
            raise TrackerConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @property
    def poll_interval_ms(self) -> int:
        return int(round(self.poll_interval * 1000))

    @property
    def lock_duration_ms(self) -> int:
        return int(round(self.lock_duration * 1000))

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from environment variables.

        Reads optional ``ISSTRACK_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TrackerConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("ISSTRACK_ENDPOINT_URL")
        if url is not None:
            config_kwargs["endpoint_url"] = url.strip()

        _ENV_MS_MAP = {
            "ISSTRACK_POLL_INTERVAL_MS": "poll_interval",
            "ISSTRACK_LOCK_DURATION_MS": "lock_duration",
        }
        for env_key, field_name in _ENV_MS_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = _env_ms(val)

        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "ISSTRACK_TRAIL_CAPACITY": ("trail_capacity", int),
            "ISSTRACK_ALTITUDE_REFERENCE_MAX": ("altitude_reference_max", float),
            "ISSTRACK_VELOCITY_REFERENCE_MAX": ("velocity_reference_max", float),
            "ISSTRACK_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = _env_number(val, cast)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
