"""isstrack - Async position tracker with trail, camera-follow and link health."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("isstrack")
except PackageNotFoundError:
    __version__ = "0+local"
from isstrack.config import TrackerConfig
from isstrack.exceptions import (
    MalformedResponseError,
    NetworkFailureError,
    StaleResponseError,
    TrackerConfigError,
    TrackerError,
)
from isstrack.metrics import MetricNormalizer
from isstrack.models import (
    CameraAction,
    CameraInstruction,
    MetricRatios,
    PositionSample,
    TelemetryReadout,
)
from isstrack.state.connection import ConnectionMonitor, ConnectionStatus
from isstrack.state.context import TrackingContext
from isstrack.state.follow import FollowMode, FollowStateMachine
from isstrack.state.trail import TrailBuffer
from isstrack.tracker import AcquisitionRequest, PositionTracker
from isstrack.uptime import UptimeClock, format_uptime

__all__ = [
    "__version__",
    "AcquisitionRequest",
    "CameraAction",
    "CameraInstruction",
    "ConnectionMonitor",
    "ConnectionStatus",
    "FollowMode",
    "FollowStateMachine",
    "MalformedResponseError",
    "MetricNormalizer",
    "MetricRatios",
    "NetworkFailureError",
    "PositionSample",
    "PositionTracker",
    "StaleResponseError",
    "TelemetryReadout",
    "TrackerConfig",
    "TrackerConfigError",
    "TrackerError",
    "TrackingContext",
    "TrailBuffer",
    "UptimeClock",
    "format_uptime",
]
