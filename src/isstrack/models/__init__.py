"""Typed models for isstrack."""

from isstrack.models.camera import CameraAction, CameraInstruction
from isstrack.models.position import PositionSample
from isstrack.models.telemetry import MetricRatios, TelemetryReadout

__all__ = [
    "CameraAction",
    "CameraInstruction",
    "MetricRatios",
    "PositionSample",
    "TelemetryReadout",
]
