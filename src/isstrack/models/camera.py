"""Camera instructions emitted by the follow state machine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from isstrack._constants import FLY_TO_DURATION, WIDE_ZOOM
from isstrack.models.position import PositionSample


class CameraAction(StrEnum):
    CENTER = "center"
    PAN = "pan"
    FLY_TO = "fly_to"


class CameraInstruction(BaseModel):
    """Where the render collaborator should move the camera.

    ``zoom`` is ``None`` when the current zoom must be kept; ``duration``
    is only set for animated moves.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: CameraAction
    latitude: float
    longitude: float
    zoom: int | None = None
    duration: float | None = None

    @classmethod
    def center(cls, sample: PositionSample) -> CameraInstruction:
        return cls(action=CameraAction.CENTER, latitude=sample.latitude, longitude=sample.longitude, zoom=WIDE_ZOOM)

    @classmethod
    def pan(cls, sample: PositionSample) -> CameraInstruction:
        return cls(action=CameraAction.PAN, latitude=sample.latitude, longitude=sample.longitude)

    @classmethod
    def fly_to(cls, sample: PositionSample) -> CameraInstruction:
        return cls(
            action=CameraAction.FLY_TO,
            latitude=sample.latitude,
            longitude=sample.longitude,
            zoom=WIDE_ZOOM,
            duration=FLY_TO_DURATION,
        )
