"""Bounded FIFO history of accepted samples."""

from __future__ import annotations

from collections import deque

from isstrack.exceptions import TrackerConfigError
from isstrack.models.position import PositionSample

DEFAULT_TRAIL_CAPACITY = 500


class TrailBuffer:
    """Recent samples in arrival order, oldest first.

    Pushing past ``capacity`` evicts from the front.  Duplicates are
    kept; the trail mirrors exactly what was accepted.
    """

    def __init__(self, capacity: int = DEFAULT_TRAIL_CAPACITY) -> None:
        if capacity < 1:
            raise TrackerConfigError(f"trail capacity must be at least 1, got {capacity}")
        self._samples: deque[PositionSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        maxlen = self._samples.maxlen
        assert maxlen is not None  # noqa: S101
        return maxlen

    @property
    def latest(self) -> PositionSample | None:
        return self._samples[-1] if self._samples else None

    def push(self, sample: PositionSample) -> None:
        self._samples.append(sample)

    def snapshot(self) -> tuple[PositionSample, ...]:
        return tuple(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)
