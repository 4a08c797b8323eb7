"""Tracking context owned by the acquisition loop."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from isstrack.config import TrackerConfig
from isstrack.exceptions import StaleResponseError
from isstrack.metrics import MetricNormalizer
from isstrack.state.connection import ConnectionMonitor
from isstrack.state.follow import FollowMode, FollowStateMachine
from isstrack.state.policy import is_stale
from isstrack.state.trail import TrailBuffer


@dataclass
class TrackingContext:
    """All shared tracking state in one place.

    ``latest_sequence`` is the highest request sequence whose response
    has been applied; anything at or below it is stale.
    """

    trail: TrailBuffer
    follow: FollowStateMachine
    connection: ConnectionMonitor
    normalizer: MetricNormalizer
    latest_sequence: int = 0

    @classmethod
    def from_config(
        cls,
        config: TrackerConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_follow_changed: Callable[[FollowMode], None] | None = None,
    ) -> TrackingContext:
        return cls(
            trail=TrailBuffer(config.trail_capacity),
            follow=FollowStateMachine(
                lock_duration=config.lock_duration,
                clock=clock,
                on_mode_changed=on_follow_changed,
            ),
            connection=ConnectionMonitor(),
            normalizer=MetricNormalizer(config.altitude_reference_max, config.velocity_reference_max),
        )

    def check_fresh(self, sequence: int) -> None:
        """Raise :class:`StaleResponseError` if *sequence* was superseded."""
        if is_stale(sequence, self.latest_sequence):
            raise StaleResponseError(sequence, self.latest_sequence)

    def accept(self, sequence: int) -> None:
        """Record *sequence* as the newest applied response."""
        self.check_fresh(sequence)
        self.latest_sequence = sequence
