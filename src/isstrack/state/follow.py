"""Camera-follow state machine.

Two modes: ``FREE`` (operator controls the camera) and ``LOCKED``
(camera pans to each new sample until the lock expires).  A separate
one-shot flag centers the camera on the very first sample regardless
of mode.

Lock expiry is enforced twice: a ``loop.call_later`` handle reverts to
``FREE`` as soon as the window elapses, and the accessors re-check the
clock so reads are correct when no event loop is running.  Reads never
transition the machine; only events and the timer do.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum

from isstrack.models.camera import CameraInstruction
from isstrack.models.position import PositionSample
from isstrack.state.policy import is_expired

_logger = logging.getLogger(__name__)

DEFAULT_LOCK_DURATION = 2.0


class FollowMode(StrEnum):
    FREE = "free"
    LOCKED = "locked"


class FollowStateMachine:
    """Decides which camera instruction, if any, each event produces.

    Parameters
    ----------
    lock_duration : float
        Seconds a recenter request keeps the camera locked.
    clock : callable
        Monotonic clock in seconds.  Injected for tests.
    on_mode_changed : callable or None
        Called with the new :class:`FollowMode` on every transition.
    """

    def __init__(
        self,
        *,
        lock_duration: float = DEFAULT_LOCK_DURATION,
        clock: Callable[[], float] = time.monotonic,
        on_mode_changed: Callable[[FollowMode], None] | None = None,
    ) -> None:
        self._lock_duration = lock_duration
        self._clock = clock
        self._on_mode_changed = on_mode_changed
        self._mode = FollowMode.FREE
        self._has_centered = False
        self._lock_expires_at: float | None = None
        # Bumped on every lock/release so stale reversion callbacks are no-ops.
        self._lock_token = 0
        self._revert_handle: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def mode(self) -> FollowMode:
        """Effective mode.  An elapsed lock reads as ``FREE`` without firing ``on_mode_changed``."""
        if self._lock_elapsed():
            return FollowMode.FREE
        return self._mode

    @property
    def is_locked(self) -> bool:
        return self.mode is FollowMode.LOCKED

    @property
    def has_centered(self) -> bool:
        return self._has_centered

    @property
    def lock_expires_at(self) -> float | None:
        if self._lock_elapsed():
            return None
        return self._lock_expires_at

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_sample(self, sample: PositionSample) -> CameraInstruction | None:
        """Handle an accepted sample."""
        if not self._has_centered:
            self._has_centered = True
            return CameraInstruction.center(sample)

        if self._mode is FollowMode.LOCKED:
            if not is_expired(self._clock(), self._lock_expires_at):
                return CameraInstruction.pan(sample)
            self._release("expired")
        return None

    def on_drag_start(self) -> None:
        """Operator grabbed the map: manual control wins immediately."""
        self._release("drag")

    def recenter(self, last_sample: PositionSample | None) -> CameraInstruction | None:
        """Lock onto the object for ``lock_duration`` seconds.

        Returns a fly-to instruction for *last_sample*, or ``None`` when
        nothing has been received yet (the lock is applied anyway so the
        first pan happens as soon as data arrives).
        """
        self._lock_token += 1
        self._lock_expires_at = self._clock() + self._lock_duration
        self._schedule_revert(self._lock_token)
        self._set_mode(FollowMode.LOCKED)
        _logger.debug("Camera locked until %.3f", self._lock_expires_at)
        if last_sample is None:
            return None
        return CameraInstruction.fly_to(last_sample)

    def close(self) -> None:
        """Cancel any pending reversion timer."""
        self._cancel_revert()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _schedule_revert(self, token: int) -> None:
        self._cancel_revert()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: accessors and on_sample still honour the expiry instant.
            return
        self._revert_handle = loop.call_later(self._lock_duration, self._revert, token)

    def _revert(self, token: int) -> None:
        if token != self._lock_token:
            return
        self._revert_handle = None
        self._release("expired")

    def _cancel_revert(self) -> None:
        handle = self._revert_handle
        self._revert_handle = None
        if handle is not None:
            handle.cancel()

    def _lock_elapsed(self) -> bool:
        return self._mode is FollowMode.LOCKED and is_expired(self._clock(), self._lock_expires_at)

    def _release(self, reason: str) -> None:
        self._lock_token += 1
        self._cancel_revert()
        self._lock_expires_at = None
        if self._mode is FollowMode.LOCKED:
            _logger.debug("Camera lock released (%s)", reason)
        self._set_mode(FollowMode.FREE)

    def _set_mode(self, mode: FollowMode) -> None:
        if mode is self._mode:
            return
        self._mode = mode
        if self._on_mode_changed is None:
            return
        try:
            self._on_mode_changed(mode)
        except Exception:
            _logger.warning("on_mode_changed callback failed", exc_info=True)
