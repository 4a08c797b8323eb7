"""High-level async position tracker."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiohttp

from isstrack._transport import HttpTransport, Transport
from isstrack.config import TrackerConfig
from isstrack.exceptions import (
    MalformedResponseError,
    NetworkFailureError,
    StaleResponseError,
    TrackerError,
)
from isstrack.ingestion.position import parse_position_payload
from isstrack.models.camera import CameraInstruction
from isstrack.models.position import PositionSample
from isstrack.models.telemetry import TelemetryReadout
from isstrack.state.connection import ConnectionStatus
from isstrack.state.context import TrackingContext
from isstrack.state.follow import FollowMode
from isstrack.uptime import UptimeClock

_logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AcquisitionRequest:
    """A position request, stamped with its sequence at issue time."""

    sequence: int
    issued_at: float


class PositionTracker:
    """Periodically acquires the tracked object's position.

    Usage::

        async with PositionTracker(config, on_sample_accepted=render) as tracker:
            await tracker.run_forever()

    A new request is issued every ``poll_interval`` seconds whether or
    not earlier requests have finished.  Responses may therefore arrive
    out of order; each is checked against the highest accepted sequence
    before anything is mutated, and superseded ones are dropped.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_sample_accepted: Callable[
            [PositionSample, tuple[PositionSample, ...], CameraInstruction | None], None
        ]
        | None = None,
        on_connection_changed: Callable[[ConnectionStatus], None] | None = None,
        on_metrics: Callable[[float, float, TelemetryReadout], None] | None = None,
        on_uptime_tick: Callable[[str], None] | None = None,
        on_camera_instruction: Callable[[CameraInstruction], None] | None = None,
        on_follow_changed: Callable[[FollowMode], None] | None = None,
        on_boot_complete: Callable[[], None] | None = None,
    ) -> None:
        self._config = config if config is not None else TrackerConfig()
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport
        self._clock = clock
        self._on_sample_accepted = on_sample_accepted
        self._on_connection_changed = on_connection_changed
        self._on_metrics = on_metrics
        self._on_uptime_tick = on_uptime_tick
        self._on_camera_instruction = on_camera_instruction
        self._on_follow_changed = on_follow_changed
        self._on_boot_complete = on_boot_complete

        self._context = TrackingContext.from_config(
            self._config,
            clock=clock,
            on_follow_changed=self._handle_follow_changed,
        )
        self._uptime = UptimeClock(clock)
        self._next_sequence = 0
        self._inflight: dict[int, asyncio.Task[bool]] = {}
        self._tasks: list[asyncio.Task[None]] = []
        self._boot_handle: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PositionTracker:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def context(self) -> TrackingContext:
        return self._context

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._context.connection.status

    @property
    def follow_mode(self) -> FollowMode:
        return self._context.follow.mode

    @property
    def latest_sequence(self) -> int:
        return self._context.latest_sequence

    @property
    def uptime(self) -> UptimeClock:
        return self._uptime

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    def trail_snapshot(self) -> tuple[PositionSample, ...]:
        return self._context.trail.snapshot()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the poll loop, the uptime ticker and the boot timer."""
        if self.is_running:
            return
        self._require_transport()
        loop = asyncio.get_running_loop()
        self._uptime = UptimeClock(self._clock)
        self._tasks = [
            loop.create_task(self._poll_loop(), name="isstrack-poll"),
            loop.create_task(self._uptime_loop(), name="isstrack-uptime"),
        ]
        self._boot_handle = loop.call_later(self._config.boot_delay, self._handle_boot_complete)
        _logger.debug(
            "Tracker started: url=%s interval=%.3fs",
            self._config.endpoint_url,
            self._config.poll_interval,
        )

    async def stop(self) -> None:
        """Cancel every timer, loop and in-flight request."""
        if self._boot_handle is not None:
            self._boot_handle.cancel()
            self._boot_handle = None
        self._context.follow.close()

        pending: list[asyncio.Task[Any]] = [*self._tasks, *self._inflight.values()]
        self._tasks = []
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._inflight.clear()

    async def run_forever(self) -> None:
        """Start and block until cancelled."""
        await self.start()
        try:
            await asyncio.gather(*self._tasks)
        finally:
            await self.stop()

    async def _poll_loop(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self._config.poll_interval
        next_tick = loop.time()
        while True:
            self.issue_request()
            next_tick += interval
            now = loop.time()
            if next_tick < now:
                # Event loop stalled past a whole period; skip the missed ticks.
                next_tick = now
            await asyncio.sleep(next_tick - now)

    async def _uptime_loop(self) -> None:
        while True:
            self._notify("on_uptime_tick", self._on_uptime_tick, self._uptime.formatted())
            await asyncio.sleep(self._config.uptime_interval)

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def issue_request(self) -> AcquisitionRequest:
        """Issue one request without waiting for it."""
        request = self._new_request()
        self._spawn(request)
        return request

    async def poll_once(self) -> bool:
        """Issue one request and wait for it to be applied.

        Returns ``True`` if the outcome changed state (accepted sample or
        recorded failure), ``False`` if it was dropped as stale.
        """
        request = self._new_request()
        return await self._spawn(request)

    def _new_request(self) -> AcquisitionRequest:
        self._next_sequence += 1
        return AcquisitionRequest(sequence=self._next_sequence, issued_at=self._clock())

    def _spawn(self, request: AcquisitionRequest) -> asyncio.Task[bool]:
        transport = self._require_transport()
        task = asyncio.get_running_loop().create_task(
            self._execute(request, transport),
            name=f"isstrack-request-{request.sequence}",
        )
        self._inflight[request.sequence] = task
        task.add_done_callback(lambda t, seq=request.sequence: self._on_request_done(seq, t))
        return task

    def _on_request_done(self, sequence: int, task: asyncio.Task[bool]) -> None:
        self._inflight.pop(sequence, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Position request #%d crashed", sequence, exc_info=exc)

    async def _execute(self, request: AcquisitionRequest, transport: Transport) -> bool:
        try:
            payload = await transport.fetch_json(self._config.endpoint_url)
        except NetworkFailureError as exc:
            return self.complete(request, error=exc)
        except Exception as exc:
            # Injected transports may raise anything; it still counts as a failed request.
            _logger.debug("Transport raised for request #%d", request.sequence, exc_info=True)
            failure = NetworkFailureError(
                f"Request to {self._config.endpoint_url} failed: {exc!r}",
                url=self._config.endpoint_url,
            )
            failure.__cause__ = exc
            return self.complete(request, error=failure)
        return self.complete(request, payload=payload)

    def complete(
        self,
        request: AcquisitionRequest,
        *,
        payload: Any = None,
        error: TrackerError | None = None,
    ) -> bool:
        """Apply the outcome of *request*.

        This is the only place acquisition results touch shared state.
        The staleness check runs before anything else, so a superseded
        response (successful or not) never mutates the trail, the
        follow state or the connection monitor.

        Returns ``True`` when state was updated, ``False`` when the
        response was dropped as stale.
        """
        try:
            self._context.check_fresh(request.sequence)
        except StaleResponseError as exc:
            _logger.debug("%s; dropped", exc)
            return False

        if error is None:
            try:
                sample = parse_position_payload(payload, sequence=request.sequence)
            except MalformedResponseError as exc:
                error = exc
            else:
                self._apply_sample(sample)
                return True

        self._apply_failure(request, error)
        return True

    def _apply_sample(self, sample: PositionSample) -> None:
        ctx = self._context
        ctx.accept(sample.sequence)
        changed = ctx.connection.record_success()
        ctx.trail.push(sample)
        ratios = ctx.normalizer.normalize(sample.altitude, sample.velocity)
        instruction = ctx.follow.on_sample(sample)
        snapshot = ctx.trail.snapshot()

        _logger.debug(
            "Accepted #%d lat=%.4f lon=%.4f trail=%d camera=%s",
            sample.sequence,
            sample.latitude,
            sample.longitude,
            len(snapshot),
            instruction.action if instruction is not None else None,
        )

        if changed:
            self._notify("on_connection_changed", self._on_connection_changed, ConnectionStatus.ONLINE)
        self._notify(
            "on_metrics",
            self._on_metrics,
            ratios.altitude_ratio,
            ratios.velocity_ratio,
            TelemetryReadout.from_sample(sample),
        )
        self._notify("on_sample_accepted", self._on_sample_accepted, sample, snapshot, instruction)

    def _apply_failure(self, request: AcquisitionRequest, error: TrackerError) -> None:
        changed = self._context.connection.record_failure()
        if changed:
            _logger.warning("Position request #%d failed, going offline: %s", request.sequence, error)
            self._notify("on_connection_changed", self._on_connection_changed, ConnectionStatus.OFFLINE)
        else:
            _logger.debug("Position request #%d failed: %s", request.sequence, error)

    # ------------------------------------------------------------------
    # Operator signals
    # ------------------------------------------------------------------

    def on_drag_start(self) -> None:
        """The operator started dragging the map."""
        self._context.follow.on_drag_start()

    def on_recenter_requested(self) -> CameraInstruction | None:
        """Fly back to the last known position and follow it briefly."""
        instruction = self._context.follow.recenter(self._context.trail.latest)
        if instruction is not None:
            self._notify("on_camera_instruction", self._on_camera_instruction, instruction)
        return instruction

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TrackerError("Tracker not initialized. Use 'async with PositionTracker(...) as tracker:'")
        return self._transport

    def _handle_follow_changed(self, mode: FollowMode) -> None:
        self._notify("on_follow_changed", self._on_follow_changed, mode)

    def _handle_boot_complete(self) -> None:
        self._boot_handle = None
        self._notify("on_boot_complete", self._on_boot_complete)

    def _notify(self, name: str, callback: Callable[..., None] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            _logger.warning("%s callback failed", name, exc_info=True)
