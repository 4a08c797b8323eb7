from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import pytest
from aiohttp import test_utils, web

from isstrack.config import TrackerConfig
from isstrack.exceptions import NetworkFailureError, TrackerError
from isstrack.models.camera import CameraAction, CameraInstruction
from isstrack.models.position import PositionSample
from isstrack.models.telemetry import TelemetryReadout
from isstrack.state.connection import ConnectionStatus
from isstrack.state.follow import FollowMode
from isstrack.tracker import PositionTracker


def _payload(lat: float, lon: float, alt: float = 408.0, vel: float = 27600.0) -> dict[str, Any]:
    return {"latitude": lat, "longitude": lon, "altitude": alt, "velocity": vel}


class _QueueTransport:
    """Returns (or raises) pre-programmed outcomes in order."""

    def __init__(self, *outcomes: Any) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0

    async def fetch_json(self, _url: str) -> Any:
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _GatedTransport:
    """Each call blocks until the test resolves its future."""

    def __init__(self) -> None:
        self.pending: list[asyncio.Future[Any]] = []

    async def fetch_json(self, _url: str) -> Any:
        fut: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self.pending.append(fut)
        return await fut


class _SlowTransport:
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.calls = 0

    async def fetch_json(self, _url: str) -> Any:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return _payload(1.0, 2.0)


class _Recorder:
    def __init__(self) -> None:
        self.accepted: list[tuple[PositionSample, tuple[PositionSample, ...], CameraInstruction | None]] = []
        self.statuses: list[ConnectionStatus] = []
        self.metrics: list[tuple[float, float, TelemetryReadout]] = []
        self.camera: list[CameraInstruction] = []
        self.follow: list[FollowMode] = []
        self.uptime: list[str] = []
        self.boots = 0

    def on_sample_accepted(
        self,
        sample: PositionSample,
        trail: tuple[PositionSample, ...],
        instruction: CameraInstruction | None,
    ) -> None:
        self.accepted.append((sample, trail, instruction))

    def on_metrics(self, altitude_ratio: float, velocity_ratio: float, readout: TelemetryReadout) -> None:
        self.metrics.append((altitude_ratio, velocity_ratio, readout))

    def on_boot_complete(self) -> None:
        self.boots += 1

    def kwargs(self) -> dict[str, Any]:
        return {
            "on_sample_accepted": self.on_sample_accepted,
            "on_connection_changed": self.statuses.append,
            "on_metrics": self.on_metrics,
            "on_uptime_tick": self.uptime.append,
            "on_camera_instruction": self.camera.append,
            "on_follow_changed": self.follow.append,
            "on_boot_complete": self.on_boot_complete,
        }


async def _drain(tracker: PositionTracker) -> None:
    for _ in range(100):
        if tracker.inflight_count == 0:
            return
        await asyncio.sleep(0)
    raise AssertionError("requests still in flight")


async def _wait_sequence(tracker: PositionTracker, sequence: int) -> None:
    for _ in range(100):
        if tracker.latest_sequence == sequence:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"sequence {sequence} never accepted")


async def _wait_pending(transport: _GatedTransport, count: int) -> None:
    for _ in range(100):
        if len(transport.pending) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} pending requests, got {len(transport.pending)}")


@pytest.mark.asyncio
async def test_end_to_end_success_failure_success() -> None:
    transport = _QueueTransport(
        _payload(10.0, 20.0),
        NetworkFailureError("HTTP 500", status_code=500),
        _payload(11.0, 21.0),
    )
    rec = _Recorder()

    async with PositionTracker(TrackerConfig(), transport=transport, **rec.kwargs()) as tracker:
        assert await tracker.poll_once() is True
        assert len(tracker.trail_snapshot()) == 1
        assert tracker.connection_status is ConnectionStatus.ONLINE
        sample, trail, instruction = rec.accepted[0]
        assert (sample.latitude, sample.longitude) == (10.0, 20.0)
        assert trail == (sample,)
        assert instruction is not None
        assert instruction.action is CameraAction.CENTER
        assert (instruction.latitude, instruction.longitude, instruction.zoom) == (10.0, 20.0, 5)
        assert rec.metrics[0][0] == pytest.approx(0.906, abs=1e-3)
        assert rec.metrics[0][2].latitude == "10.0000"

        assert await tracker.poll_once() is True
        assert tracker.connection_status is ConnectionStatus.OFFLINE
        assert len(tracker.trail_snapshot()) == 1

        assert await tracker.poll_once() is True
        assert len(tracker.trail_snapshot()) == 2
        assert tracker.connection_status is ConnectionStatus.ONLINE
        assert rec.accepted[-1][2] is None
        assert tracker.follow_mode is FollowMode.FREE

    assert rec.statuses == [ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE, ConnectionStatus.ONLINE]
    assert transport.calls == 3


@pytest.mark.asyncio
async def test_malformed_response_goes_offline_without_touching_trail() -> None:
    transport = _QueueTransport(_payload(1.0, 2.0), {"latitude": "north", "longitude": 2.0})
    rec = _Recorder()

    async with PositionTracker(transport=transport, **rec.kwargs()) as tracker:
        await tracker.poll_once()
        await tracker.poll_once()

        assert tracker.connection_status is ConnectionStatus.OFFLINE
        assert len(tracker.trail_snapshot()) == 1
        assert tracker.latest_sequence == 1
        assert len(rec.accepted) == 1


@pytest.mark.asyncio
async def test_late_response_from_older_request_is_discarded() -> None:
    transport = _GatedTransport()
    rec = _Recorder()

    async with PositionTracker(transport=transport, **rec.kwargs()) as tracker:
        older = tracker.issue_request()
        newer = tracker.issue_request()
        assert newer.sequence == older.sequence + 1
        await _wait_pending(transport, 2)

        transport.pending[1].set_result(_payload(6.0, 6.0))
        await _wait_sequence(tracker, newer.sequence)

        transport.pending[0].set_result(_payload(5.0, 5.0))
        await _drain(tracker)

        assert [s.sequence for s in tracker.trail_snapshot()] == [newer.sequence]
        assert tracker.latest_sequence == newer.sequence
        assert tracker.context.follow.has_centered

    assert len(rec.accepted) == 1
    assert rec.statuses == [ConnectionStatus.ONLINE]


@pytest.mark.asyncio
async def test_late_failure_from_older_request_keeps_link_online() -> None:
    transport = _GatedTransport()
    rec = _Recorder()

    async with PositionTracker(transport=transport, **rec.kwargs()) as tracker:
        tracker.issue_request()
        tracker.issue_request()
        await _wait_pending(transport, 2)

        transport.pending[1].set_result(_payload(6.0, 6.0))
        await _wait_sequence(tracker, 2)
        transport.pending[0].set_exception(NetworkFailureError("timeout"))
        await _drain(tracker)

        assert tracker.connection_status is ConnectionStatus.ONLINE

    assert rec.statuses == [ConnectionStatus.ONLINE]


@pytest.mark.asyncio
async def test_complete_rejects_stale_sequence_directly() -> None:
    rec = _Recorder()

    async with PositionTracker(transport=_QueueTransport(), **rec.kwargs()) as tracker:
        seq5 = tracker._new_request()  # type: ignore[attr-defined]
        seq6 = tracker._new_request()  # type: ignore[attr-defined]

        assert tracker.complete(seq6, payload=_payload(6.0, 6.0)) is True
        assert tracker.complete(seq5, payload=_payload(5.0, 5.0)) is False
        assert tracker.complete(seq6, payload=_payload(6.5, 6.5)) is False

        assert [s.latitude for s in tracker.trail_snapshot()] == [6.0]


@pytest.mark.asyncio
async def test_recenter_locks_then_drag_releases() -> None:
    transport = _QueueTransport(_payload(1.0, 1.0), _payload(2.0, 2.0), _payload(3.0, 3.0))
    rec = _Recorder()
    config = TrackerConfig(lock_duration=30.0)

    async with PositionTracker(config, transport=transport, **rec.kwargs()) as tracker:
        await tracker.poll_once()

        fly = tracker.on_recenter_requested()
        assert fly is not None
        assert fly.action is CameraAction.FLY_TO
        assert (fly.latitude, fly.longitude) == (1.0, 1.0)
        assert rec.camera == [fly]

        await tracker.poll_once()
        pan = rec.accepted[-1][2]
        assert pan is not None
        assert pan.action is CameraAction.PAN
        assert (pan.latitude, pan.longitude) == (2.0, 2.0)

        tracker.on_drag_start()
        await tracker.poll_once()
        assert rec.accepted[-1][2] is None

    assert rec.follow == [FollowMode.LOCKED, FollowMode.FREE]


@pytest.mark.asyncio
async def test_recenter_before_any_sample_emits_nothing_but_locks() -> None:
    rec = _Recorder()

    async with PositionTracker(transport=_QueueTransport(), **rec.kwargs()) as tracker:
        assert tracker.on_recenter_requested() is None
        assert tracker.follow_mode is FollowMode.LOCKED

    assert rec.camera == []


@pytest.mark.asyncio
async def test_lock_reverts_on_timer_while_tracker_runs() -> None:
    rec = _Recorder()
    config = TrackerConfig(lock_duration=0.05)

    async with PositionTracker(config, transport=_QueueTransport(), **rec.kwargs()) as tracker:
        tracker.on_recenter_requested()
        await asyncio.sleep(0.15)

        assert rec.follow == [FollowMode.LOCKED, FollowMode.FREE]


@pytest.mark.asyncio
async def test_callback_failure_does_not_break_acquisition() -> None:
    def _boom(*_args: Any) -> None:
        raise RuntimeError("renderer crashed")

    transport = _QueueTransport(_payload(1.0, 1.0), _payload(2.0, 2.0))

    async with PositionTracker(transport=transport, on_sample_accepted=_boom, on_metrics=_boom) as tracker:
        assert await tracker.poll_once() is True
        assert await tracker.poll_once() is True
        assert len(tracker.trail_snapshot()) == 2


@pytest.mark.asyncio
async def test_trail_respects_configured_capacity() -> None:
    transport = _QueueTransport(*[_payload(float(i), 0.0) for i in range(5)])

    async with PositionTracker(TrackerConfig(trail_capacity=3), transport=transport) as tracker:
        for _ in range(5):
            await tracker.poll_once()

        assert [s.latitude for s in tracker.trail_snapshot()] == [2.0, 3.0, 4.0]


@pytest.mark.asyncio
async def test_ticks_keep_cadence_while_requests_are_slow() -> None:
    transport = _SlowTransport(delay=0.5)
    config = TrackerConfig(poll_interval=0.05, boot_delay=60.0)

    async with PositionTracker(config, transport=transport) as tracker:
        await tracker.start()
        assert tracker.is_running
        await asyncio.sleep(0.18)

        # No request has finished, yet new ones kept being issued.
        assert transport.calls >= 3
        assert tracker.inflight_count >= 3
        assert tracker.latest_sequence == 0

        await tracker.stop()
        assert not tracker.is_running
        assert tracker.inflight_count == 0


@pytest.mark.asyncio
async def test_start_fires_uptime_and_boot_signals() -> None:
    rec = _Recorder()
    config = TrackerConfig(poll_interval=60.0, uptime_interval=0.02, boot_delay=0.03)
    transport = _QueueTransport(_payload(1.0, 2.0))

    async with PositionTracker(config, transport=transport, **rec.kwargs()) as tracker:
        await tracker.start()
        await asyncio.sleep(0.1)

        assert rec.boots == 1
        assert rec.uptime[0] == "00:00:00"
        assert len(rec.uptime) >= 3
        # The first tick fires immediately on start.
        assert transport.calls == 1
        assert len(tracker.trail_snapshot()) == 1


@pytest.mark.asyncio
async def test_stop_before_boot_delay_cancels_boot_signal() -> None:
    rec = _Recorder()
    config = TrackerConfig(poll_interval=60.0, boot_delay=0.05)

    async with PositionTracker(config, transport=_SlowTransport(delay=1.0), **rec.kwargs()) as tracker:
        await tracker.start()
        await tracker.stop()
        await asyncio.sleep(0.1)

    assert rec.boots == 0


@pytest.mark.asyncio
async def test_requires_initialization() -> None:
    tracker = PositionTracker()

    with pytest.raises(TrackerError):
        await tracker.poll_once()
    with pytest.raises(TrackerError):
        await tracker.start()


@pytest.mark.asyncio
async def test_polls_real_http_endpoint() -> None:
    statuses = [200, 502]

    async def handler(_request: web.Request) -> web.Response:
        status = statuses.pop(0)
        if status == 200:
            return web.json_response(_payload(10.0, 20.0))
        return web.Response(status=status)

    app = web.Application()
    app.router.add_get("/v1/satellites/25544", handler)
    rec = _Recorder()

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as session:
        config = TrackerConfig(endpoint_url=str(server.make_url("/v1/satellites/25544")))
        async with PositionTracker(config, session=session, **rec.kwargs()) as tracker:
            await tracker.poll_once()
            await tracker.poll_once()

        assert not session.closed

    assert rec.statuses == [ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE]
    assert len(rec.accepted) == 1


@pytest.mark.asyncio
async def test_undecodable_http_body_goes_offline() -> None:
    bodies = [None, b"\xff\xfe\xfa"]

    async def handler(_request: web.Request) -> web.Response:
        body = bodies.pop(0)
        if body is None:
            return web.json_response(_payload(10.0, 20.0))
        return web.Response(body=body, content_type="application/json", charset="utf-8")

    app = web.Application()
    app.router.add_get("/iss", handler)
    rec = _Recorder()

    async with test_utils.TestServer(app) as server, aiohttp.ClientSession() as session:
        config = TrackerConfig(endpoint_url=str(server.make_url("/iss")))
        async with PositionTracker(config, session=session, **rec.kwargs()) as tracker:
            assert await tracker.poll_once() is True
            assert await tracker.poll_once() is True

            assert tracker.connection_status is ConnectionStatus.OFFLINE
            assert len(tracker.trail_snapshot()) == 1

    assert rec.statuses == [ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE]


@pytest.mark.asyncio
async def test_unexpected_transport_exception_counts_as_failure() -> None:
    transport = _QueueTransport(_payload(1.0, 2.0), RuntimeError("socket layer bug"))
    rec = _Recorder()

    async with PositionTracker(transport=transport, **rec.kwargs()) as tracker:
        await tracker.poll_once()
        assert await tracker.poll_once() is True

        assert tracker.connection_status is ConnectionStatus.OFFLINE
        assert len(tracker.trail_snapshot()) == 1

    assert rec.statuses == [ConnectionStatus.ONLINE, ConnectionStatus.OFFLINE]
