#!/usr/bin/env python3
"""Watch the tracked object from the terminal.

Runs a :class:`PositionTracker` against the configured endpoint and
prints every accepted sample, connection change, gauge reading and
uptime tick.  A stand-in for the map UI when debugging the acquisition
loop.

Usage
-----
::

    python scripts/watch_position.py
    python scripts/watch_position.py --polls 10 --interval-ms 1000

Configuration is read from ``ISSTRACK_*`` environment variables; the
flags below override them.

Options::

    --url URL            Endpoint to poll
    --interval-ms N      Poll interval in milliseconds
    --polls N            Stop after N accepted samples (default: run forever)
    --recenter           Request a camera lock after the first sample
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from isstrack import (  # noqa: E402
    CameraInstruction,
    ConnectionStatus,
    FollowMode,
    PositionSample,
    PositionTracker,
    TelemetryReadout,
    TrackerConfig,
)

_BAR_WIDTH = 20


def _bar(ratio: float) -> str:
    filled = int(round(max(ratio, 0.0) * _BAR_WIDTH))
    return "#" * filled + "." * (_BAR_WIDTH - filled)


class _ConsoleRenderer:
    """Prints tracker callbacks; sets ``done`` after enough samples."""

    def __init__(self, polls: int | None, recenter: bool) -> None:
        self.polls = polls
        self.recenter = recenter
        self.accepted = 0
        self.done = asyncio.Event()
        self.tracker: PositionTracker | None = None

    def on_sample_accepted(
        self,
        sample: PositionSample,
        trail: tuple[PositionSample, ...],
        instruction: CameraInstruction | None,
    ) -> None:
        self.accepted += 1
        camera = f" camera={instruction.action}" if instruction is not None else ""
        print(f"[#{sample.sequence}] {sample.latitude:9.4f} {sample.longitude:9.4f} trail={len(trail)}{camera}")
        if self.recenter and self.accepted == 1 and self.tracker is not None:
            self.tracker.on_recenter_requested()
        if self.polls is not None and self.accepted >= self.polls:
            self.done.set()

    def on_connection_changed(self, status: ConnectionStatus) -> None:
        print(f"  link    : {status.upper()}")

    def on_metrics(self, altitude_ratio: float, velocity_ratio: float, readout: TelemetryReadout) -> None:
        print(f"  alt {readout.altitude:>10} km   [{_bar(altitude_ratio)}]")
        print(f"  vel {readout.velocity:>10} km/h [{_bar(velocity_ratio)}]")

    def on_uptime_tick(self, formatted: str) -> None:
        logging.getLogger("watch_position").debug("uptime %s", formatted)

    def on_camera_instruction(self, instruction: CameraInstruction) -> None:
        print(f"  camera  : {instruction.action} -> {instruction.latitude:.4f}, {instruction.longitude:.4f}")

    def on_follow_changed(self, mode: FollowMode) -> None:
        print(f"  follow  : {mode.upper()}")

    def on_boot_complete(self) -> None:
        print("  boot    : systems online")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch the tracked object's position from the terminal.")
    parser.add_argument("--url", help="Endpoint to poll")
    parser.add_argument("--interval-ms", type=int, help="Poll interval in milliseconds")
    parser.add_argument("--polls", type=int, help="Stop after N accepted samples")
    parser.add_argument("--recenter", action="store_true", help="Request a camera lock after the first sample")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.url:
        overrides["endpoint_url"] = args.url
    if args.interval_ms:
        overrides["poll_interval"] = args.interval_ms / 1000.0
    config = TrackerConfig.from_env(**overrides)

    renderer = _ConsoleRenderer(args.polls, args.recenter)
    print(f"Tracking {config.endpoint_url} every {config.poll_interval_ms} ms")

    async with PositionTracker(
        config,
        on_sample_accepted=renderer.on_sample_accepted,
        on_connection_changed=renderer.on_connection_changed,
        on_metrics=renderer.on_metrics,
        on_uptime_tick=renderer.on_uptime_tick,
        on_camera_instruction=renderer.on_camera_instruction,
        on_follow_changed=renderer.on_follow_changed,
        on_boot_complete=renderer.on_boot_complete,
    ) as tracker:
        renderer.tracker = tracker
        await tracker.start()
        await renderer.done.wait()
        print(f"Stopped after {renderer.accepted} samples, uptime {tracker.uptime.formatted()}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
