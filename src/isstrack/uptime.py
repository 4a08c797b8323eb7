"""Elapsed-session clock for the uptime readout."""

from __future__ import annotations

import time
from collections.abc import Callable

from isstrack._constants import SECONDS_PER_DAY


def format_uptime(seconds: float) -> str:
    """Format *seconds* as ``HH:MM:SS``, wrapping every 24 hours."""
    total = int(max(seconds, 0.0)) % SECONDS_PER_DAY
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class UptimeClock:
    """Derives elapsed time from a fixed start instant."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, start: float | None = None) -> None:
        self._clock = clock
        self.start = clock() if start is None else start

    def elapsed(self) -> float:
        return self._clock() - self.start

    def formatted(self) -> str:
        return format_uptime(self.elapsed())
