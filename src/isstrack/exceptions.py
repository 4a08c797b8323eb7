"""Custom exception hierarchy for isstrack."""

from __future__ import annotations


class TrackerError(Exception):
    """Base exception for all isstrack errors."""


class TrackerConfigError(TrackerError):
    """Invalid or missing configuration."""


class NetworkFailureError(TrackerError):
    """Request could not complete (network error, timeout, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class MalformedResponseError(TrackerError):
    """Response decoded but required position fields are missing or not numeric."""

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        self.missing = missing
        super().__init__(message)


class StaleResponseError(TrackerError):
    """Response superseded by a later-issued request that was already accepted.

    Not a real failure: the acquisition loop catches it and drops the
    response without touching any state.
    """

    def __init__(self, sequence: int, latest_sequence: int) -> None:
        self.sequence = sequence
        self.latest_sequence = latest_sequence
        super().__init__(f"Response #{sequence} is stale (latest accepted #{latest_sequence})")
