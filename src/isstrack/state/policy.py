"""Deterministic acceptance and expiry rules.

Kept free of any state so the rules can be tested on their own.
"""

from __future__ import annotations


def is_stale(sequence: int, latest_sequence: int) -> bool:
    """A response is stale once a later-issued request has been accepted."""
    return sequence <= latest_sequence


def is_expired(now: float, expires_at: float | None) -> bool:
    if expires_at is None:
        return True
    return now >= expires_at
