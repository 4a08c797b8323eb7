"""Online/offline tracking from acquisition outcomes."""

from __future__ import annotations

from enum import StrEnum


class ConnectionStatus(StrEnum):
    ONLINE = "online"
    OFFLINE = "offline"


class ConnectionMonitor:
    """Tracks whether the most recent acquisition outcome succeeded.

    Starts ``OFFLINE`` because no data has been received yet.
    """

    def __init__(self) -> None:
        self._status = ConnectionStatus.OFFLINE

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_online(self) -> bool:
        return self._status is ConnectionStatus.ONLINE

    def record_success(self) -> bool:
        """Mark online.  Returns ``True`` when the status changed."""
        return self._set(ConnectionStatus.ONLINE)

    def record_failure(self) -> bool:
        """Mark offline.  Returns ``True`` when the status changed."""
        return self._set(ConnectionStatus.OFFLINE)

    def _set(self, status: ConnectionStatus) -> bool:
        changed = status is not self._status
        self._status = status
        return changed
