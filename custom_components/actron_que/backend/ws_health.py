"""Realtime channel health tracking primitives."""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Any


@dataclass
class ChannelHealthTracker:
    """Track channel status, message freshness, and reconnect counters."""

    serial: str
    status: str = "disconnected"
    healthy_since: float | None = None
    last_status_at: float | None = None
    last_message_at: float | None = None
    last_update_at: float | None = None
    restart_count: int = 0
    consecutive_errors: int = 0
    last_error: str | None = None

    def update_status(self, status: str, *, timestamp: float | None = None) -> bool:
        """Update the tracked status and return True if it changed."""

        now = timestamp or time.time()
        if status == self.status:
            return False
        self.status = status
        self.last_status_at = now
        if status == "subscribed":
            self.healthy_since = now
        else:
            self.healthy_since = None
        return True

    def mark_message(self, *, update: bool, timestamp: float | None = None) -> None:
        """Record an inbound frame; ``update`` marks a state-carrying frame."""

        now = timestamp or time.time()
        self.last_message_at = now
        if update:
            self.last_update_at = now

    def record_failure(self, error: BaseException | str | None) -> None:
        """Record a failed connection attempt."""

        self.consecutive_errors += 1
        if isinstance(error, BaseException):
            self.last_error = f"{type(error).__name__}: {error}"
        else:
            self.last_error = error

    def record_connected(self) -> None:
        """Reset the error counter after a successful open."""

        self.consecutive_errors = 0

    def record_restart(self) -> None:
        """Count a reconnect triggered by silence or channel loss."""

        self.restart_count += 1

    def healthy_minutes(self, *, now: float | None = None) -> int:
        """Return the number of minutes spent subscribed."""

        if self.healthy_since is None:
            return 0
        current = now or time.time()
        if current <= self.healthy_since:
            return 0
        return int((current - self.healthy_since) / 60)

    def snapshot(self, *, now: float | None = None) -> dict[str, Any]:
        """Return a serializable snapshot of the tracker state."""

        current = now or time.time()
        return {
            "status": self.status,
            "healthy_since": self.healthy_since,
            "healthy_minutes": self.healthy_minutes(now=current),
            "last_status_at": self.last_status_at,
            "last_message_at": self.last_message_at,
            "last_update_at": self.last_update_at,
            "restart_count": self.restart_count,
            "consecutive_errors": self.consecutive_errors,
            "last_error": self.last_error,
        }


__all__ = ["ChannelHealthTracker"]
