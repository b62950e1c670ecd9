"""Exception hierarchy for the Actron Que integration."""

from __future__ import annotations


class ActronQueError(Exception):
    """Base exception for Actron Que."""


class MalformedSnapshot(ActronQueError):
    """A raw snapshot or push frame could not be decoded."""


class NotReady(ActronQueError):
    """The state mirror has not received its first snapshot yet."""


class ChannelFault(ActronQueError):
    """The realtime channel failed to open or broke while running."""


class TransportError(ActronQueError):
    """A REST call to the Actron Que cloud failed."""


class BackendAuthError(TransportError):
    """Authentication with the Actron Que cloud failed."""


class BackendRateLimitError(TransportError):
    """Server rate-limited the client (HTTP 429)."""


class CommandValidationError(ActronQueError, ValueError):
    """A control command was rejected before being sent."""

    reason = "invalid"

    def __init__(self, message: str) -> None:
        """Store the human readable rejection message."""
        super().__init__(message)
        self.message = message


class InvalidGranularity(CommandValidationError):
    """Setpoint is not a multiple of half a degree."""

    reason = "invalid_granularity"


class OutOfGlobalRange(CommandValidationError):
    """Setpoint is outside the unit's limits for the mode."""

    reason = "out_of_global_range"


class OutOfZoneRange(CommandValidationError):
    """Zone setpoint strays too far from the master setpoint."""

    reason = "out_of_zone_range"


class InvalidZoneIndex(CommandValidationError):
    """Zone index is outside 0-7."""

    reason = "invalid_zone_index"


class IncompatibleMode(CommandValidationError):
    """Zone mode conflicts with the master operation mode."""

    reason = "incompatible_mode"


class UnsupportedMode(CommandValidationError):
    """Master mode does not allow per-zone temperature control."""

    reason = "unsupported_mode"


class UnsupportedTargetMode(CommandValidationError):
    """The combined automatic mode cannot be assigned directly."""

    reason = "unsupported_target_mode"


class UnitOffline(CommandValidationError):
    """The unit reports itself as offline."""

    reason = "unit_offline"


__all__ = [
    "ActronQueError",
    "BackendAuthError",
    "BackendRateLimitError",
    "ChannelFault",
    "CommandValidationError",
    "IncompatibleMode",
    "InvalidGranularity",
    "InvalidZoneIndex",
    "MalformedSnapshot",
    "NotReady",
    "OutOfGlobalRange",
    "OutOfZoneRange",
    "TransportError",
    "UnitOffline",
    "UnsupportedMode",
    "UnsupportedTargetMode",
]
