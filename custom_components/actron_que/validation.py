"""Pre-flight checks for outbound control commands.

Every function here is pure: it looks at the proposed value and the current
:class:`UnitState` and raises a :class:`CommandValidationError` subclass when
the cloud would reject the command or the unit could not honour it.
"""

from __future__ import annotations

from collections.abc import Sequence

from .const import MAX_ZONES
from .domain.state import OperationMode, UnitState, ZoneTargetMode
from .exceptions import (
    IncompatibleMode,
    InvalidGranularity,
    InvalidZoneIndex,
    OutOfGlobalRange,
    OutOfZoneRange,
    UnitOffline,
    UnsupportedMode,
    UnsupportedTargetMode,
)

ZONE_SETPOINT_MODES = (OperationMode.COOL, OperationMode.HEAT)


def is_valid_setpoint(value: float) -> bool:
    """Return True when ``value`` is a whole or half degree."""

    return float(value * 2).is_integer()


def validate_granularity(value: float) -> None:
    """Reject setpoints that are not multiples of 0.5."""

    if not is_valid_setpoint(value):
        raise InvalidGranularity(
            f"Setpoint {value} must be a whole or half degree"
        )


def _validate_global_bounds(unit: UnitState, mode: OperationMode, value: float) -> None:
    low, high = unit.limits.bounds(mode)
    if not low <= value <= high:
        raise OutOfGlobalRange(
            f"{mode.value.lower()} setpoint {value} is outside {low}-{high}"
        )


def validate_master_setpoint(
    unit: UnitState, mode: OperationMode, value: float
) -> None:
    """Check a master cool or heat setpoint."""

    if mode not in ZONE_SETPOINT_MODES:
        raise UnsupportedMode(f"Master setpoints exist only for COOL and HEAT, not {mode.value}")
    validate_granularity(value)
    _validate_global_bounds(unit, mode, value)


def validate_zone_index(zone_index: int) -> None:
    """Reject zone indexes outside 0-7."""

    if not 0 <= zone_index < MAX_ZONES:
        raise InvalidZoneIndex(f"Zone index {zone_index} must be between 0 and 7")


def validate_zone_setpoint(unit: UnitState, zone_index: int, value: float) -> OperationMode:
    """Check a zone setpoint against global and master-relative bounds.

    Returns the master mode the setpoint applies to.
    """

    validate_zone_index(zone_index)
    validate_granularity(value)
    mode = unit.operation_mode
    if mode not in ZONE_SETPOINT_MODES:
        raise UnsupportedMode(
            f"Zone setpoints need the master in COOL or HEAT, not {mode.value}"
        )
    _validate_global_bounds(unit, mode, value)
    master = unit.master_setpoint(mode)
    below, above = unit.limits.zone_offsets(mode)
    if not master - below <= value <= master + above:
        raise OutOfZoneRange(
            f"Zone setpoint {value} must stay within {below} below and "
            f"{above} above master setpoint {master}"
        )
    return mode


def validate_target_mode(mode: OperationMode | ZoneTargetMode) -> None:
    """Reject direct assignment of the combined automatic mode."""

    if mode in (OperationMode.AUTO, ZoneTargetMode.AUTO):
        raise UnsupportedTargetMode("Automatic mode cannot be set directly")


def validate_zone_mode(
    unit: UnitState, zone_index: int, target: ZoneTargetMode
) -> None:
    """Check that ``target`` is compatible with the master mode."""

    validate_zone_index(zone_index)
    validate_target_mode(target)
    master = unit.operation_mode
    if target is ZoneTargetMode.HEAT and master is OperationMode.COOL:
        raise IncompatibleMode("Zone cannot heat while the master is cooling")
    if target is ZoneTargetMode.COOL and master is OperationMode.HEAT:
        raise IncompatibleMode("Zone cannot cool while the master is heating")


def validate_zones_enabled(enabled: Sequence[bool]) -> None:
    """Require one flag per zone slot."""

    if len(enabled) != MAX_ZONES:
        raise InvalidZoneIndex(
            f"Expected {MAX_ZONES} zone flags, got {len(enabled)}"
        )


def ensure_online(unit: UnitState) -> None:
    """Reject commands while the unit reports itself offline."""

    if unit.is_online is False:
        raise UnitOffline(f"Unit {unit.name or 'aircon'} is offline")


__all__ = [
    "ensure_online",
    "is_valid_setpoint",
    "validate_granularity",
    "validate_master_setpoint",
    "validate_target_mode",
    "validate_zone_index",
    "validate_zone_mode",
    "validate_zone_setpoint",
    "validate_zones_enabled",
]
