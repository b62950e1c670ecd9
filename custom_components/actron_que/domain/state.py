"""Canonical unit and zone state objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..const import DEFAULT_ZONE_OFFSET


class OperationMode(str, Enum):
    """Master operation modes reported by the unit."""

    COOL = "COOL"
    HEAT = "HEAT"
    AUTO = "AUTO"
    FAN = "FAN"


class FanSpeed(str, Enum):
    """Base fan speeds."""

    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"
    AUTO = "AUTO"


class ZoneTargetMode(str, Enum):
    """Per-zone heating/cooling target requested by a caller."""

    OFF = "off"
    HEAT = "heat"
    COOL = "cool"
    AUTO = "auto"


@dataclass(frozen=True, slots=True)
class FanMode:
    """Fan speed plus the continuous-fan flag."""

    speed: FanSpeed
    continuous: bool = False


@dataclass(frozen=True, slots=True)
class Limits:
    """Device-reported setpoint limits in degrees Celsius."""

    min_cool: float
    max_cool: float
    min_heat: float
    max_heat: float
    zone_above_master_cool: float | None = None
    zone_above_master_heat: float | None = None
    zone_below_master_cool: float | None = None
    zone_below_master_heat: float | None = None
    min_gap: float | None = None

    def bounds(self, mode: OperationMode) -> tuple[float, float]:
        """Return the global ``(min, max)`` bounds for ``mode``."""

        if mode is OperationMode.HEAT:
            return self.min_heat, self.max_heat
        return self.min_cool, self.max_cool

    def zone_offsets(self, mode: OperationMode) -> tuple[float, float]:
        """Return ``(below, above)`` zone offsets for ``mode``.

        Missing offsets fall back to two degrees.
        """

        if mode is OperationMode.HEAT:
            below, above = self.zone_below_master_heat, self.zone_above_master_heat
        else:
            below, above = self.zone_below_master_cool, self.zone_above_master_cool
        return (
            DEFAULT_ZONE_OFFSET if below is None else below,
            DEFAULT_ZONE_OFFSET if above is None else above,
        )


@dataclass(frozen=True, slots=True)
class UnitState:
    """Snapshot of the master unit."""

    serial_number: str
    on: bool
    operation_mode: OperationMode
    fan_mode: FanMode
    quiet_mode: bool
    cool_setpoint: float
    heat_setpoint: float
    limits: Limits
    temperature: float | None = None
    humidity: float | None = None
    compressor_mode: str | None = None
    compressor_speed: float | None = None
    master_sensor_id: str | None = None
    model: str | None = None
    name: str | None = None
    is_online: bool | None = None

    def master_setpoint(self, mode: OperationMode | None = None) -> float:
        """Return the master setpoint for ``mode`` (defaults to the active mode)."""

        mode = mode or self.operation_mode
        if mode is OperationMode.HEAT:
            return self.heat_setpoint
        return self.cool_setpoint


@dataclass(frozen=True, slots=True)
class ZoneState:
    """Snapshot of one operable zone, keyed by its raw position."""

    zone_index: int
    name: str
    sensor_id: str
    on: bool
    current_temperature: float | None = None
    target_temperature: float | None = None
    humidity: float | None = None
    cool_setpoint: float | None = None
    heat_setpoint: float | None = None


@dataclass(frozen=True, slots=True, eq=False)
class MirrorSnapshot:
    """Unit state and zones replaced together.

    Snapshots compare by identity: every accepted update is a new snapshot,
    even when its contents match the previous one.
    """

    unit: UnitState
    zones: tuple[ZoneState, ...]

    def zone(self, zone_index: int) -> ZoneState:
        """Return the zone with ``zone_index`` or raise ``KeyError``."""

        for zone in self.zones:
            if zone.zone_index == zone_index:
                return zone
        raise KeyError(zone_index)


__all__ = [
    "FanMode",
    "FanSpeed",
    "Limits",
    "MirrorSnapshot",
    "OperationMode",
    "UnitState",
    "ZoneState",
    "ZoneTargetMode",
]
