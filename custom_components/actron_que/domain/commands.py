"""Outbound control command types."""

from __future__ import annotations

from dataclasses import dataclass

from .state import FanMode, OperationMode


@dataclass(frozen=True, slots=True)
class BaseCommand:
    """Base type for unit commands."""


@dataclass(frozen=True, slots=True)
class SetPower(BaseCommand):
    """Switch the unit on or off."""

    on: bool


@dataclass(frozen=True, slots=True)
class SetOperationMode(BaseCommand):
    """Change the master operation mode."""

    mode: OperationMode


@dataclass(frozen=True, slots=True)
class SetFanMode(BaseCommand):
    """Change fan speed and the continuous flag together."""

    fan_mode: FanMode


@dataclass(frozen=True, slots=True)
class SetQuietMode(BaseCommand):
    """Toggle quiet mode."""

    on: bool


@dataclass(frozen=True, slots=True)
class SetMasterSetpoint(BaseCommand):
    """Update the master cool or heat setpoint."""

    mode: OperationMode
    value: float


@dataclass(frozen=True, slots=True)
class SetZoneSetpoint(BaseCommand):
    """Update a zone's cool or heat setpoint."""

    zone_index: int
    mode: OperationMode
    value: float


@dataclass(frozen=True, slots=True)
class SetZoneEnabled(BaseCommand):
    """Enable or disable a single zone."""

    zone_index: int
    enabled: bool


@dataclass(frozen=True, slots=True)
class SetZonesEnabled(BaseCommand):
    """Replace the enabled flag of all eight zones."""

    enabled: tuple[bool, ...]
