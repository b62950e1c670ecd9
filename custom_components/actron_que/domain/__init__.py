"""Domain-layer primitives for the Actron Que integration."""

from .commands import (
    BaseCommand,
    SetFanMode,
    SetMasterSetpoint,
    SetOperationMode,
    SetPower,
    SetQuietMode,
    SetZoneEnabled,
    SetZoneSetpoint,
    SetZonesEnabled,
)
from .mirror import StateMirror
from .state import (
    FanMode,
    FanSpeed,
    Limits,
    MirrorSnapshot,
    OperationMode,
    UnitState,
    ZoneState,
    ZoneTargetMode,
)

__all__ = [
    "BaseCommand",
    "FanMode",
    "FanSpeed",
    "Limits",
    "MirrorSnapshot",
    "OperationMode",
    "SetFanMode",
    "SetMasterSetpoint",
    "SetOperationMode",
    "SetPower",
    "SetQuietMode",
    "SetZoneEnabled",
    "SetZoneSetpoint",
    "SetZonesEnabled",
    "StateMirror",
    "UnitState",
    "ZoneState",
    "ZoneTargetMode",
]
