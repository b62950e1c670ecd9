"""Validated control commands for the Actron Que unit."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
import logging
from typing import TYPE_CHECKING

from .backend.sanitize import mask_identifier
from .codecs.que_codec import encode_command
from .domain.commands import (
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
from .domain.state import (
    FanMode,
    FanSpeed,
    OperationMode,
    ZoneState,
    ZoneTargetMode,
)
from .validation import (
    ensure_online,
    validate_master_setpoint,
    validate_target_mode,
    validate_zone_index,
    validate_zone_mode,
    validate_zone_setpoint,
    validate_zones_enabled,
)

if TYPE_CHECKING:
    from .api import RESTClient
    from .domain.mirror import StateMirror

_LOGGER = logging.getLogger(__name__)


class QueController:
    """Validate, send and optimistically record control commands.

    Validation runs against the mirror's current unit state before anything
    is sent. After a successful send the affected field is written to the
    mirror; the next real snapshot overwrites it.
    """

    def __init__(self, client: RESTClient, mirror: StateMirror) -> None:
        """Bind the controller to a REST client and mirror."""

        self._client = client
        self._mirror = mirror

    async def _send(self, command: BaseCommand) -> None:
        _LOGGER.debug(
            "Sending %s to %s", type(command).__name__, mask_identifier(self._client.serial)
        )
        await self._client.send_command(encode_command(command))

    def _replace_zone(self, zone_index: int, **changes: object) -> ZoneState | None:
        try:
            zone = self._mirror.zone(zone_index)
        except KeyError:
            return None
        return replace(zone, **changes)

    async def async_set_power(self, on: bool) -> None:
        """Switch the unit on or off."""

        unit = self._mirror.unit
        ensure_online(unit)
        await self._send(SetPower(on=on))
        self._mirror.apply_optimistic(unit=replace(unit, on=on))

    async def async_set_operation_mode(self, mode: OperationMode) -> None:
        """Change the master mode; AUTO cannot be assigned."""

        unit = self._mirror.unit
        validate_target_mode(mode)
        ensure_online(unit)
        await self._send(SetOperationMode(mode=mode))
        self._mirror.apply_optimistic(
            unit=replace(unit, operation_mode=mode),
            zones=self._retarget_zones(mode),
        )

    def _retarget_zones(self, mode: OperationMode) -> list[ZoneState]:
        """Return zones whose active target temperature follows ``mode``."""

        changed: list[ZoneState] = []
        for zone in self._mirror.zones:
            target = zone.heat_setpoint if mode is OperationMode.HEAT else zone.cool_setpoint
            if target != zone.target_temperature:
                changed.append(replace(zone, target_temperature=target))
        return changed

    async def async_set_fan_mode(self, fan_mode: FanMode) -> None:
        """Set fan speed and continuous flag together."""

        unit = self._mirror.unit
        ensure_online(unit)
        await self._send(SetFanMode(fan_mode=fan_mode))
        self._mirror.apply_optimistic(unit=replace(unit, fan_mode=fan_mode))

    async def async_set_fan_speed(self, speed: FanSpeed) -> None:
        """Change the fan speed while keeping the continuous flag."""

        current = self._mirror.unit.fan_mode
        await self.async_set_fan_mode(FanMode(speed=speed, continuous=current.continuous))

    async def async_set_continuous_fan(self, continuous: bool) -> None:
        """Toggle continuous fan while keeping the speed."""

        current = self._mirror.unit.fan_mode
        await self.async_set_fan_mode(FanMode(speed=current.speed, continuous=continuous))

    async def async_set_quiet_mode(self, on: bool) -> None:
        """Toggle quiet mode."""

        unit = self._mirror.unit
        ensure_online(unit)
        await self._send(SetQuietMode(on=on))
        self._mirror.apply_optimistic(unit=replace(unit, quiet_mode=on))

    async def async_set_master_setpoint(self, mode: OperationMode, value: float) -> None:
        """Set the master cool or heat setpoint."""

        unit = self._mirror.unit
        validate_master_setpoint(unit, mode, value)
        ensure_online(unit)
        await self._send(SetMasterSetpoint(mode=mode, value=value))
        if mode is OperationMode.HEAT:
            updated = replace(unit, heat_setpoint=value)
        else:
            updated = replace(unit, cool_setpoint=value)
        self._mirror.apply_optimistic(unit=updated)

    async def async_set_zone_setpoint(self, zone_index: int, value: float) -> None:
        """Set a zone setpoint for the master's active mode."""

        unit = self._mirror.unit
        mode = validate_zone_setpoint(unit, zone_index, value)
        ensure_online(unit)
        await self._send(SetZoneSetpoint(zone_index=zone_index, mode=mode, value=value))
        key = "heat_setpoint" if mode is OperationMode.HEAT else "cool_setpoint"
        zone = self._replace_zone(zone_index, target_temperature=value, **{key: value})
        if zone is not None:
            self._mirror.apply_optimistic(zones=(zone,))

    async def async_set_zone_enabled(self, zone_index: int, enabled: bool) -> None:
        """Enable or disable one zone."""

        unit = self._mirror.unit
        validate_zone_index(zone_index)
        ensure_online(unit)
        await self._send(SetZoneEnabled(zone_index=zone_index, enabled=enabled))
        zone = self._replace_zone(zone_index, on=enabled)
        if zone is not None:
            self._mirror.apply_optimistic(zones=(zone,))

    async def async_set_zone_mode(self, zone_index: int, target: ZoneTargetMode) -> None:
        """Turn a zone off, or on for heating or cooling."""

        unit = self._mirror.unit
        validate_zone_mode(unit, zone_index, target)
        await self.async_set_zone_enabled(zone_index, target is not ZoneTargetMode.OFF)

    async def async_set_zones_enabled(self, enabled: Sequence[bool]) -> None:
        """Replace the enabled flag for all eight zones."""

        unit = self._mirror.unit
        validate_zones_enabled(enabled)
        ensure_online(unit)
        flags = tuple(bool(flag) for flag in enabled)
        await self._send(SetZonesEnabled(enabled=flags))
        self._mirror.apply_optimistic(
            zones=[
                replace(zone, on=flags[zone.zone_index])
                for zone in self._mirror.zones
                if zone.on != flags[zone.zone_index]
            ]
        )


__all__ = ["QueController"]
