"""Codec helpers for Actron Que snapshots, push frames and commands."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from typing import Any

from pydantic import ValidationError

from ..const import MAX_ZONES
from ..domain.commands import (
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
from ..domain.state import (
    FanMode,
    FanSpeed,
    Limits,
    OperationMode,
    UnitState,
    ZoneState,
)
from ..exceptions import MalformedSnapshot
from .que_models import QueSnapshot, SetpointLimits, StatusResponse

_LOGGER = logging.getLogger(__name__)

CONTINUOUS_SUFFIX = "+CONT"
SENSOR_ID_SEPARATOR = "-"
COMMAND_TYPE = "set-settings"

_FAN_SPEED_ALIASES = {"MEDIUM": FanSpeed.MED}


def decode_fan_mode(value: str) -> FanMode:
    """Decode a wire fan mode such as ``"HIGH+CONT"``."""

    text = str(value).strip().upper()
    continuous = text.endswith(CONTINUOUS_SUFFIX)
    if continuous:
        text = text[: -len(CONTINUOUS_SUFFIX)]
    speed = _FAN_SPEED_ALIASES.get(text)
    if speed is None:
        try:
            speed = FanSpeed(text)
        except ValueError as err:
            raise ValueError(f"Unknown fan mode: {value!r}") from err
    return FanMode(speed=speed, continuous=continuous)


def encode_fan_mode(fan_mode: FanMode) -> str:
    """Encode ``fan_mode`` for the wire."""

    suffix = CONTINUOUS_SUFFIX if fan_mode.continuous else ""
    return f"{fan_mode.speed.value}{suffix}"


def _decode_operation_mode(value: str) -> OperationMode:
    try:
        return OperationMode(str(value).strip().upper())
    except ValueError as err:
        raise MalformedSnapshot(f"Unknown operation mode: {value!r}") from err


def _optional_abs(value: float | None) -> float | None:
    return None if value is None else abs(value)


def _decode_limits(raw: SetpointLimits) -> Limits:
    """Build ``Limits`` and enforce min <= max for both modes."""

    if raw.min_cool > raw.max_cool:
        raise MalformedSnapshot(
            f"Cool limits inverted: {raw.min_cool} > {raw.max_cool}"
        )
    if raw.min_heat > raw.max_heat:
        raise MalformedSnapshot(
            f"Heat limits inverted: {raw.min_heat} > {raw.max_heat}"
        )
    return Limits(
        min_cool=raw.min_cool,
        max_cool=raw.max_cool,
        min_heat=raw.min_heat,
        max_heat=raw.max_heat,
        zone_above_master_cool=_optional_abs(raw.above_master_cool),
        zone_above_master_heat=_optional_abs(raw.above_master_heat),
        zone_below_master_cool=_optional_abs(raw.below_master_cool),
        zone_below_master_heat=_optional_abs(raw.below_master_heat),
        min_gap=raw.min_gap,
    )


def decode_snapshot(
    raw: Any, *, serial: str
) -> tuple[UnitState, tuple[ZoneState, ...]]:
    """Convert a raw ``lastKnownState`` into unit and zone state.

    Only zones flagged ``CanOperate`` within the first ``MAX_ZONES`` slots are
    returned. Each keeps its raw position as ``zone_index`` so the enabled flag
    is read from the unfiltered ``EnabledZones`` list.
    """

    if not isinstance(raw, Mapping):
        raise MalformedSnapshot(f"Snapshot must be an object, got {type(raw).__name__}")
    try:
        snapshot = QueSnapshot.model_validate(raw)
    except ValidationError as err:
        raise MalformedSnapshot(f"Invalid snapshot: {err.error_count()} errors") from err

    settings = snapshot.user_settings
    mode = _decode_operation_mode(settings.mode)
    try:
        fan_mode = decode_fan_mode(settings.fan_mode)
    except ValueError as err:
        raise MalformedSnapshot(str(err)) from err
    limits = _decode_limits(snapshot.limits.user_setpoint)

    live = snapshot.live_aircon
    system = snapshot.aircon_system
    indoor = system.indoor_unit if system is not None else None
    unit = UnitState(
        serial_number=serial,
        on=settings.is_on,
        operation_mode=mode,
        fan_mode=fan_mode,
        quiet_mode=settings.quiet_mode,
        cool_setpoint=settings.cool_setpoint,
        heat_setpoint=settings.heat_setpoint,
        limits=limits,
        temperature=snapshot.master_info.temperature,
        humidity=snapshot.master_info.humidity,
        compressor_mode=live.compressor_mode if live is not None else None,
        compressor_speed=live.compressor_capacity if live is not None else None,
        master_sensor_id=system.master_serial if system is not None else None,
        model=indoor.device_id if indoor is not None else None,
        name=(
            snapshot.system_settings.system_name
            if snapshot.system_settings is not None
            else None
        ),
        is_online=snapshot.is_online,
    )

    enabled = settings.enabled_zones
    zones: list[ZoneState] = []
    if len(snapshot.zones) > MAX_ZONES:
        _LOGGER.debug(
            "Ignoring %d zones beyond the first %d",
            len(snapshot.zones) - MAX_ZONES,
            MAX_ZONES,
        )
    for index, zone in enumerate(snapshot.zones[:MAX_ZONES]):
        if not zone.can_operate:
            continue
        target = zone.heat_setpoint if mode is OperationMode.HEAT else zone.cool_setpoint
        zones.append(
            ZoneState(
                zone_index=index,
                name=zone.title or f"Zone {index + 1}",
                sensor_id=SENSOR_ID_SEPARATOR.join(zone.sensors),
                on=bool(enabled[index]) if index < len(enabled) else False,
                current_temperature=zone.temperature,
                target_temperature=target,
                humidity=zone.humidity,
                cool_setpoint=zone.cool_setpoint,
                heat_setpoint=zone.heat_setpoint,
            )
        )
    return unit, tuple(zones)


def decode_status_response(payload: Any) -> dict[str, Any]:
    """Unwrap ``lastKnownState`` from the latest-status response."""

    if not isinstance(payload, Mapping):
        raise MalformedSnapshot("Status response must be an object")
    try:
        return StatusResponse.model_validate(payload).last_known_state
    except ValidationError as err:
        raise MalformedSnapshot("Status response lacks lastKnownState") from err


def is_heartbeat_frame(text: str) -> bool:
    """Return True for empty keep-alive frames."""

    stripped = text.strip()
    return stripped in ("", "{}")


def decode_channel_frame(text: str) -> Mapping[str, Any] | None:
    """Return the status update carried by a push frame, if any.

    When several messages carry a status the last one wins.
    """

    if is_heartbeat_frame(text):
        return None
    try:
        payload = json.loads(text)
    except ValueError as err:
        raise MalformedSnapshot("Push frame is not valid JSON") from err
    if not isinstance(payload, Mapping):
        return None
    messages = payload.get("M")
    if not isinstance(messages, list):
        return None
    status: Mapping[str, Any] | None = None
    for message in messages:
        if not isinstance(message, Mapping):
            continue
        update = message.get("update")
        if isinstance(update, Mapping) and isinstance(update.get("status"), Mapping):
            status = update["status"]
    if status is None:
        _LOGGER.debug("Push frame carried %d messages without status", len(messages))
    return status


def encode_subscribe(serial: str) -> str:
    """Return the subscribe frame for ``serial``."""

    return json.dumps(
        {"command": {"mwcSerial": serial, "type": "subscribe"}},
        separators=(",", ":"),
    )


def _setpoint_suffix(mode: OperationMode) -> str:
    return "Heat" if mode is OperationMode.HEAT else "Cool"


def encode_command(command: BaseCommand) -> dict[str, Any]:
    """Encode ``command`` into a ``set-settings`` body."""

    settings: dict[str, Any]
    if isinstance(command, SetPower):
        settings = {"UserAirconSettings.isOn": command.on}
    elif isinstance(command, SetOperationMode):
        settings = {"UserAirconSettings.Mode": command.mode.value}
    elif isinstance(command, SetFanMode):
        settings = {"UserAirconSettings.FanMode": encode_fan_mode(command.fan_mode)}
    elif isinstance(command, SetQuietMode):
        settings = {"UserAirconSettings.QuietMode": command.on}
    elif isinstance(command, SetMasterSetpoint):
        key = f"UserAirconSettings.TemperatureSetpoint_{_setpoint_suffix(command.mode)}_oC"
        settings = {key: command.value}
    elif isinstance(command, SetZoneSetpoint):
        key = (
            f"RemoteZoneInfo[{command.zone_index}]"
            f".TemperatureSetpoint_{_setpoint_suffix(command.mode)}_oC"
        )
        settings = {key: command.value}
    elif isinstance(command, SetZoneEnabled):
        settings = {
            f"UserAirconSettings.EnabledZones[{command.zone_index}]": command.enabled
        }
    elif isinstance(command, SetZonesEnabled):
        settings = {"UserAirconSettings.EnabledZones": list(command.enabled)}
    else:
        raise TypeError(f"Unsupported command: {type(command).__name__}")
    settings["type"] = COMMAND_TYPE
    return settings


__all__ = [
    "decode_channel_frame",
    "decode_fan_mode",
    "decode_snapshot",
    "decode_status_response",
    "encode_command",
    "encode_fan_mode",
    "encode_subscribe",
    "is_heartbeat_frame",
]
