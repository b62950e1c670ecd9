"""Pydantic models for Actron Que cloud payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenResponse(BaseModel):
    """Bearer token payload returned by the refresh-token grant."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str | None = None
    expires_in: int | float | None = None


class NegotiateResponse(BaseModel):
    """SignalR negotiate payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    connection_token: str = Field(alias="ConnectionToken")
    protocol_version: str = Field(alias="ProtocolVersion")

    @field_validator("protocol_version", mode="before")
    @classmethod
    def _stringify_version(cls, value: Any) -> Any:
        """Accept numeric protocol versions."""

        if isinstance(value, (int, float)):
            return str(value)
        return value


class UserAirconSettings(BaseModel):
    """User-controlled settings of the master unit."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    is_on: bool = Field(alias="isOn")
    mode: str = Field(alias="Mode")
    fan_mode: str = Field(alias="FanMode")
    quiet_mode: bool = Field(default=False, alias="QuietMode")
    cool_setpoint: float = Field(alias="TemperatureSetpoint_Cool_oC")
    heat_setpoint: float = Field(alias="TemperatureSetpoint_Heat_oC")
    enabled_zones: list[bool] = Field(default_factory=list, alias="EnabledZones")

    @field_validator("enabled_zones", mode="before")
    @classmethod
    def _null_zones(cls, value: Any) -> Any:
        """Treat a null zone list as empty."""

        return [] if value is None else value


class MasterInfo(BaseModel):
    """Live readings from the master controller."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    temperature: float | None = Field(default=None, alias="LiveTemp_oC")
    humidity: float | None = Field(default=None, alias="LiveHumidity_pc")


class SetpointLimits(BaseModel):
    """Setpoint limits from ``NV_Limits.UserSetpoint_oC``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    min_cool: float = Field(alias="setCool_Min")
    max_cool: float = Field(alias="setCool_Max")
    min_heat: float = Field(alias="setHeat_Min")
    max_heat: float = Field(alias="setHeat_Max")
    above_master_cool: float | None = Field(
        default=None, alias="VarianceAboveMasterCool"
    )
    above_master_heat: float | None = Field(
        default=None, alias="VarianceAboveMasterHeat"
    )
    below_master_cool: float | None = Field(
        default=None, alias="VarianceBelowMasterCool"
    )
    below_master_heat: float | None = Field(
        default=None, alias="VarianceBelowMasterHeat"
    )
    min_gap: float | None = Field(default=None, alias="MinGap")


class NvLimits(BaseModel):
    """Wrapper for the limits section."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_setpoint: SetpointLimits = Field(alias="UserSetpoint_oC")


class RemoteZone(BaseModel):
    """One entry of ``RemoteZoneInfo``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    can_operate: bool = Field(default=False, alias="CanOperate")
    title: str | None = Field(default=None, alias="NV_Title")
    temperature: float | None = Field(default=None, alias="LiveTemp_oC")
    humidity: float | None = Field(default=None, alias="LiveHumidity_pc")
    cool_setpoint: float | None = Field(
        default=None, alias="TemperatureSetpoint_Cool_oC"
    )
    heat_setpoint: float | None = Field(
        default=None, alias="TemperatureSetpoint_Heat_oC"
    )
    sensors: dict[str, Any] = Field(default_factory=dict, alias="Sensors")

    @field_validator("sensors", mode="before")
    @classmethod
    def _null_sensors(cls, value: Any) -> Any:
        """Treat a null sensor mapping as empty."""

        return {} if value is None else value


class LiveAircon(BaseModel):
    """Live compressor data."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    compressor_mode: str | None = Field(default=None, alias="CompressorMode")
    compressor_capacity: float | None = Field(
        default=None, alias="CompressorCapacity"
    )


class IndoorUnit(BaseModel):
    """Indoor unit descriptor."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    device_id: str | None = Field(default=None, alias="NV_DeviceID")

    @field_validator("device_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        """Convert numeric device ids to strings."""

        if isinstance(value, (int, float)):
            return str(value)
        return value


class AirconSystem(BaseModel):
    """System descriptor."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    master_serial: str | None = Field(default=None, alias="MasterSerial")
    indoor_unit: IndoorUnit | None = Field(default=None, alias="IndoorUnit")


class SystemSettings(BaseModel):
    """Persisted system settings."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    system_name: str | None = Field(default=None, alias="SystemName")


class QueSnapshot(BaseModel):
    """Full ``lastKnownState`` snapshot of a unit."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_settings: UserAirconSettings = Field(alias="UserAirconSettings")
    master_info: MasterInfo = Field(alias="MasterInfo")
    limits: NvLimits = Field(alias="NV_Limits")
    zones: list[RemoteZone] = Field(alias="RemoteZoneInfo")
    live_aircon: LiveAircon | None = Field(default=None, alias="LiveAircon")
    aircon_system: AirconSystem | None = Field(default=None, alias="AirconSystem")
    system_settings: SystemSettings | None = Field(
        default=None, alias="NV_SystemSettings"
    )
    is_online: bool | None = Field(default=None, alias="isOnline")


class StatusResponse(BaseModel):
    """Envelope returned by the latest-status endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    last_known_state: dict[str, Any] = Field(alias="lastKnownState")


__all__ = [
    "AirconSystem",
    "IndoorUnit",
    "LiveAircon",
    "MasterInfo",
    "NegotiateResponse",
    "NvLimits",
    "QueSnapshot",
    "RemoteZone",
    "SetpointLimits",
    "StatusResponse",
    "SystemSettings",
    "TokenResponse",
    "UserAirconSettings",
]
