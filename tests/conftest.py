# ruff: noqa: D100,D101,D102,D103,D104,D105,D106,D107,INP001,E402
from __future__ import annotations

import copy
from typing import Any

import pytest

SERIAL = "MWC1234567"


def _zone(
    title: str,
    *,
    can_operate: bool = True,
    temp: float = 23.5,
    cool: float = 22.0,
    heat: float = 20.0,
    sensors: tuple[str, ...] = ("A1B2",),
) -> dict[str, Any]:
    return {
        "CanOperate": can_operate,
        "NV_Title": title,
        "LiveTemp_oC": temp,
        "LiveHumidity_pc": 48.0,
        "TemperatureSetpoint_Cool_oC": cool,
        "TemperatureSetpoint_Heat_oC": heat,
        "Sensors": {key: {"NV_Kind": "MWS"} for key in sensors},
    }


_RAW_SNAPSHOT: dict[str, Any] = {
    "isOnline": True,
    "UserAirconSettings": {
        "isOn": True,
        "Mode": "COOL",
        "FanMode": "AUTO+CONT",
        "QuietMode": False,
        "TemperatureSetpoint_Cool_oC": 22.0,
        "TemperatureSetpoint_Heat_oC": 20.0,
        "EnabledZones": [True, False, True, False, False, False, False, False],
    },
    "LiveAircon": {"CompressorMode": "COOL", "CompressorCapacity": 42.5},
    "AirconSystem": {
        "MasterSerial": "MS998877",
        "IndoorUnit": {"NV_DeviceID": "ACM-18"},
    },
    "MasterInfo": {"LiveTemp_oC": 24.3, "LiveHumidity_pc": 51.2},
    "NV_SystemSettings": {"SystemName": "Home"},
    "NV_Limits": {
        "UserSetpoint_oC": {
            "setCool_Min": 16.0,
            "setCool_Max": 32.0,
            "setHeat_Min": 10.0,
            "setHeat_Max": 30.0,
            "VarianceAboveMasterCool": 2.0,
            "VarianceBelowMasterCool": -2.0,
            "VarianceAboveMasterHeat": 3.0,
            "VarianceBelowMasterHeat": -3.0,
            "MinGap": 2.0,
        }
    },
    "RemoteZoneInfo": [
        _zone("Living", sensors=("AB12", "CD34")),
        _zone("Spare", can_operate=False),
        _zone("Bedroom", temp=21.0, cool=23.0, heat=19.0, sensors=("EF56",)),
        _zone("Zone 4", can_operate=False),
        _zone("Zone 5", can_operate=False),
        _zone("Zone 6", can_operate=False),
        _zone("Zone 7", can_operate=False),
        _zone("Zone 8", can_operate=False),
    ],
}


def build_raw_snapshot() -> dict[str, Any]:
    """Return a fresh copy of the raw snapshot fixture."""

    return copy.deepcopy(_RAW_SNAPSHOT)


@pytest.fixture
def raw_snapshot() -> dict[str, Any]:
    return build_raw_snapshot()


@pytest.fixture
def serial() -> str:
    return SERIAL
