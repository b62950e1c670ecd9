from __future__ import annotations

from dataclasses import replace

import pytest

from custom_components.actron_que.domain.state import (
    FanMode,
    FanSpeed,
    Limits,
    OperationMode,
    UnitState,
    ZoneTargetMode,
)
from custom_components.actron_que.exceptions import (
    CommandValidationError,
    IncompatibleMode,
    InvalidGranularity,
    InvalidZoneIndex,
    OutOfGlobalRange,
    OutOfZoneRange,
    UnitOffline,
    UnsupportedMode,
    UnsupportedTargetMode,
)
from custom_components.actron_que.validation import (
    ensure_online,
    is_valid_setpoint,
    validate_granularity,
    validate_master_setpoint,
    validate_target_mode,
    validate_zone_index,
    validate_zone_mode,
    validate_zone_setpoint,
    validate_zones_enabled,
)


def make_unit(
    *,
    mode: OperationMode = OperationMode.COOL,
    cool: float = 22.0,
    heat: float = 20.0,
    limits: Limits | None = None,
    is_online: bool | None = True,
) -> UnitState:
    return UnitState(
        serial_number="SER",
        on=True,
        operation_mode=mode,
        fan_mode=FanMode(FanSpeed.AUTO),
        quiet_mode=False,
        cool_setpoint=cool,
        heat_setpoint=heat,
        limits=limits
        or Limits(
            min_cool=16.0,
            max_cool=32.0,
            min_heat=10.0,
            max_heat=30.0,
            zone_above_master_cool=2.0,
            zone_below_master_cool=2.0,
        ),
        is_online=is_online,
    )


@pytest.mark.parametrize("value", [21.0, 21.5, 0.0, -3.5, 30])
def test_half_degree_values_are_valid(value: float) -> None:
    assert is_valid_setpoint(value)
    validate_granularity(value)


@pytest.mark.parametrize("value", [21.3, 21.25, 0.1, 19.99])
def test_other_values_rejected_for_granularity(value: float) -> None:
    assert not is_valid_setpoint(value)
    with pytest.raises(InvalidGranularity) as err:
        validate_granularity(value)
    assert err.value.reason == "invalid_granularity"


def test_validation_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        validate_granularity(21.3)
    assert issubclass(OutOfZoneRange, CommandValidationError)


def test_master_setpoint_bounds() -> None:
    unit = make_unit()

    validate_master_setpoint(unit, OperationMode.COOL, 16.0)
    validate_master_setpoint(unit, OperationMode.COOL, 32.0)
    validate_master_setpoint(unit, OperationMode.HEAT, 10.0)
    with pytest.raises(OutOfGlobalRange):
        validate_master_setpoint(unit, OperationMode.COOL, 15.5)
    with pytest.raises(OutOfGlobalRange):
        validate_master_setpoint(unit, OperationMode.HEAT, 30.5)
    with pytest.raises(InvalidGranularity):
        validate_master_setpoint(unit, OperationMode.COOL, 22.2)


def test_master_setpoint_needs_cool_or_heat() -> None:
    with pytest.raises(UnsupportedMode):
        validate_master_setpoint(make_unit(), OperationMode.FAN, 22.0)


@pytest.mark.parametrize("index", [0, 3, 7])
def test_zone_index_in_range(index: int) -> None:
    validate_zone_index(index)


@pytest.mark.parametrize("index", [-1, 8, 42])
def test_zone_index_out_of_range(index: int) -> None:
    with pytest.raises(InvalidZoneIndex):
        validate_zone_index(index)


def test_zone_setpoint_above_master_offset_rejected() -> None:
    unit = make_unit(cool=22.0)

    with pytest.raises(OutOfZoneRange):
        validate_zone_setpoint(unit, 0, 25.5)


def test_zone_setpoint_within_offset_accepted() -> None:
    unit = make_unit(cool=22.0)

    assert validate_zone_setpoint(unit, 0, 23.0) is OperationMode.COOL
    assert validate_zone_setpoint(unit, 0, 20.0) is OperationMode.COOL
    assert validate_zone_setpoint(unit, 0, 24.0) is OperationMode.COOL


def test_zone_setpoint_below_master_offset_rejected() -> None:
    with pytest.raises(OutOfZoneRange):
        validate_zone_setpoint(make_unit(cool=22.0), 0, 19.5)


def test_zone_setpoint_offsets_default_to_two_degrees() -> None:
    unit = make_unit(
        mode=OperationMode.HEAT,
        heat=20.0,
        limits=Limits(min_cool=16, max_cool=32, min_heat=10, max_heat=30),
    )

    assert validate_zone_setpoint(unit, 1, 22.0) is OperationMode.HEAT
    assert validate_zone_setpoint(unit, 1, 18.0) is OperationMode.HEAT
    with pytest.raises(OutOfZoneRange):
        validate_zone_setpoint(unit, 1, 22.5)


def test_zone_setpoint_checks_global_bounds_first() -> None:
    unit = make_unit(cool=16.0)

    with pytest.raises(OutOfGlobalRange):
        validate_zone_setpoint(unit, 0, 15.0)


def test_zone_setpoint_granularity_and_index() -> None:
    unit = make_unit()

    with pytest.raises(InvalidGranularity):
        validate_zone_setpoint(unit, 0, 22.3)
    with pytest.raises(InvalidZoneIndex):
        validate_zone_setpoint(unit, 8, 22.0)


@pytest.mark.parametrize("mode", [OperationMode.AUTO, OperationMode.FAN])
def test_zone_setpoint_unsupported_master_mode(mode: OperationMode) -> None:
    with pytest.raises(UnsupportedMode):
        validate_zone_setpoint(make_unit(mode=mode), 0, 22.0)


@pytest.mark.parametrize("value", [20.0, 21.5, 23.0, 24.0])
def test_widening_limits_never_rejects_accepted_value(value: float) -> None:
    narrow = make_unit()
    validate_zone_setpoint(narrow, 0, value)

    wide_limits = replace(
        narrow.limits,
        min_cool=10.0,
        max_cool=40.0,
        zone_above_master_cool=5.0,
        zone_below_master_cool=5.0,
    )
    validate_zone_setpoint(replace(narrow, limits=wide_limits), 0, value)


def test_zone_heat_while_master_cools_rejected() -> None:
    with pytest.raises(IncompatibleMode):
        validate_zone_mode(make_unit(mode=OperationMode.COOL), 0, ZoneTargetMode.HEAT)


def test_zone_cool_while_master_heats_rejected() -> None:
    with pytest.raises(IncompatibleMode):
        validate_zone_mode(make_unit(mode=OperationMode.HEAT), 0, ZoneTargetMode.COOL)


@pytest.mark.parametrize(
    ("master", "target"),
    [
        (OperationMode.COOL, ZoneTargetMode.COOL),
        (OperationMode.COOL, ZoneTargetMode.OFF),
        (OperationMode.HEAT, ZoneTargetMode.HEAT),
        (OperationMode.AUTO, ZoneTargetMode.HEAT),
        (OperationMode.FAN, ZoneTargetMode.COOL),
    ],
)
def test_compatible_zone_modes(master: OperationMode, target: ZoneTargetMode) -> None:
    validate_zone_mode(make_unit(mode=master), 5, target)


def test_auto_target_mode_rejected() -> None:
    with pytest.raises(UnsupportedTargetMode):
        validate_zone_mode(make_unit(), 0, ZoneTargetMode.AUTO)
    with pytest.raises(UnsupportedTargetMode):
        validate_target_mode(OperationMode.AUTO)
    validate_target_mode(OperationMode.FAN)


def test_zones_enabled_length() -> None:
    validate_zones_enabled([True] * 8)
    with pytest.raises(InvalidZoneIndex):
        validate_zones_enabled([True] * 7)


def test_ensure_online() -> None:
    ensure_online(make_unit(is_online=True))
    ensure_online(make_unit(is_online=None))
    with pytest.raises(UnitOffline):
        ensure_online(make_unit(is_online=False))
