"""Static capability catalog for Melview units.

The catalog lists every command value known across all hardware variants.
The filter table states which capability flag a catalog entry depends on;
a unit model is resolved from both (see capabilities.resolve_model).

All tables are read-only and shared by every unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class ActionCategory(StrEnum):
    """Groups of commands a unit may accept."""

    POWER = "power"
    MODE = "mode"
    TEMPERATURE = "temperature"
    FAN = "fan"
    AIR_DIRECTION_VERTICAL = "airdir"
    AIR_DIRECTION_HORIZONTAL = "airdirh"


class CapabilityFlag(StrEnum):
    """Capability flags reported by unitcapabilities.aspx."""

    FAN_STAGE = "fanstage"
    HAS_AIR_DIR = "hasairdir"
    HAS_SWING = "hasswing"
    HAS_AUTO_MODE = "hasautomode"
    HAS_AUTO_FAN = "hasautofan"
    HAS_DRY_MODE = "hasdrymode"
    HAS_AIR_AUTO = "hasairauto"
    HAS_AIR_DIR_H = "hasairdirh"


class Property(StrEnum):
    """Human-readable unit state properties."""

    POWER = "power"
    STANDBY = "standby"
    MODE = "mode"
    AUTO_MODE = "auto_mode"
    FAN_SPEED = "fan_speed"
    SET_TEMPERATURE = "set_temperature"
    ROOM_TEMPERATURE = "room_temperature"
    OUTDOOR_TEMPERATURE = "outdoor_temperature"
    AIR_DIRECTION_VERTICAL = "air_direction_vertical"
    AIR_DIRECTION_HORIZONTAL = "air_direction_horizontal"


@dataclass(frozen=True, slots=True)
class CapabilityFilter:
    """Condition a catalog entry needs to be part of a unit model.

    Attributes:
        flag: Capability flag the entry depends on.
        value: Value the flag must have; ignored when copy_table is set.
        copy_table: The flag value selects a variant table whose entries
            are copied into the model under their own keys.

    """

    flag: CapabilityFlag
    value: int = 1
    copy_table: bool = False


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """Describes how a property maps onto the raw unit state.

    Attributes:
        key: Property name in the raw state returned by the API.
        category: Category used to decode the value, None for raw values.
        trackable: The property can be set and is watched for changes.
        raw: The raw value is already the display value.
        offset: The unit temperature offset applies to the value.

    """

    key: str
    category: ActionCategory | None = None
    trackable: bool = False
    raw: bool = False
    offset: bool = False


FAN_SPEEDS = "speeds"
AIR_DIRECTION_H_POSITIONS = "positions"

_HORIZONTAL_POSITIONS = {"1": 1, "2": 2, "3": 3, "4": 4, "5": 5, "swing": 12}

CAPABILITY_CATALOG: Mapping[ActionCategory, Mapping[str, object]] = MappingProxyType(
    {
        ActionCategory.POWER: MappingProxyType({"off": 0, "on": 1}),
        ActionCategory.MODE: MappingProxyType(
            {"heat": 1, "dry": 2, "cool": 3, "fan": 7, "auto": 8}
        ),
        ActionCategory.FAN: MappingProxyType(
            {
                "auto": 0,
                # Keyed by fanstage
                FAN_SPEEDS: MappingProxyType(
                    {
                        1: MappingProxyType({"1": 5}),
                        2: MappingProxyType({"1": 2, "2": 5}),
                        3: MappingProxyType({"1": 2, "2": 3, "3": 5}),
                        4: MappingProxyType({"1": 2, "2": 3, "3": 5, "4": 6}),
                        5: MappingProxyType(
                            {"1": 1, "2": 2, "3": 3, "4": 5, "5": 6}
                        ),
                    }
                ),
            }
        ),
        ActionCategory.AIR_DIRECTION_VERTICAL: MappingProxyType(
            {"auto": 0, "1": 1, "2": 2, "3": 3, "4": 4, "5": 5, "swing": 7}
        ),
        ActionCategory.AIR_DIRECTION_HORIZONTAL: MappingProxyType(
            {
                # Keyed by hasairdirh
                AIR_DIRECTION_H_POSITIONS: MappingProxyType(
                    {
                        1: MappingProxyType(_HORIZONTAL_POSITIONS),
                        2: MappingProxyType(
                            {"auto": 0, **_HORIZONTAL_POSITIONS, "split": 8}
                        ),
                    }
                ),
            }
        ),
    }
)

CAPABILITY_FILTERS: Mapping[ActionCategory, Mapping[str, CapabilityFilter]] = (
    MappingProxyType(
        {
            ActionCategory.MODE: MappingProxyType(
                {
                    "dry": CapabilityFilter(CapabilityFlag.HAS_DRY_MODE),
                    "auto": CapabilityFilter(CapabilityFlag.HAS_AUTO_MODE),
                }
            ),
            ActionCategory.FAN: MappingProxyType(
                {
                    "auto": CapabilityFilter(CapabilityFlag.HAS_AUTO_FAN),
                    FAN_SPEEDS: CapabilityFilter(
                        CapabilityFlag.FAN_STAGE, copy_table=True
                    ),
                }
            ),
            ActionCategory.AIR_DIRECTION_VERTICAL: MappingProxyType(
                {
                    "auto": CapabilityFilter(CapabilityFlag.HAS_AIR_AUTO),
                    "1": CapabilityFilter(CapabilityFlag.HAS_AIR_DIR),
                    "2": CapabilityFilter(CapabilityFlag.HAS_AIR_DIR),
                    "3": CapabilityFilter(CapabilityFlag.HAS_AIR_DIR),
                    "4": CapabilityFilter(CapabilityFlag.HAS_AIR_DIR),
                    "5": CapabilityFilter(CapabilityFlag.HAS_AIR_DIR),
                    "swing": CapabilityFilter(CapabilityFlag.HAS_SWING),
                }
            ),
            ActionCategory.AIR_DIRECTION_HORIZONTAL: MappingProxyType(
                {
                    AIR_DIRECTION_H_POSITIONS: CapabilityFilter(
                        CapabilityFlag.HAS_AIR_DIR_H, copy_table=True
                    ),
                }
            ),
        }
    )
)

ACTION_PREFIXES: Mapping[ActionCategory, str] = MappingProxyType(
    {
        ActionCategory.POWER: "PW",
        ActionCategory.MODE: "MD",
        ActionCategory.TEMPERATURE: "TS",
        ActionCategory.FAN: "FS",
        ActionCategory.AIR_DIRECTION_VERTICAL: "AV",
        ActionCategory.AIR_DIRECTION_HORIZONTAL: "AH",
    }
)

# Order of the entries is the order of segments in a composite command
PROPERTY_DESCRIPTORS: Mapping[Property, PropertyDescriptor] = MappingProxyType(
    {
        Property.POWER: PropertyDescriptor(
            "power", ActionCategory.POWER, trackable=True
        ),
        Property.STANDBY: PropertyDescriptor("standby", ActionCategory.POWER),
        Property.MODE: PropertyDescriptor(
            "setmode", ActionCategory.MODE, trackable=True
        ),
        Property.AUTO_MODE: PropertyDescriptor("automode", ActionCategory.MODE),
        Property.FAN_SPEED: PropertyDescriptor(
            "setfan", ActionCategory.FAN, trackable=True
        ),
        Property.SET_TEMPERATURE: PropertyDescriptor(
            "settemp",
            ActionCategory.TEMPERATURE,
            trackable=True,
            raw=True,
            offset=True,
        ),
        Property.ROOM_TEMPERATURE: PropertyDescriptor(
            "roomtemp", raw=True, offset=True
        ),
        Property.OUTDOOR_TEMPERATURE: PropertyDescriptor("outdoortemp", raw=True),
        Property.AIR_DIRECTION_VERTICAL: PropertyDescriptor(
            "airdir", ActionCategory.AIR_DIRECTION_VERTICAL, trackable=True
        ),
        Property.AIR_DIRECTION_HORIZONTAL: PropertyDescriptor(
            "airdirh", ActionCategory.AIR_DIRECTION_HORIZONTAL, trackable=True
        ),
    }
)

TRACKABLE_PROPERTIES: tuple[Property, ...] = tuple(
    prop for prop, descriptor in PROPERTY_DESCRIPTORS.items() if descriptor.trackable
)
