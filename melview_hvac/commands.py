"""Encoding of unit state changes into Melview command strings.

A command is a comma separated list of segments, each made of a category
prefix and a wire code (for example "PW1,MD3,TS22.5"). The API applies a
command as a single update.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .catalog import PROPERTY_DESCRIPTORS, TRACKABLE_PROPERTIES, Property
from .codec import (
    encode_value,
    format_temperature,
    parse_temperature,
    same_value,
    to_property,
    to_wire_temperature,
)
from .const import COMMAND_SEPARATOR
from .exceptions import MelviewInvalidValueError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .catalog import ActionCategory
    from .models import MelviewUnit, UnitModel

_LOGGER = logging.getLogger(__name__)


def build_command(model: UnitModel, category: ActionCategory, code: Any) -> str:
    """Build a single command segment.

    Raises:
        MelviewUnsupportedError: If the unit has no prefix for the category.

    """
    return f"{model.prefix(category)}{code}"


def normalize_desired_state(
    desired: Mapping[Property | str, Any],
) -> dict[Property, Any]:
    """Key a desired state by Property, dropping unset values.

    Raises:
        MelviewInvalidValueError: If a property is unknown or read-only.

    """
    normalized: dict[Property, Any] = {}
    for name, value in desired.items():
        prop = to_property(name)
        if not PROPERTY_DESCRIPTORS[prop].trackable:
            error_msg = f"property can't be set: {prop}"
            raise MelviewInvalidValueError(error_msg)
        if value is not None:
            normalized[prop] = value
    return normalized


def validate_desired_state(
    unit: MelviewUnit,
    desired: Mapping[Property | str, Any],
) -> dict[Property, Any]:
    """Check every value of a desired state against the unit model.

    Returns:
        The desired state keyed by Property.

    Raises:
        MelviewUnsupportedError: If the unit can't take one of the values.
        MelviewInvalidValueError: If a value can't be parsed.

    """
    wanted = normalize_desired_state(desired)
    for prop, value in wanted.items():
        descriptor = PROPERTY_DESCRIPTORS[prop]
        if descriptor.raw:
            parse_temperature(value)
        else:
            encode_value(unit.model, descriptor.category, value)
    return wanted


def build_delta(
    unit: MelviewUnit,
    current: Mapping[str, Any],
    desired: Mapping[Property | str, Any],
) -> str:
    """Build the command that moves a unit from its current to a desired state.

    Only properties present in the desired state and different from the
    current raw state produce a segment. Temperatures are given with the
    unit offset applied and sent without it. Every value is encoded before
    anything is returned, so an unsupported value fails the whole delta.

    Args:
        unit: Unit the command is for.
        current: Current raw state of the unit.
        desired: Human-readable values keyed by property name.

    Returns:
        The composite command, or an empty string if nothing changes.

    Raises:
        MelviewUnsupportedError: If the unit can't take one of the values.
        MelviewInvalidValueError: If a value can't be parsed.

    """
    wanted = normalize_desired_state(desired)
    segments: list[str] = []

    for prop in TRACKABLE_PROPERTIES:
        if prop not in wanted:
            continue

        descriptor = PROPERTY_DESCRIPTORS[prop]
        current_value = current.get(descriptor.key)

        if descriptor.raw:
            temperature = parse_temperature(wanted[prop])
            if descriptor.offset:
                temperature = to_wire_temperature(
                    temperature, unit.temperature_offset
                )
            code = format_temperature(temperature)
        else:
            code = encode_value(unit.model, descriptor.category, wanted[prop])

        if same_value(code, current_value):
            continue

        segments.append(build_command(unit.model, descriptor.category, code))

    command = COMMAND_SEPARATOR.join(segments)
    _LOGGER.debug("Delta for unit %s: %r", unit.id, command)
    return command
