"""Translation between wire values and human-readable unit state."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from .catalog import PROPERTY_DESCRIPTORS, ActionCategory, Property
from .exceptions import MelviewInvalidValueError, MelviewUnsupportedError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .catalog import PropertyDescriptor
    from .models import MelviewUnit, UnitModel

_LOGGER = logging.getLogger(__name__)

TEMPERATURE_PRECISION = 2


class UnknownValue(str):
    """Wire value with no matching token in the unit model."""

    wire_value: Any

    def __new__(cls, wire_value: Any) -> UnknownValue:
        """Create the marker, displayed as 'unknown (<wire value>)'."""
        instance = super().__new__(cls, f"unknown ({wire_value})")
        instance.wire_value = wire_value
        return instance


def same_value(first: Any, second: Any) -> bool:
    """Compare two wire values regardless of number/string typing.

    Values that both read as numbers are compared numerically ("3" equals 3
    and "21.0" equals 21); anything else is compared by its string form.
    """
    if first is None or second is None:
        return first is second

    try:
        return float(first) == float(second)
    except (TypeError, ValueError):
        return str(first) == str(second)


def decode_value(
    model: UnitModel,
    category: ActionCategory,
    wire_value: Any,
) -> str | None:
    """Translate a wire code into its human-readable token.

    Args:
        model: Resolved model of the unit.
        category: Category the code belongs to.
        wire_value: Code as found in the raw state.

    Returns:
        The matching token, an UnknownValue if the unit model has no such
        code, or None if the raw state carries no value.

    """
    if wire_value is None:
        return None

    for token, code in model.values(category).items():
        if str(code) == str(wire_value):
            return token

    _LOGGER.debug("Unknown %s value: %s", category, wire_value)
    return UnknownValue(wire_value)


def encode_value(model: UnitModel, category: ActionCategory, token: Any) -> Any:
    """Translate a human-readable token into the unit's wire code.

    Raises:
        MelviewUnsupportedError: If the unit doesn't support the token.

    """
    values = model.values(category)
    if not values:
        error_msg = f"unit doesn't support {category} commands"
        raise MelviewUnsupportedError(error_msg)

    try:
        return values[str(token)]
    except KeyError:
        error_msg = f"unit doesn't support {category} value: {token}"
        raise MelviewUnsupportedError(error_msg) from None


def parse_temperature(value: Any) -> float:
    """Read a temperature given as a number or a numeric string.

    Raises:
        MelviewInvalidValueError: If the value is not a finite number.

    """
    if isinstance(value, bool):
        error_msg = f"wrong temperature: {value}"
        raise MelviewInvalidValueError(error_msg)

    try:
        temperature = float(value)
    except (TypeError, ValueError):
        error_msg = f"wrong temperature: {value}"
        raise MelviewInvalidValueError(error_msg) from None

    if not math.isfinite(temperature):
        error_msg = f"wrong temperature: {value}"
        raise MelviewInvalidValueError(error_msg)

    return temperature


def to_wire_temperature(temperature: float, offset: float) -> float:
    """Remove the unit offset from a displayed temperature."""
    return round(temperature - offset, TEMPERATURE_PRECISION)


def to_display_temperature(temperature: float, offset: float) -> float:
    """Apply the unit offset to a raw temperature."""
    return round(temperature + offset, TEMPERATURE_PRECISION)


def format_temperature(temperature: float) -> str:
    """Format a temperature the way the API expects it (22, 22.5)."""
    return f"{temperature:g}"


def render_property(
    unit: MelviewUnit,
    descriptor: PropertyDescriptor,
    wire_value: Any,
) -> Any:
    """Render one raw state value into its human-readable form."""
    if not descriptor.raw:
        return decode_value(unit.model, descriptor.category, wire_value)

    if wire_value is None or wire_value == "":
        return None

    try:
        temperature = parse_temperature(wire_value)
    except MelviewInvalidValueError:
        _LOGGER.debug("Unreadable %s value: %s", descriptor.key, wire_value)
        return None

    if descriptor.offset:
        return to_display_temperature(temperature, unit.temperature_offset)
    return temperature


def render_state(unit: MelviewUnit, values: Mapping[str, Any]) -> dict[str, Any]:
    """Render a raw unit state into human-readable values.

    Args:
        unit: Unit the state belongs to.
        values: Raw state as returned by the API.

    Returns:
        Dictionary keyed by property name.

    """
    return {
        prop.value: render_property(unit, descriptor, values.get(descriptor.key))
        for prop, descriptor in PROPERTY_DESCRIPTORS.items()
    }


def to_property(name: Property | str) -> Property:
    """Return the Property for a property name.

    Raises:
        MelviewInvalidValueError: If the name is not a known property.

    """
    try:
        return Property(name)
    except ValueError:
        error_msg = f"unknown property: {name}"
        raise MelviewInvalidValueError(error_msg) from None
