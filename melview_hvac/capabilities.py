"""Capability resolution and temperature range handling.

This module turns the capability flags of a unit into the set of commands
and values the unit actually supports, and keeps target temperatures within
the range allowed by the unit in a given mode.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .catalog import (
    ACTION_PREFIXES,
    CAPABILITY_CATALOG,
    CAPABILITY_FILTERS,
    ActionCategory,
    CapabilityFilter,
)
from .models import UnitCapabilities, UnitModel

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)


def resolve_model(capabilities: UnitCapabilities) -> UnitModel:
    """Resolve the model of a unit from its capability flags.

    Every catalog entry without a filter is copied as is. An entry with a
    filter is copied only when the unit reports the flag with the required
    value. For copy_table filters the flag value selects one of the entry's
    variant tables, and the entries of that variant are copied under their
    own keys.

    Args:
        capabilities: Capabilities reported for the unit.

    Returns:
        UnitModel holding only the commands the unit supports.

    """
    mappings: dict[ActionCategory, Mapping[str, Any]] = {}

    for category, entries in CAPABILITY_CATALOG.items():
        filters = CAPABILITY_FILTERS.get(category, {})
        resolved: dict[str, Any] = {}

        for key, entry in entries.items():
            rule = filters.get(key)
            if rule is None:
                resolved[key] = entry
                continue
            resolved.update(_apply_filter(capabilities, rule, key, entry))

        if resolved:
            mappings[category] = MappingProxyType(resolved)

    prefixes = {
        category: prefix
        for category, prefix in ACTION_PREFIXES.items()
        if category in mappings or category not in CAPABILITY_CATALOG
    }

    _LOGGER.debug(
        "Resolved model for unit %s: %s",
        capabilities.id,
        {category.value: list(values) for category, values in mappings.items()},
    )
    return UnitModel(
        mappings=MappingProxyType(mappings),
        prefixes=MappingProxyType(prefixes),
    )


def _apply_filter(
    capabilities: UnitCapabilities,
    rule: CapabilityFilter,
    key: str,
    entry: Any,
) -> Mapping[str, Any]:
    flag_value = capabilities.flags.get(rule.flag)
    if flag_value is None:
        return {}

    if rule.copy_table:
        return entry.get(flag_value, {})

    if flag_value == rule.value:
        return {key: entry}

    return {}


def clamp_temperature(
    capabilities: UnitCapabilities,
    mode_code: Any,
    temperature: float,
) -> float:
    """Clamp a target temperature to the range of a mode.

    Modes without a known range accept any temperature, so the value is
    returned unchanged.

    Args:
        capabilities: Capabilities reported for the unit.
        mode_code: Wire code of the mode the temperature applies to.
        temperature: Requested target temperature (offset-free).

    Returns:
        The temperature moved into the mode's range.

    """
    if mode_code is None:
        return temperature

    bounds = capabilities.temperature_ranges.get(str(mode_code))
    if bounds is None:
        return temperature

    if temperature < bounds.min:
        return bounds.min
    if temperature > bounds.max:
        return bounds.max
    return temperature
