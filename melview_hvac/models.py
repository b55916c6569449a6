"""Data models for the Melview HVAC client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .catalog import ActionCategory, CapabilityFlag
from .exceptions import MelviewUnsupportedError

if TYPE_CHECKING:
    from collections.abc import Mapping

# Capability keys kept from the unitcapabilities.aspx response
KNOWN_CAPABILITIES = (
    "id",
    "unitname",
    "modeltype",
    "localip",
    "max",
    *(flag.value for flag in CapabilityFlag),
)


@dataclass(frozen=True)
class MelviewDevice:
    """Represents a unit registered on the account.

    Attributes:
        id: Unique unit identifier.
        name: Human-readable unit name.

    """

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class TemperatureRange:
    """Lowest and highest target temperature allowed in one mode."""

    min: float
    max: float


@dataclass(slots=True)
class UnitCapabilities:
    """Capabilities reported for a unit by the Melview API."""

    id: str
    name: str
    model_type: str | None
    flags: dict[CapabilityFlag, int]
    temperature_ranges: dict[str, TemperatureRange]
    local_address: str | None
    raw: dict[str, Any]

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> UnitCapabilities:
        """Create capabilities from a unitcapabilities.aspx response.

        Only the known capability keys are kept. Flags that cannot be read
        as integers are dropped, which disables whatever depends on them.
        Temperature ranges are keyed by the wire code of their mode.
        """
        raw = {key: data[key] for key in KNOWN_CAPABILITIES if key in data}

        flags: dict[CapabilityFlag, int] = {}
        for flag in CapabilityFlag:
            try:
                flags[flag] = int(raw[flag.value])
            except (KeyError, TypeError, ValueError):
                continue

        bounds_by_mode = raw.get("max")
        if not isinstance(bounds_by_mode, dict):
            bounds_by_mode = {}

        ranges: dict[str, TemperatureRange] = {}
        for mode_code, bounds in bounds_by_mode.items():
            try:
                ranges[str(mode_code)] = TemperatureRange(
                    min=float(bounds["min"]),
                    max=float(bounds["max"]),
                )
            except (KeyError, TypeError, ValueError):
                continue

        local_address = raw.get("localip") or None
        return cls(
            id=str(raw.get("id", "")),
            name=str(raw.get("unitname", "")),
            model_type=str(raw["modeltype"]) if "modeltype" in raw else None,
            flags=flags,
            temperature_ranges=ranges,
            local_address=str(local_address) if local_address else None,
            raw=raw,
        )


@dataclass(frozen=True, slots=True)
class UnitModel:
    """Commands and values a unit supports, resolved from its capabilities.

    A category missing from mappings means the unit cannot perform it.
    """

    mappings: Mapping[ActionCategory, Mapping[str, Any]]
    prefixes: Mapping[ActionCategory, str]

    def supports(self, category: ActionCategory) -> bool:
        """Return True if the unit accepts commands of the category."""
        return category in self.prefixes

    def values(self, category: ActionCategory) -> Mapping[str, Any]:
        """Return the token to code mapping of a category (empty if absent)."""
        return self.mappings.get(category, MappingProxyType({}))

    def prefix(self, category: ActionCategory) -> str:
        """Return the wire prefix of a category.

        Raises:
            MelviewUnsupportedError: If the unit has no such command.

        """
        try:
            return self.prefixes[category]
        except KeyError:
            error_msg = f"unit doesn't support {category} commands"
            raise MelviewUnsupportedError(error_msg) from None


@dataclass(slots=True)
class RawState:
    """Raw unit state as returned by the API, with its fetch time."""

    values: dict[str, Any]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def is_fresh(self, max_age: float) -> bool:
        """Return True if the state is younger than max_age seconds."""
        age = datetime.now(UTC) - self.fetched_at
        return age <= timedelta(seconds=max_age)

    def as_dict(self) -> dict[str, Any]:
        """Serialize the state for persistence."""
        return {"values": self.values, "fetched_at": self.fetched_at.isoformat()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RawState:
        """Restore a state serialized with as_dict."""
        return cls(
            values=dict(data["values"]),
            fetched_at=datetime.fromisoformat(data["fetched_at"]),
        )


@dataclass(slots=True)
class MelviewUnit:
    """A heat-pump unit tracked by the client.

    The unit owns its resolved model and both state snapshots. Operations on
    one unit are expected to be serialized by the caller.
    """

    index: int
    capabilities: UnitCapabilities
    model: UnitModel
    temperature_offset: float = 0.0
    current_state: RawState | None = None
    previous_state: RawState | None = None

    @property
    def id(self) -> str:
        """Stable unit identifier."""
        return self.capabilities.id

    @property
    def name(self) -> str:
        """Unit display name."""
        return self.capabilities.name


@dataclass(frozen=True)
class ChangeEvent:
    """Unit state changed outside of this client.

    Attributes:
        unit_id: Identifier of the unit that changed.
        previous_state: Rendered values of the changed properties before.
        current_state: Rendered values of the changed properties after.

    """

    unit_id: str
    previous_state: dict[str, Any]
    current_state: dict[str, Any]
