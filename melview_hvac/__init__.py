"""Client for Mitsubishi heat-pump units connected to the Melview cloud."""

from .catalog import ActionCategory, CapabilityFlag, Property
from .client import MelviewClient
from .codec import UnknownValue
from .config import MelviewConfig
from .exceptions import (
    MelviewApiAuthError,
    MelviewApiClientError,
    MelviewError,
    MelviewInvalidValueError,
    MelviewStaleSessionError,
    MelviewUnknownUnitError,
    MelviewUnsupportedError,
)
from .models import ChangeEvent, MelviewDevice, UnitCapabilities, UnitModel

__all__ = [
    "ActionCategory",
    "CapabilityFlag",
    "ChangeEvent",
    "MelviewApiAuthError",
    "MelviewApiClientError",
    "MelviewClient",
    "MelviewConfig",
    "MelviewDevice",
    "MelviewError",
    "MelviewInvalidValueError",
    "MelviewStaleSessionError",
    "MelviewUnknownUnitError",
    "MelviewUnsupportedError",
    "Property",
    "UnitCapabilities",
    "UnitModel",
    "UnknownValue",
]
