"""Exceptions raised by the Melview HVAC client."""


class MelviewError(Exception):
    """Base exception for Melview client errors."""


class MelviewApiClientError(MelviewError):
    """Exception raised when a request to the Melview API fails."""


class MelviewApiAuthError(MelviewApiClientError):
    """Exception raised for authentication errors."""


class MelviewUnsupportedError(MelviewError):
    """Exception raised when a unit cannot perform the requested action."""


class MelviewInvalidValueError(MelviewError, ValueError):
    """Exception raised for values that cannot be parsed or applied."""


class MelviewStaleSessionError(MelviewError):
    """Exception raised when persisted session data cannot be reused."""


class MelviewUnknownUnitError(MelviewError, KeyError):
    """Exception raised when a unit identifier is not known to the client."""
