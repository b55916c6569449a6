"""Configuration for the Melview HVAC client."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from .const import (
    DEFAULT_MIN_REFRESH,
    DEFAULT_TIMEOUT,
    DEFAULT_TMP_DIR,
    DEFAULT_URL,
    STATE_FILE_NAME,
)
from .exceptions import MelviewInvalidValueError


@dataclass(frozen=True)
class MelviewConfig:
    """Settings used to create a MelviewClient.

    Attributes:
        username: Account email address used in the Melview app.
        password: Account password.
        url: Base address of the Melview API.
        user_agent: Optional user agent sent with every request.
        min_refresh: Seconds a fetched unit state is served from cache.
        tmp_dir: Directory holding the persisted session file.
        persistence: Whether session, capabilities and states are persisted.
        track_changes: Whether external state changes are detected.
        local_control: Whether commands are also sent to the unit directly.
        timeout: Request timeout in seconds.

    """

    username: str
    password: str
    url: str = DEFAULT_URL
    user_agent: str | None = None
    min_refresh: float = DEFAULT_MIN_REFRESH
    tmp_dir: str = DEFAULT_TMP_DIR
    persistence: bool = True
    track_changes: bool = True
    local_control: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        """Validate the configuration values."""
        for name in ("username", "password"):
            if not getattr(self, name):
                error_msg = f"parameter {name} is required"
                raise MelviewInvalidValueError(error_msg)

        for name in ("min_refresh", "timeout"):
            value = getattr(self, name)
            if not isinstance(value, int | float) or math.isnan(value) or value < 0:
                error_msg = f"parameter {name} must be a non-negative number"
                raise MelviewInvalidValueError(error_msg)

        object.__setattr__(self, "url", self.url.rstrip("/"))

    @property
    def state_file(self) -> Path:
        """Path of the persisted session file."""
        return Path(self.tmp_dir) / STATE_FILE_NAME
