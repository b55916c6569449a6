"""Persistence of session, capabilities and unit states between runs."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from .const import STORAGE_VERSION
from .exceptions import MelviewStaleSessionError

if TYPE_CHECKING:
    from pathlib import Path

_LOGGER = logging.getLogger(__name__)

STORAGE_KEYS = ("version", "session", "capabilities", "state")


class MelviewStore:
    """JSON file holding the versioned client blob.

    The blob has the layout {"version", "session", "capabilities", "state"}.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: File the blob is written to.

        """
        self.path = path

    async def async_save(self, blob: dict[str, Any]) -> None:
        """Write the blob, stamping it with the current version.

        Raises:
            OSError: If the file can't be written.

        """
        data = {**blob, "version": STORAGE_VERSION}
        content = json.dumps(data, separators=(",", ":"))
        await asyncio.to_thread(self._write, content)
        _LOGGER.debug("Stored client state in %s", self.path)

    async def async_load(self) -> dict[str, Any] | None:
        """Read the blob back.

        Returns:
            The stored blob, or None if nothing was stored yet.

        Raises:
            MelviewStaleSessionError: If the file is unreadable or written by
                another version.

        """
        try:
            content = await asyncio.to_thread(self.path.read_text, "utf-8")
            data = json.loads(content)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as err:
            error_msg = f"can't load stored state ({self.path}): {err}"
            raise MelviewStaleSessionError(error_msg) from err

        validate_blob(data)
        return data

    async def async_remove(self) -> None:
        """Delete the stored blob if there is one."""
        await asyncio.to_thread(self.path.unlink, missing_ok=True)
        _LOGGER.debug("Removed stored client state %s", self.path)

    def _write(self, content: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(content, encoding="utf-8")


def validate_blob(data: Any) -> None:
    """Check that a loaded blob can be used by this version of the client.

    Raises:
        MelviewStaleSessionError: If the blob is malformed or outdated.

    """
    if not isinstance(data, dict):
        error_msg = "stored state is not an object"
        raise MelviewStaleSessionError(error_msg)

    missing = [key for key in STORAGE_KEYS if key not in data]
    if missing:
        error_msg = f"stored state is missing {', '.join(missing)}"
        raise MelviewStaleSessionError(error_msg)

    if data["version"] != STORAGE_VERSION:
        error_msg = (
            f"stored state version {data['version']} doesn't match "
            f"{STORAGE_VERSION}"
        )
        raise MelviewStaleSessionError(error_msg)
