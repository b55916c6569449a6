"""State snapshots and detection of changes made outside of this client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .catalog import PROPERTY_DESCRIPTORS, TRACKABLE_PROPERTIES
from .codec import render_property, same_value
from .models import ChangeEvent, RawState

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .models import MelviewUnit

_LOGGER = logging.getLogger(__name__)


class ChangeTracker:
    """Keeps unit state snapshots and reports external changes.

    Every fetched state is compared with the one fetched before it. When a
    settable property differs, registered callbacks receive a ChangeEvent.
    The snapshot before a command sent by this client is dropped, so the
    command's own effect is never reported.
    """

    def __init__(self, *, track_changes: bool = True) -> None:
        """Initialize the tracker.

        Args:
            track_changes: Keep previous states and report changes.

        """
        self.track_changes = track_changes
        self._change_callbacks: list[Callable[[ChangeEvent], None]] = []

    def register_change_callback(
        self,
        callback: Callable[[ChangeEvent], None],
    ) -> Callable[[], None]:
        """Register a callback for external state changes.

        Args:
            callback: Function to call when a change is detected.

        Returns:
            A function to unregister the callback.

        """
        self._change_callbacks.append(callback)

        def unregister() -> None:
            if callback in self._change_callbacks:
                self._change_callbacks.remove(callback)

        return unregister

    def record_fetch(
        self,
        unit: MelviewUnit,
        values: Mapping[str, Any],
    ) -> ChangeEvent | None:
        """Store a freshly fetched state and report what changed since the last.

        Args:
            unit: Unit the state belongs to.
            values: Raw state returned by the API.

        Returns:
            The published ChangeEvent, or None if nothing was reported.

        """
        if self.track_changes:
            unit.previous_state = unit.current_state
        unit.current_state = RawState(values=dict(values))

        if not self.track_changes or unit.previous_state is None:
            return None

        event = self.diff(unit, unit.previous_state, unit.current_state)
        if event is not None:
            self._publish(event)
        return event

    def record_command(self, unit: MelviewUnit, values: Mapping[str, Any]) -> None:
        """Store the state returned for a command sent by this client."""
        unit.current_state = RawState(values=dict(values))
        unit.previous_state = None

    def diff(
        self,
        unit: MelviewUnit,
        previous: RawState,
        current: RawState,
    ) -> ChangeEvent | None:
        """Compare the settable properties of two snapshots.

        Properties without a value in the previous snapshot are skipped.

        Returns:
            ChangeEvent with the rendered values that differ, or None.

        """
        before: dict[str, Any] = {}
        after: dict[str, Any] = {}

        for prop in TRACKABLE_PROPERTIES:
            descriptor = PROPERTY_DESCRIPTORS[prop]
            old_value = previous.values.get(descriptor.key)
            new_value = current.values.get(descriptor.key)
            if old_value is None or same_value(old_value, new_value):
                continue
            before[prop.value] = render_property(unit, descriptor, old_value)
            after[prop.value] = render_property(unit, descriptor, new_value)

        if not before:
            return None

        return ChangeEvent(unit_id=unit.id, previous_state=before, current_state=after)

    def _publish(self, event: ChangeEvent) -> None:
        _LOGGER.debug(
            "Unit %s changed externally: %s -> %s",
            event.unit_id,
            event.previous_state,
            event.current_state,
        )
        for callback in self._change_callbacks:
            try:
                callback(event)
            except Exception:
                _LOGGER.exception("Error in change callback")
