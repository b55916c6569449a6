"""Client coordinating the Melview session and the units of an account.

MelviewClient logs in, learns the capabilities of every unit, keeps their
states fresh, and turns setting changes into commands. Operations on one
unit must be serialized by the caller; issuing two commands to the same
unit concurrently is not supported.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

import httpx

from . import api
from .capabilities import clamp_temperature, resolve_model
from .catalog import PROPERTY_DESCRIPTORS, ActionCategory, Property
from .codec import (
    encode_value,
    format_temperature,
    parse_temperature,
    render_state,
    same_value,
    to_display_temperature,
    to_wire_temperature,
)
from .commands import build_command, build_delta, validate_desired_state
from .exceptions import (
    MelviewApiAuthError,
    MelviewApiClientError,
    MelviewInvalidValueError,
    MelviewStaleSessionError,
    MelviewUnknownUnitError,
)
from .models import MelviewDevice, MelviewUnit, RawState, UnitCapabilities
from .storage import MelviewStore
from .tracker import ChangeTracker

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from types import TracebackType

    from .config import MelviewConfig
    from .models import ChangeEvent, UnitModel

_LOGGER = logging.getLogger(__name__)

MODE_KEY = PROPERTY_DESCRIPTORS[Property.MODE].key
TEMPERATURE_KEY = PROPERTY_DESCRIPTORS[Property.SET_TEMPERATURE].key


class MelviewClient:
    """Client for the heat-pump units of one Melview account."""

    def __init__(
        self,
        config: MelviewConfig,
        session: httpx.AsyncClient | None = None,
        store: MelviewStore | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration.
            session: HTTP client to use; one is created (and closed by
                async_close) when omitted.
            store: Store for the persisted session; defaults to the state
                file of the configuration when persistence is enabled.

        """
        self.config = config
        self._owns_session = session is None
        self._session = session or api.create_session_client(config)
        if store is None and config.persistence:
            store = MelviewStore(config.state_file)
        self._store = store
        self._tracker = ChangeTracker(track_changes=config.track_changes)
        self._units: dict[str, MelviewUnit] = {}

    async def __aenter__(self) -> Self:
        """Enter the client context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the client when leaving the context."""
        await self.async_close()

    @property
    def connected(self) -> bool:
        """Return True once units have been loaded."""
        return bool(self._units)

    def register_change_callback(
        self,
        callback: Callable[[ChangeEvent], None],
    ) -> Callable[[], None]:
        """Register a callback for unit state changes made outside this client.

        Args:
            callback: Function to call with each ChangeEvent.

        Returns:
            A function to unregister the callback.

        """
        return self._tracker.register_change_callback(callback)

    async def async_connect(self, *, reuse: bool = True) -> None:
        """Establish the session, reusing the stored one when possible.

        A stored session that can't be used is discarded and a new login
        is performed instead.

        Args:
            reuse: Try the persisted session before logging in.

        Raises:
            MelviewApiAuthError: If the credentials are rejected.
            MelviewApiClientError: If the API can't be reached.

        """
        if reuse and await self._async_reuse_session():
            return

        await self._async_initialise()
        _LOGGER.info("Connected to Melview API with %d units", len(self._units))

    async def async_logout(self) -> None:
        """Forget the session, the units and the persisted state."""
        self._session.cookies.clear()
        self._units = {}
        if self._store is not None:
            await self._store.async_remove()
        _LOGGER.info("Logged out from Melview API")

    async def async_close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_session:
            await self._session.aclose()

    def list_units(self) -> list[MelviewDevice]:
        """Return the units of the account."""
        return [
            MelviewDevice(id=unit.id, name=unit.name) for unit in self._units.values()
        ]

    def get_capabilities(self, unit_id: str) -> UnitCapabilities:
        """Return the capabilities reported for a unit."""
        return self._get_unit(unit_id).capabilities

    def get_model(self, unit_id: str) -> UnitModel:
        """Return the commands and values a unit supports."""
        return self._get_unit(unit_id).model

    async def async_get_current_state(self, unit_id: str) -> dict[str, Any]:
        """Return the human-readable state of a unit.

        The cached state is used while it is younger than min_refresh,
        otherwise it is fetched first.

        Returns:
            Dictionary keyed by property name. Temperatures include the
            unit offset; codes the unit doesn't know render as UnknownValue.

        """
        unit = self._get_unit(unit_id)
        values = await self._async_current_values(unit)
        return render_state(unit, values)

    async def async_get_current_state_raw(self, unit_id: str) -> dict[str, Any]:
        """Return the state of a unit as reported by the API."""
        unit = self._get_unit(unit_id)
        return dict(await self._async_current_values(unit))

    async def async_update(self, unit_id: str) -> dict[str, Any]:
        """Fetch the state of a unit regardless of the cache.

        Returns:
            The human-readable state of the unit.

        """
        unit = self._get_unit(unit_id)
        await self._async_fetch_state(unit)
        await self._async_store()
        return render_state(unit, unit.current_state.values)

    async def async_set_power(self, unit_id: str, power: str) -> None:
        """Turn a unit on or off ("on", "off")."""
        await self.async_set_state(unit_id, {Property.POWER: power})

    async def async_set_mode(self, unit_id: str, mode: str) -> None:
        """Set the operating mode, moving the temperature into its range."""
        await self.async_set_state(unit_id, {Property.MODE: mode})

    async def async_set_temperature(self, unit_id: str, temperature: Any) -> None:
        """Set the target temperature (offset included), clamped to the mode."""
        # async_set_state drops None as unset
        parse_temperature(temperature)
        await self.async_set_state(unit_id, {Property.SET_TEMPERATURE: temperature})

    async def async_set_fan_speed(self, unit_id: str, fan_speed: str) -> None:
        """Set the fan speed ("auto", "1".."5" as supported by the unit)."""
        await self.async_set_state(unit_id, {Property.FAN_SPEED: fan_speed})

    async def async_set_air_direction_vertical(
        self, unit_id: str, direction: str
    ) -> None:
        """Set the vertical vane position."""
        await self.async_set_state(
            unit_id, {Property.AIR_DIRECTION_VERTICAL: direction}
        )

    async def async_set_air_direction_horizontal(
        self, unit_id: str, direction: str
    ) -> None:
        """Set the horizontal vane position."""
        await self.async_set_state(
            unit_id, {Property.AIR_DIRECTION_HORIZONTAL: direction}
        )

    async def async_set_state(
        self,
        unit_id: str,
        desired: Mapping[Property | str, Any],
    ) -> None:
        """Move a unit to a desired state with as few commands as possible.

        Properties equal to the current state are left out. The target
        temperature is clamped to the range of the resulting mode. When the
        mode changes and the temperature has to change with it, the
        temperature is sent first, followed by the rest of the changes.

        Args:
            unit_id: Unit identifier.
            desired: Human-readable values keyed by property name.

        Raises:
            MelviewUnsupportedError: If the unit can't take one of the values.
            MelviewInvalidValueError: If a value can't be parsed.
            MelviewApiClientError: If a command fails.

        """
        unit = self._get_unit(unit_id)
        wanted = validate_desired_state(unit, desired)
        if not wanted:
            return

        current = await self._async_current_values(unit)

        mode_code = current.get(MODE_KEY)
        mode_changed = False
        if Property.MODE in wanted:
            new_mode = encode_value(
                unit.model, ActionCategory.MODE, wanted[Property.MODE]
            )
            mode_changed = not same_value(new_mode, mode_code)
            mode_code = new_mode

        temperature = self._target_temperature(
            unit, wanted, current, mode_code, mode_changed=mode_changed
        )
        if temperature is not None:
            wanted[Property.SET_TEMPERATURE] = to_display_temperature(
                temperature, unit.temperature_offset
            )

        delta = build_delta(unit, current, wanted)

        if (
            mode_changed
            and temperature is not None
            and not same_value(temperature, current.get(TEMPERATURE_KEY))
        ):
            temperature_command = build_command(
                unit.model,
                ActionCategory.TEMPERATURE,
                format_temperature(temperature),
            )
            wanted.pop(Property.SET_TEMPERATURE)
            delta = build_delta(unit, current, wanted)
            await self._async_send_command(unit, temperature_command)

        await self._async_send_command(unit, delta)

    async def async_set_temperature_offset(self, unit_id: str, offset: Any) -> None:
        """Set the correction added to every temperature of a unit.

        Raises:
            MelviewInvalidValueError: If the offset is not a number.

        """
        unit = self._get_unit(unit_id)
        try:
            value = parse_temperature(offset)
        except MelviewInvalidValueError:
            error_msg = f"wrong temperature offset: {offset}"
            raise MelviewInvalidValueError(error_msg) from None

        unit.temperature_offset = value
        _LOGGER.debug("Temperature offset of unit %s set to %s", unit.id, value)
        await self._async_store()

    def _target_temperature(
        self,
        unit: MelviewUnit,
        wanted: Mapping[Property, Any],
        current: Mapping[str, Any],
        mode_code: Any,
        *,
        mode_changed: bool,
    ) -> float | None:
        """Return the offset-free temperature to send, clamped to the mode."""
        if Property.SET_TEMPERATURE in wanted:
            temperature = to_wire_temperature(
                parse_temperature(wanted[Property.SET_TEMPERATURE]),
                unit.temperature_offset,
            )
        elif mode_changed:
            try:
                temperature = parse_temperature(current.get(TEMPERATURE_KEY))
            except MelviewInvalidValueError:
                _LOGGER.debug("Unit %s reports no target temperature", unit.id)
                return None
        else:
            return None

        clamped = clamp_temperature(unit.capabilities, mode_code, temperature)
        if clamped != temperature:
            _LOGGER.debug(
                "Temperature %s out of range for mode %s, using %s",
                temperature,
                mode_code,
                clamped,
            )
        return clamped

    def _get_unit(self, unit_id: str) -> MelviewUnit:
        try:
            return self._units[unit_id]
        except KeyError:
            error_msg = f"unknown unit: {unit_id}"
            raise MelviewUnknownUnitError(error_msg) from None

    async def _async_call(
        self,
        func: Callable[..., Awaitable[dict[str, Any] | int]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Call an API function, turning connection errors into client errors."""
        try:
            return await func(self._session, self.config.url, *args, **kwargs)
        except httpx.RequestError as err:
            error_msg = f"Connection error: {err}"
            _LOGGER.debug("Connection error in %s: %s", func.__name__, err)
            raise MelviewApiClientError(error_msg) from err

    async def _async_call_authenticated(
        self,
        func: Callable[..., Awaitable[dict[str, Any] | int]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Call an API function, logging in again once if the session expired."""
        try:
            return await self._async_call(func, *args, **kwargs)
        except MelviewApiAuthError as err:
            _LOGGER.warning(
                "Session rejected, attempting automatic re-authentication: %s", err
            )
            await self._async_login()
            await self._async_store()
            return await self._async_call(func, *args, **kwargs)

    async def _async_login(self) -> int:
        user_units = await self._async_call(
            api.async_login, self.config.username, self.config.password
        )
        _LOGGER.info("Logged in to Melview API")
        return user_units

    async def _async_reuse_session(self) -> bool:
        """Restore the stored session, returning False when a login is needed."""
        if self._store is None:
            return False

        try:
            blob = await self._store.async_load()
            if blob is None:
                _LOGGER.debug("No stored session in %s", self._store.path)
                return False
            self._restore(blob)
        except MelviewStaleSessionError as err:
            _LOGGER.warning("Discarding stored session: %s", err)
            await self._store.async_remove()
            return False

        _LOGGER.info("Reusing stored session with %d units", len(self._units))
        return True

    async def _async_initialise(self) -> None:
        """Log in, then load capabilities, models and states of every unit."""
        user_units = await self._async_login()

        units: dict[str, MelviewUnit] = {}
        for index in range(user_units):
            data = await self._async_call(api.async_get_capabilities, index)
            capabilities = UnitCapabilities.from_api(data)
            if not capabilities.id:
                error_msg = f"capabilities of unit {index} have no id"
                raise MelviewApiClientError(error_msg)
            units[capabilities.id] = MelviewUnit(
                index=index,
                capabilities=capabilities,
                model=resolve_model(capabilities),
            )
        self._units = units

        for unit in units.values():
            await self._async_fetch_state(unit)

        await self._async_store()

    async def _async_current_values(self, unit: MelviewUnit) -> dict[str, Any]:
        state = unit.current_state
        if state is None or not state.is_fresh(self.config.min_refresh):
            await self._async_fetch_state(unit)
            await self._async_store()
        return unit.current_state.values

    async def _async_fetch_state(self, unit: MelviewUnit) -> None:
        values = await self._async_call_authenticated(
            api.async_get_unit_state, unit.id
        )
        self._tracker.record_fetch(unit, values)

    async def _async_send_command(self, unit: MelviewUnit, command: str) -> None:
        if not command:
            _LOGGER.debug("Unit %s already in the requested state", unit.id)
            return

        local = self.config.local_control
        values = await self._async_call_authenticated(
            api.async_send_command, unit.id, command, local=local
        )
        self._tracker.record_command(unit, values)
        await self._async_store()

        if local:
            await self._async_send_local_command(unit, values.get("lc"))

    async def _async_send_local_command(self, unit: MelviewUnit, code: Any) -> None:
        """Replay a command on the local network, logging any failure."""
        if not code:
            _LOGGER.debug("No local command code returned for unit %s", unit.id)
            return

        address = await self._async_local_address(unit)
        if address is None:
            _LOGGER.debug("Unit %s has no local address", unit.id)
            return

        try:
            await api.async_send_local_command(self._session, address, str(code))
        except (httpx.HTTPError, MelviewApiClientError) as err:
            _LOGGER.warning("Local command to unit %s failed: %s", unit.id, err)

    async def _async_local_address(self, unit: MelviewUnit) -> str | None:
        if unit.capabilities.local_address:
            return unit.capabilities.local_address

        try:
            data = await self._async_call_authenticated(
                api.async_get_capabilities, unit.index
            )
        except MelviewApiClientError as err:
            _LOGGER.warning(
                "Can't look up local address of unit %s: %s", unit.id, err
            )
            return None

        address = UnitCapabilities.from_api(data).local_address
        unit.capabilities.local_address = address
        if address:
            unit.capabilities.raw["localip"] = address
        return address

    def _snapshot(self) -> dict[str, Any]:
        return {
            "session": {
                "cookies": [
                    {
                        "name": cookie.name,
                        "value": cookie.value,
                        "domain": cookie.domain,
                        "path": cookie.path,
                    }
                    for cookie in self._session.cookies.jar
                ]
            },
            "capabilities": [
                {
                    "index": unit.index,
                    "capabilities": unit.capabilities.raw,
                    "temperature_offset": unit.temperature_offset,
                }
                for unit in self._units.values()
            ],
            "state": {
                unit.id: unit.current_state.as_dict()
                for unit in self._units.values()
                if unit.current_state is not None
            },
        }

    def _restore(self, blob: Mapping[str, Any]) -> None:
        try:
            units: dict[str, MelviewUnit] = {}
            for record in blob["capabilities"]:
                capabilities = UnitCapabilities.from_api(record["capabilities"])
                unit = MelviewUnit(
                    index=int(record["index"]),
                    capabilities=capabilities,
                    model=resolve_model(capabilities),
                    temperature_offset=float(record.get("temperature_offset", 0.0)),
                )
                state = blob["state"].get(unit.id)
                if state is not None:
                    unit.current_state = RawState.from_dict(state)
                units[unit.id] = unit
            host = httpx.URL(self.config.url).host
            cookies = [
                (
                    str(cookie["name"]),
                    str(cookie["value"]),
                    str(cookie.get("domain") or host),
                    str(cookie.get("path") or "/"),
                )
                for cookie in blob["session"].get("cookies", [])
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as err:
            error_msg = f"stored state is malformed: {err}"
            raise MelviewStaleSessionError(error_msg) from err

        if not units:
            error_msg = "stored state has no units"
            raise MelviewStaleSessionError(error_msg)

        self._units = units
        # Cookies stay bound to the API host, never sent to units on the LAN
        for name, value, domain, path in cookies:
            self._session.cookies.set(name, value, domain=domain, path=path)

    async def _async_store(self) -> None:
        if self._store is None:
            return

        try:
            await self._store.async_save(self._snapshot())
        except OSError as err:
            _LOGGER.warning(
                "Can't store client state in %s: %s", self._store.path, err
            )
