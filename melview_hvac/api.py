"""API client for the Melview cloud service.

This module provides functions to interact with the Melview API,
including authentication, unit capabilities, state queries and commands,
and the local command channel of a unit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from httpx_retries import Retry, RetryTransport

from .const import (
    API_STATUS_OK,
    APP_VERSION,
    AUTH_API_ERRORS,
    COMMAND_API_VERSION,
    ENDPOINT_CAPABILITIES,
    ENDPOINT_COMMAND,
    ENDPOINT_LOGIN,
    LOCAL_COMMAND_PATH,
    LOCAL_COMMAND_TEMPLATE,
)
from .exceptions import MelviewApiAuthError, MelviewApiClientError

if TYPE_CHECKING:
    from .config import MelviewConfig

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403


def create_headers(user_agent: str | None = None) -> dict[str, str]:
    """Create HTTP headers for Melview API requests.

    Args:
        user_agent: Optional user agent to include in headers.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "content-type": "application/json",
        "accept": "application/json, text/plain, */*",
    }
    if user_agent:
        headers["user-agent"] = user_agent
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 400 or higher, False otherwise.

    """
    return status >= HTTP_BAD_REQUEST


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates authentication error.

    Args:
        status: HTTP status code to check.

    Returns:
        True if status code is 401 or 403, False otherwise.

    """
    return status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN)


def is_api_error(data: dict[str, Any]) -> bool:
    """Check if API response indicates an error.

    Args:
        data: API response data dictionary.

    Returns:
        True if an error field other than "ok" is present, False otherwise.

    """
    error = data.get("error")
    return error is not None and str(error).lower() != API_STATUS_OK


def is_auth_api_error(data: dict[str, Any]) -> bool:
    """Check if API response indicates authentication error.

    Args:
        data: API response data dictionary.

    Returns:
        True if the error field names a login problem, False otherwise.

    """
    return str(data.get("error", "")).lower() in AUTH_API_ERRORS


def validate_response(response: httpx.Response) -> dict[str, Any]:
    """Validate HTTP response and return parsed JSON data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON data from response.

    Raises:
        MelviewApiAuthError: If authentication error is detected.
        MelviewApiClientError: If API error is detected.

    """
    _validate_http_status(response)
    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"Invalid JSON in response: {err}"
        raise MelviewApiClientError(error_msg) from err

    if not isinstance(data, dict):
        error_msg = f"Unexpected response: {data!r}"
        raise MelviewApiClientError(error_msg)

    _validate_api_status(data)
    return data


def _validate_http_status(response: httpx.Response) -> None:
    if not is_http_error(response.status_code):
        return

    if is_auth_error(response.status_code):
        auth_error = "Authentication error"
        raise MelviewApiAuthError(auth_error)

    client_error = f"Request failed: {response.status_code}"
    raise MelviewApiClientError(client_error)


def _validate_api_status(data: dict[str, Any]) -> None:
    if not is_api_error(data):
        return

    error_message = f"API error: {data['error']}"

    if is_auth_api_error(data):
        raise MelviewApiAuthError(error_message)

    raise MelviewApiClientError(error_message)


def extract_user_units(data: dict[str, Any]) -> int:
    """Extract the number of units registered on the account.

    Args:
        data: Login API response data dictionary.

    Returns:
        Number of units, 0 if missing or unreadable.

    """
    try:
        return int(data.get("userunits") or 0)
    except (TypeError, ValueError):
        return 0


def create_session_client(config: MelviewConfig) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the Melview API.

    The retry transport only repeats idempotent methods. Every Melview call
    is a POST, so API requests and commands are never sent twice; failures
    surface to the caller on the first attempt.

    Args:
        config: Client configuration.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    retry = Retry(total=3, backoff_factor=0.5)
    return httpx.AsyncClient(
        timeout=config.timeout,
        headers=create_headers(config.user_agent),
        transport=RetryTransport(transport=httpx.AsyncHTTPTransport(), retry=retry),
    )


async def async_login(
    session: httpx.AsyncClient,
    url: str,
    username: str,
    password: str,
) -> int:
    """Log in to the Melview API.

    The session cookie set by the API is kept in the client's cookie jar.

    Args:
        session: HTTP client session.
        url: Base address of the Melview API.
        username: Account email address.
        password: Account password.

    Returns:
        Number of units registered on the account.

    Raises:
        MelviewApiAuthError: If credentials are wrong or no unit is registered.
        MelviewApiClientError: If API request fails.

    """
    payload = {"user": username, "pass": password, "appversion": APP_VERSION}

    _LOGGER.debug("Logging in to Melview API")
    response = await session.post(f"{url}/{ENDPOINT_LOGIN}", json=payload)
    data = validate_response(response)
    user_units = extract_user_units(data)
    if user_units == 0:
        error_msg = "wrong username/password or no units defined in the app"
        raise MelviewApiAuthError(error_msg)

    _LOGGER.debug("Logged in to Melview API, %d units registered", user_units)
    return user_units


async def async_get_capabilities(
    session: httpx.AsyncClient,
    url: str,
    unit_index: int,
) -> dict[str, Any]:
    """Fetch the capabilities of a unit.

    Args:
        session: HTTP client session.
        url: Base address of the Melview API.
        unit_index: Sequential number of the unit on the account.

    Returns:
        Raw capabilities of the unit.

    Raises:
        MelviewApiAuthError: If authentication fails.
        MelviewApiClientError: If API request fails.

    """
    _LOGGER.debug("Fetching capabilities of unit %d", unit_index)
    response = await session.post(
        f"{url}/{ENDPOINT_CAPABILITIES}", json={"unitid": unit_index}
    )
    return validate_response(response)


async def async_get_unit_state(
    session: httpx.AsyncClient,
    url: str,
    unit_id: str,
) -> dict[str, Any]:
    """Fetch the current state of a unit.

    Args:
        session: HTTP client session.
        url: Base address of the Melview API.
        unit_id: Unit identifier.

    Returns:
        Raw state of the unit.

    Raises:
        MelviewApiAuthError: If authentication fails.
        MelviewApiClientError: If API request fails.

    """
    payload = {"unitid": unit_id, "v": COMMAND_API_VERSION}

    _LOGGER.debug("Fetching state of unit %s", unit_id)
    response = await session.post(f"{url}/{ENDPOINT_COMMAND}", json=payload)
    return validate_response(response)


async def async_send_command(
    session: httpx.AsyncClient,
    url: str,
    unit_id: str,
    command: str,
    *,
    local: bool = False,
) -> dict[str, Any]:
    """Send command to a unit.

    Args:
        session: HTTP client session.
        url: Base address of the Melview API.
        unit_id: Target unit identifier.
        command: Composite command string.
        local: Ask for a code to replay the command on the local network.

    Returns:
        Raw state of the unit after the command ("lc" holds the local code).

    Raises:
        MelviewApiAuthError: If authentication fails.
        MelviewApiClientError: If API request fails.

    """
    payload: dict[str, Any] = {
        "unitid": unit_id,
        "v": COMMAND_API_VERSION,
        "commands": command,
    }
    if local:
        payload["lc"] = 1

    _LOGGER.debug("Sending command to unit %s: %s", unit_id, command)
    response = await session.post(f"{url}/{ENDPOINT_COMMAND}", json=payload)
    data = validate_response(response)
    _LOGGER.debug("Command result for unit %s: %s", unit_id, data)
    return data


async def async_send_local_command(
    session: httpx.AsyncClient,
    address: str,
    code: str,
) -> None:
    """Send a command code directly to a unit on the local network.

    Args:
        session: HTTP client session.
        address: Local address of the unit.
        code: Local command code returned by async_send_command.

    Raises:
        MelviewApiClientError: If the unit rejects the request.
        httpx.RequestError: If the unit can't be reached.

    """
    url = f"http://{address}/{LOCAL_COMMAND_PATH}"
    content = LOCAL_COMMAND_TEMPLATE.format(code=code)

    _LOGGER.debug("Sending local command to %s", address)
    response = await session.post(
        url,
        content=content,
        headers={"content-type": "application/xml"},
    )
    _validate_http_status(response)
