"""Pytest configuration and fixtures for Melview HVAC tests."""

from typing import Any

import pytest

from melview_hvac.capabilities import resolve_model
from melview_hvac.config import MelviewConfig
from melview_hvac.models import MelviewUnit, RawState, UnitCapabilities

TEST_URL = "https://melview.test/api"
UNIT_ID = "101"


def create_unit(
    capabilities: dict[str, Any],
    state: dict[str, Any] | None = None,
    offset: float = 0.0,
) -> MelviewUnit:
    """Create a unit with a resolved model from raw capabilities.

    Args:
        capabilities: Raw unitcapabilities.aspx response.
        state: Optional raw state stored as the current state.
        offset: Temperature offset of the unit.

    Returns:
        A MelviewUnit ready for use without any network access.

    """
    unit_capabilities = UnitCapabilities.from_api(capabilities)
    unit = MelviewUnit(
        index=0,
        capabilities=unit_capabilities,
        model=resolve_model(unit_capabilities),
        temperature_offset=offset,
    )
    if state is not None:
        unit.current_state = RawState(values=dict(state))
    return unit


@pytest.fixture
def sample_capabilities_response() -> dict[str, Any]:
    """Fixture providing capabilities of a unit with every feature.

    Returns:
        A dictionary representing a unitcapabilities.aspx response.

    """
    return {
        "id": UNIT_ID,
        "unitname": "Living Room",
        "modeltype": 2,
        "fanstage": 5,
        "hasairdir": 1,
        "hasswing": 1,
        "hasautomode": 1,
        "hasautofan": 1,
        "hasdrymode": 1,
        "hasairauto": 1,
        "hasairdirh": 2,
        "localip": "192.168.1.50",
        "max": {
            "1": {"min": 17, "max": 28},
            "3": {"min": 19, "max": 30},
            "8": {"min": 19, "max": 28},
        },
        "error": "ok",
    }


@pytest.fixture
def basic_capabilities_response() -> dict[str, Any]:
    """Fixture providing capabilities of a unit without optional features.

    Returns:
        A dictionary representing a unitcapabilities.aspx response.

    """
    return {
        "id": "202",
        "unitname": "Bedroom",
        "fanstage": 3,
        "hasautomode": 0,
        "hasautofan": 0,
        "max": {
            "1": {"min": 17, "max": 28},
            "3": {"min": 19, "max": 30},
        },
        "error": "ok",
    }


@pytest.fixture
def sample_state_response() -> dict[str, Any]:
    """Fixture providing the state of a unit cooling at 29 degrees.

    Returns:
        A dictionary representing a unitcommand.aspx response.

    """
    return {
        "id": UNIT_ID,
        "power": 1,
        "standby": 0,
        "setmode": 3,
        "automode": 0,
        "setfan": 2,
        "settemp": "29",
        "roomtemp": "24.5",
        "outdoortemp": "18",
        "airdir": 0,
        "airdirh": 0,
        "error": "ok",
    }


@pytest.fixture
def sample_login_response() -> dict[str, Any]:
    """Fixture providing a login response for an account with one unit."""
    return {"error": "ok", "userunits": 1}


@pytest.fixture
def sample_unit(
    sample_capabilities_response: dict[str, Any],
    sample_state_response: dict[str, Any],
) -> MelviewUnit:
    """Fixture providing a fully featured unit with a current state."""
    return create_unit(sample_capabilities_response, sample_state_response)


@pytest.fixture
def config(tmp_path: Any) -> MelviewConfig:
    """Fixture providing a client configuration using a temporary directory."""
    return MelviewConfig(
        username="test@example.com",
        password="password123",
        url=TEST_URL,
        tmp_dir=str(tmp_path),
    )


@pytest.fixture
def make_unit() -> Any:
    """Fixture providing the create_unit factory."""
    return create_unit
