"""Tests for capability resolution and temperature clamping."""

from typing import Any

import pytest

from melview_hvac.capabilities import clamp_temperature, resolve_model
from melview_hvac.catalog import (
    CAPABILITY_CATALOG,
    PROPERTY_DESCRIPTORS,
    ActionCategory,
    CapabilityFlag,
    Property,
)
from melview_hvac.exceptions import MelviewUnsupportedError
from melview_hvac.models import TemperatureRange, UnitCapabilities

MODE_HEAT = 1
MODE_COOL = 3


def capabilities_with(**flags: Any) -> UnitCapabilities:
    """Create capabilities holding only the given flags."""
    return UnitCapabilities.from_api({"id": "1", "unitname": "Test", **flags})


class TestUnitCapabilitiesFromApi:
    """Tests for UnitCapabilities.from_api."""

    def test_from_api_reads_identity_and_flags(
        self,
        sample_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that from_api reads id, name, flags and local address."""
        capabilities = UnitCapabilities.from_api(sample_capabilities_response)
        assert capabilities.id == "101"
        assert capabilities.name == "Living Room"
        assert capabilities.model_type == "2"
        assert capabilities.local_address == "192.168.1.50"
        assert capabilities.flags[CapabilityFlag.FAN_STAGE] == 5
        assert capabilities.flags[CapabilityFlag.HAS_AIR_DIR_H] == 2

    def test_from_api_reads_temperature_ranges_by_mode_code(
        self,
        sample_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that from_api keys temperature ranges by mode code."""
        capabilities = UnitCapabilities.from_api(sample_capabilities_response)
        assert capabilities.temperature_ranges["1"] == TemperatureRange(17.0, 28.0)
        assert capabilities.temperature_ranges["3"] == TemperatureRange(19.0, 30.0)

    def test_from_api_keeps_only_known_capabilities(
        self,
        sample_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that from_api drops keys it doesn't know."""
        capabilities = UnitCapabilities.from_api(sample_capabilities_response)
        assert "error" not in capabilities.raw
        assert capabilities.raw["fanstage"] == 5

    def test_from_api_ignores_unreadable_values(self) -> None:
        """Test that from_api skips flags and ranges it can't read."""
        capabilities = capabilities_with(
            fanstage="many",
            hasswing="1",
            max={"1": {"min": 17}, "3": {"min": "19", "max": "30"}},
        )
        assert CapabilityFlag.FAN_STAGE not in capabilities.flags
        assert capabilities.flags[CapabilityFlag.HAS_SWING] == 1
        assert "1" not in capabilities.temperature_ranges
        assert capabilities.temperature_ranges["3"] == TemperatureRange(19.0, 30.0)

    def test_from_api_handles_missing_ranges(self) -> None:
        """Test that from_api accepts capabilities without ranges."""
        capabilities = capabilities_with(max=None)
        assert capabilities.temperature_ranges == {}
        assert capabilities.local_address is None


class TestResolveModel:
    """Tests for resolve_model function."""

    def test_resolve_model_copies_unfiltered_entries(self) -> None:
        """Test that entries without a filter are always part of the model."""
        model = resolve_model(capabilities_with())
        assert dict(model.values(ActionCategory.POWER)) == {"off": 0, "on": 1}
        assert dict(model.values(ActionCategory.MODE)) == {
            "heat": 1,
            "cool": 3,
            "fan": 7,
        }

    def test_resolve_model_adds_entries_with_matching_flags(self) -> None:
        """Test that filtered entries are added when the flag matches."""
        model = resolve_model(capabilities_with(hasautomode=1, hasdrymode=1))
        modes = model.values(ActionCategory.MODE)
        assert modes["auto"] == 8
        assert modes["dry"] == 2

    @pytest.mark.parametrize(
        ("flag", "token"),
        [
            ("hasautomode", "auto"),
            ("hasdrymode", "dry"),
        ],
    )
    def test_resolve_model_omits_entries_without_flag(
        self, flag: str, token: str
    ) -> None:
        """Test that missing or disabled flags omit their entries."""
        assert token not in resolve_model(capabilities_with()).values(
            ActionCategory.MODE
        )
        assert token not in resolve_model(capabilities_with(**{flag: 0})).values(
            ActionCategory.MODE
        )

    def test_resolve_model_fan_stage_three_without_auto_fan(
        self,
        basic_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that fanstage 3 without auto fan gives exactly three speeds."""
        model = resolve_model(UnitCapabilities.from_api(basic_capabilities_response))
        assert dict(model.values(ActionCategory.FAN)) == {"1": 2, "2": 3, "3": 5}

    @pytest.mark.parametrize("stage", [1, 2, 3, 4, 5])
    def test_resolve_model_fan_stage_selects_speed_table(self, stage: int) -> None:
        """Test that the fan stage selects the variant table of speeds."""
        model = resolve_model(capabilities_with(fanstage=stage, hasautofan=1))
        speeds = model.values(ActionCategory.FAN)
        expected = CAPABILITY_CATALOG[ActionCategory.FAN]["speeds"][stage]
        assert set(speeds) == {"auto", *expected}
        assert "speeds" not in speeds
        assert len(speeds) == stage + 1

    def test_resolve_model_unknown_fan_stage_gives_no_speeds(self) -> None:
        """Test that a fan stage without variant table adds no speeds."""
        model = resolve_model(capabilities_with(fanstage=9))
        assert not model.supports(ActionCategory.FAN)

    def test_resolve_model_horizontal_direction_levels(self) -> None:
        """Test that hasairdirh selects the horizontal direction table."""
        basic = resolve_model(capabilities_with(hasairdirh=1))
        full = resolve_model(capabilities_with(hasairdirh=2))
        horizontal = ActionCategory.AIR_DIRECTION_HORIZONTAL
        assert "auto" not in basic.values(horizontal)
        assert basic.values(horizontal)["swing"] == 12
        assert full.values(horizontal)["auto"] == 0
        assert full.values(horizontal)["split"] == 8

    def test_resolve_model_vertical_direction_flags(self) -> None:
        """Test that vertical positions, auto and swing depend on their flags."""
        vertical = ActionCategory.AIR_DIRECTION_VERTICAL
        positions_only = resolve_model(capabilities_with(hasairdir=1))
        assert set(positions_only.values(vertical)) == {"1", "2", "3", "4", "5"}

        everything = resolve_model(
            capabilities_with(hasairdir=1, hasairauto=1, hasswing=1)
        )
        assert everything.values(vertical)["auto"] == 0
        assert everything.values(vertical)["swing"] == 7

    def test_resolve_model_omits_unsupported_categories(self) -> None:
        """Test that categories without entries have no model entry or prefix."""
        model = resolve_model(capabilities_with())
        for category in (
            ActionCategory.FAN,
            ActionCategory.AIR_DIRECTION_VERTICAL,
            ActionCategory.AIR_DIRECTION_HORIZONTAL,
        ):
            assert category not in model.mappings
            assert not model.supports(category)
            with pytest.raises(MelviewUnsupportedError):
                model.prefix(category)

    def test_resolve_model_always_has_temperature_prefix(self) -> None:
        """Test that temperature commands don't depend on capabilities."""
        model = resolve_model(capabilities_with())
        assert model.prefix(ActionCategory.TEMPERATURE) == "TS"
        assert model.prefix(ActionCategory.POWER) == "PW"

    def test_resolve_model_is_deterministic(
        self,
        sample_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that resolving twice gives the same model."""
        capabilities = UnitCapabilities.from_api(sample_capabilities_response)
        assert resolve_model(capabilities) == resolve_model(capabilities)

    def test_resolve_model_mappings_are_read_only(
        self,
        sample_capabilities_response: dict[str, Any],
    ) -> None:
        """Test that the resolved model can't be modified."""
        model = resolve_model(UnitCapabilities.from_api(sample_capabilities_response))
        with pytest.raises(TypeError):
            model.values(ActionCategory.MODE)["turbo"] = 9  # type: ignore[index]


class TestCatalog:
    """Tests for the static catalog tables."""

    def test_catalog_is_read_only(self) -> None:
        """Test that the catalog can't be modified."""
        with pytest.raises(TypeError):
            power = CAPABILITY_CATALOG[ActionCategory.POWER]
            power["standby"] = 2  # type: ignore[index]

    def test_trackable_properties_can_be_encoded(self) -> None:
        """Test that every settable property has a category to encode with."""
        for prop, descriptor in PROPERTY_DESCRIPTORS.items():
            if descriptor.trackable:
                assert descriptor.category is not None, prop

    def test_offset_applies_to_set_and_room_temperature(self) -> None:
        """Test which properties the temperature offset applies to."""
        with_offset = {
            prop
            for prop, descriptor in PROPERTY_DESCRIPTORS.items()
            if descriptor.offset
        }
        assert with_offset == {Property.SET_TEMPERATURE, Property.ROOM_TEMPERATURE}


class TestClampTemperature:
    """Tests for clamp_temperature function."""

    @pytest.fixture
    def capabilities(
        self, sample_capabilities_response: dict[str, Any]
    ) -> UnitCapabilities:
        """Capabilities with cool 19-30 and heat 17-28."""
        return UnitCapabilities.from_api(sample_capabilities_response)

    @pytest.mark.parametrize(
        ("mode", "requested", "expected"),
        [
            (MODE_COOL, 15.0, 19.0),
            (MODE_COOL, 31.5, 30.0),
            (MODE_COOL, 24.5, 24.5),
            (MODE_HEAT, 29.0, 28.0),
            ("1", 16.0, 17.0),
        ],
    )
    def test_clamp_temperature_moves_value_into_range(
        self,
        capabilities: UnitCapabilities,
        mode: Any,
        requested: float,
        expected: float,
    ) -> None:
        """Test that values outside the mode's range are clamped."""
        assert clamp_temperature(capabilities, mode, requested) == expected

    def test_clamp_temperature_passes_through_without_range(
        self, capabilities: UnitCapabilities
    ) -> None:
        """Test that modes without a range accept any value."""
        assert clamp_temperature(capabilities, 7, 45.0) == 45.0
        assert clamp_temperature(capabilities, None, 5.0) == 5.0

    def test_clamp_temperature_is_idempotent_and_monotonic(
        self, capabilities: UnitCapabilities
    ) -> None:
        """Test that clamping twice changes nothing and keeps ordering."""
        values = [value / 2 for value in range(20, 70)]
        clamped = [clamp_temperature(capabilities, MODE_COOL, v) for v in values]
        for value, result in zip(values, clamped, strict=True):
            assert clamp_temperature(capabilities, MODE_COOL, result) == result
            assert 19.0 <= result <= 30.0
            if 19.0 <= value <= 30.0:
                assert result == value
        assert clamped == sorted(clamped)
