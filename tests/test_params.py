"""
Unit tests for the parameter dataclasses.

Tests default values, derived values and range validation.
"""

import pytest

from railsync import NetworkParams, PhysicsParams, TrainProperties


class TestPhysicsParams:
    """Test suite for PhysicsParams dataclass"""

    def test_default_initialization(self) -> None:
        """Test that PhysicsParams initializes with default values"""
        params = PhysicsParams()

        assert params.max_speed == 0.4
        assert params.flying_friction == 0.95
        assert params.slope_transition_offset == 0.49
        assert params.slope_transition_height == 0.01

    def test_custom_initialization(self) -> None:
        """Test that PhysicsParams can be initialized with custom values"""
        params = PhysicsParams(max_speed=1.0, rail_friction=1.0)

        assert params.max_speed == 1.0
        assert params.rail_friction == 1.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_speed": 0.0},
            {"flying_friction": 0.0},
            {"rail_friction": 1.5},
            {"slope_transition_offset": 0.5},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        """Test that out-of-range values raise ValueError"""
        with pytest.raises(ValueError):
            PhysicsParams(**kwargs)


class TestNetworkParams:
    """Test suite for NetworkParams dataclass"""

    def test_default_initialization(self) -> None:
        """Test that NetworkParams initializes with default values"""
        params = NetworkParams()

        assert params.rotation_k == 0.55
        assert params.absolute_update_interval == 200
        assert params.velocity_sound_radius == 16.0

    def test_sound_radius_squared_calculation(self) -> None:
        """Test that the squared sound radius is derived in __post_init__"""
        assert NetworkParams().velocity_sound_radius_squared == 256.0
        assert NetworkParams(velocity_sound_radius=10.0).velocity_sound_radius_squared == 100.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"absolute_update_interval": 0},
            {"update_interval": 0},
            {"rotation_k": 0.0},
            {"rotation_k": 1.5},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        """Test that out-of-range values raise ValueError"""
        with pytest.raises(ValueError):
            NetworkParams(**kwargs)


class TestTrainProperties:
    """Test suite for TrainProperties dataclass"""

    def test_sound_enabled_by_default(self) -> None:
        """Test that trains make sound unless told otherwise"""
        assert TrainProperties().sound_enabled is True
        assert TrainProperties(sound_enabled=False).sound_enabled is False
