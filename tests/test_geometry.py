"""
Unit tests for block grid geometry.
"""

import numpy as np
import pytest

from railsync.geometry import (
    BlockFace,
    CARDINALS,
    IntVector3,
    combine_faces,
    face_between,
    face_from_vector,
    get_faces,
    wrap_angle,
)


class TestBlockFace:
    """Test suite for BlockFace helpers"""

    def test_opposite_faces(self) -> None:
        """Test that opposite faces negate the direction"""
        assert BlockFace.NORTH.opposite is BlockFace.SOUTH
        assert BlockFace.UP.opposite is BlockFace.DOWN
        assert BlockFace.NORTH_EAST.opposite is BlockFace.SOUTH_WEST
        assert BlockFace.SELF.opposite is BlockFace.SELF

    def test_sub_cardinal_split(self) -> None:
        """Test that sub-cardinal faces split into their north/south and east/west parts"""
        assert get_faces(BlockFace.NORTH_EAST) == (BlockFace.NORTH, BlockFace.EAST)
        assert get_faces(BlockFace.SOUTH_WEST) == (BlockFace.SOUTH, BlockFace.WEST)

    def test_cardinal_split_pairs_with_opposite(self) -> None:
        """Test that a cardinal face pairs up with its opposite"""
        assert get_faces(BlockFace.SOUTH) == (BlockFace.SOUTH, BlockFace.NORTH)

    def test_combine_faces(self) -> None:
        """Test combining two orthogonal cardinal faces"""
        assert combine_faces(BlockFace.SOUTH, BlockFace.EAST) is BlockFace.SOUTH_EAST
        assert combine_faces(BlockFace.WEST, BlockFace.NORTH) is BlockFace.NORTH_WEST

    def test_combine_parallel_faces_rejected(self) -> None:
        """Test that parallel faces cannot be combined"""
        with pytest.raises(ValueError):
            combine_faces(BlockFace.NORTH, BlockFace.SOUTH)

    def test_unit_vectors_are_normalized(self) -> None:
        """Test that face unit vectors have length one"""
        for face in CARDINALS + (BlockFace.UP, BlockFace.SOUTH_EAST):
            assert abs(np.linalg.norm(face.unit()) - 1.0) < 1e-12


class TestGridHelpers:
    """Test suite for grid position helpers"""

    def test_floor_position(self) -> None:
        """Test that world positions floor to the containing block"""
        assert IntVector3.floor((1.5, -0.2, 3.99)) == IntVector3(1, -1, 3)

    def test_relative(self) -> None:
        """Test stepping to neighbouring blocks"""
        origin = IntVector3(0, 0, 0)
        assert origin.relative(BlockFace.EAST) == IntVector3(1, 0, 0)
        assert origin.relative(BlockFace.UP, 3) == IntVector3(0, 3, 0)

    def test_face_between_prefers_horizontal(self) -> None:
        """Test that a step up a slope yields the forward face"""
        assert face_between(IntVector3(0, 0, 0), IntVector3(1, 1, 0)) is BlockFace.EAST
        assert face_between(IntVector3(0, 0, 0), IntVector3(0, 1, 0)) is BlockFace.UP
        assert face_between(IntVector3(0, 0, 0), IntVector3(0, 0, -1)) is BlockFace.NORTH

    def test_face_from_vector(self) -> None:
        """Test the closest face for a velocity"""
        assert face_from_vector(np.array([0.3, 0.1, 0.0])) is BlockFace.EAST
        assert face_from_vector(np.array([0.0, -0.5, 0.1])) is BlockFace.DOWN
        assert face_from_vector(np.zeros(3)) is BlockFace.SELF


class TestWrapAngle:
    """Test suite for angle normalization"""

    @pytest.mark.parametrize(
        "angle, expected",
        [(190.0, -170.0), (-180.0, 180.0), (180.0, 180.0), (540.0, 180.0), (-359.0, 1.0), (0.0, 0.0)],
    )
    def test_wrap_into_half_open_range(self, angle: float, expected: float) -> None:
        """Test that angles are normalized into (-180, 180]"""
        assert abs(wrap_angle(angle) - expected) < 1e-9

    def test_large_angles(self) -> None:
        """Test that angles many turns away are normalized directly"""
        assert abs(wrap_angle(3600.0 + 190.0) - -170.0) < 1e-9
        assert abs(wrap_angle(-1e9) - 80.0) < 1e-6

    @pytest.mark.parametrize("angle", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_angle_rejected(self, angle: float) -> None:
        """Test that infinite and NaN angles raise instead of looping"""
        with pytest.raises(ValueError):
            wrap_angle(angle)
