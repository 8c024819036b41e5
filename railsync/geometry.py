"""
Block grid geometry: faces, integer block positions and face helpers
"""

from enum import Enum
from typing import NamedTuple, Sequence, Tuple
import math

import numpy as np

HALF_ROOT_OF_TWO = math.sqrt(2.0) / 2.0


class BlockFace(Enum):
    """Direction on the block grid. x grows east, y grows up, z grows south."""

    NORTH = (0, 0, -1)
    EAST = (1, 0, 0)
    SOUTH = (0, 0, 1)
    WEST = (-1, 0, 0)
    UP = (0, 1, 0)
    DOWN = (0, -1, 0)
    NORTH_EAST = (1, 0, -1)
    NORTH_WEST = (-1, 0, -1)
    SOUTH_EAST = (1, 0, 1)
    SOUTH_WEST = (-1, 0, 1)
    SELF = (0, 0, 0)

    @property
    def mod_x(self) -> int:
        return self.value[0]

    @property
    def mod_y(self) -> int:
        return self.value[1]

    @property
    def mod_z(self) -> int:
        return self.value[2]

    @property
    def opposite(self) -> "BlockFace":
        return BlockFace((-self.mod_x, -self.mod_y, -self.mod_z))

    @property
    def is_sub_cardinal(self) -> bool:
        return self.mod_x != 0 and self.mod_z != 0

    @property
    def is_vertical(self) -> bool:
        return self.mod_y != 0

    def unit(self) -> np.ndarray:
        """Unit vector pointing along this face (zero for SELF)"""
        vec = np.array(self.value, dtype=float)
        length = np.linalg.norm(vec)
        return vec / length if length > 0 else vec


CARDINALS: Tuple[BlockFace, ...] = (BlockFace.NORTH, BlockFace.EAST, BlockFace.SOUTH, BlockFace.WEST)
SUB_CARDINALS: Tuple[BlockFace, ...] = (
    BlockFace.NORTH_EAST,
    BlockFace.SOUTH_EAST,
    BlockFace.SOUTH_WEST,
    BlockFace.NORTH_WEST,
)


class IntVector3(NamedTuple):
    """Integer block coordinates"""

    x: int
    y: int
    z: int

    @classmethod
    def floor(cls, position: Sequence[float]) -> "IntVector3":
        """Block containing a world position"""
        return cls(math.floor(position[0]), math.floor(position[1]), math.floor(position[2]))

    def relative(self, face: BlockFace, distance: int = 1) -> "IntVector3":
        return IntVector3(
            self.x + face.mod_x * distance,
            self.y + face.mod_y * distance,
            self.z + face.mod_z * distance,
        )

    def center(self) -> np.ndarray:
        """World position of the block centre at floor level"""
        return np.array([self.x + 0.5, float(self.y), self.z + 0.5])


def get_faces(face: BlockFace) -> Tuple[BlockFace, BlockFace]:
    """
    Split a face into the two cardinal faces it connects

    Sub-cardinal faces split into their north/south and east/west components.
    Any other face pairs up with its opposite.

    Args:
        face: Face to split

    Returns:
        Tuple of two faces
    """
    if face.is_sub_cardinal:
        return BlockFace((0, 0, face.mod_z)), BlockFace((face.mod_x, 0, 0))
    return face, face.opposite


def combine_faces(first: BlockFace, second: BlockFace) -> BlockFace:
    """Sub-cardinal face made of two orthogonal cardinal faces"""
    combined = (first.mod_x + second.mod_x, 0, first.mod_z + second.mod_z)
    if combined[0] == 0 or combined[2] == 0:
        raise ValueError(f"{first.name} and {second.name} are not orthogonal cardinal faces")
    return BlockFace(combined)


def face_between(start: IntVector3, end: IntVector3) -> BlockFace:
    """
    Travel face from one block to the next

    Horizontal movement wins over vertical movement, so stepping up a slope
    (one up, one forward) yields the forward face.
    """
    dx = int(np.sign(end.x - start.x))
    dz = int(np.sign(end.z - start.z))
    if dx != 0 or dz != 0:
        return BlockFace((dx, 0, dz))
    dy = int(np.sign(end.y - start.y))
    return BlockFace((0, dy, 0))


def face_from_vector(vector: np.ndarray) -> BlockFace:
    """Closest cardinal or vertical face for a velocity vector"""
    x, y, z = (float(v) for v in vector)
    horizontal = math.hypot(x, z)
    if horizontal == 0.0 and y == 0.0:
        return BlockFace.SELF
    if abs(y) > horizontal:
        return BlockFace.UP if y > 0 else BlockFace.DOWN
    if abs(x) >= abs(z):
        return BlockFace.EAST if x > 0 else BlockFace.WEST
    return BlockFace.SOUTH if z > 0 else BlockFace.NORTH


def wrap_angle(angle: float) -> float:
    """Normalize an angle in degrees into (-180, 180]"""
    if not math.isfinite(angle):
        raise ValueError(f"cannot normalize angle {angle}")
    angle = math.fmod(angle, 360.0)
    if angle <= -180.0:
        angle += 360.0
    elif angle > 180.0:
        angle -= 360.0
    return angle
