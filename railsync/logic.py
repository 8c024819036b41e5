"""
Rail logic: per-geometry velocity and position rules

Each variant is an immutable value shared by every cart on that geometry.
All mutable state lives in the cart.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING

import numpy as np

from railsync.geometry import HALF_ROOT_OF_TWO, BlockFace, IntVector3, get_faces

if TYPE_CHECKING:
    from railsync.member import MinecartMember


class RailLogicKind(Enum):
    """Rail geometry a cart can be moving on"""

    HORIZONTAL = "horizontal"
    SLOPED = "sloped"
    VERTICAL_SLOPE_DOWN = "vertical_slope_down"
    VERTICAL = "vertical"
    AIR = "air"


_SLOPED_KINDS = frozenset({RailLogicKind.SLOPED, RailLogicKind.VERTICAL_SLOPE_DOWN})


@dataclass(frozen=True)
class RailLogic:
    """Velocity and position rules for one rail geometry and direction"""

    kind: RailLogicKind
    direction: BlockFace = BlockFace.SELF

    @property
    def is_sloped(self) -> bool:
        return self.kind in _SLOPED_KINDS

    @property
    def is_air(self) -> bool:
        return self.kind is RailLogicKind.AIR

    def has_vertical_movement(self) -> bool:
        return self.kind is not RailLogicKind.HORIZONTAL

    def travel_axis(self, member: "MinecartMember") -> np.ndarray:
        """
        Unit vector of the direction of travel along this rail

        Args:
            member: Cart moving on the rail

        Returns:
            Unit vector (zero vector for AIR)
        """
        if self.kind is RailLogicKind.HORIZONTAL:
            face = member.direction
            if face.is_vertical or face is BlockFace.SELF or face.is_sub_cardinal:
                face = get_faces(self.direction.opposite)[1] if self.direction.is_sub_cardinal else self.direction
            return face.unit()
        if self.is_sloped:
            sign = 1.0 if member.direction in (self.direction, BlockFace.UP) else -1.0
            return np.array([self.direction.mod_x * sign, sign, self.direction.mod_z * sign]) * HALF_ROOT_OF_TWO
        if self.kind is RailLogicKind.VERTICAL:
            return np.array([0.0, -1.0 if member.direction is BlockFace.DOWN else 1.0, 0.0])
        return np.zeros(3)

    def forward_velocity(self, member: "MinecartMember") -> float:
        """Speed along the direction of travel (negative when moving backwards)"""
        vel = member.velocity
        if self.is_air:
            if vel[0] == 0.0 and vel[2] == 0.0:
                return float(vel[1] * member.direction.mod_y)
            return float(np.linalg.norm(vel))
        speed = float(np.linalg.norm(vel))
        return -speed if float(np.dot(vel, self.travel_axis(member))) < 0.0 else speed

    def set_forward_velocity(self, member: "MinecartMember", force: float) -> None:
        """
        Rebuild the velocity vector for a forward speed

        Airborne carts only have their speed rescaled so that free fall keeps
        deciding the trajectory, unless something else controls the movement.
        """
        if not self.is_air:
            member.velocity = self.travel_axis(member) * force
        elif member.movement_controlled:
            member.velocity = member.direction.unit() * force
        else:
            length = float(np.linalg.norm(member.velocity))
            if length > 0.0:
                member.velocity = member.velocity * (force / length)

    def fixed_position(self, member: "MinecartMember", position: np.ndarray, rail_pos: IntVector3) -> np.ndarray:
        """
        Snap a position onto this rail

        Args:
            member: Cart being positioned
            position: Integrated world position
            rail_pos: Block holding the rail

        Returns:
            Corrected world position
        """
        fixed = np.array(position, dtype=float)
        if self.is_air:
            return fixed

        center = rail_pos.center()
        height = member.physics.rail_height
        if self.kind is RailLogicKind.VERTICAL:
            fixed[0] = center[0]
            fixed[2] = center[2]
            return fixed

        axis = self.travel_axis(member) if self.direction.is_sub_cardinal else self.direction.unit()
        if abs(axis[0]) > abs(axis[2]):
            fixed[2] = center[2]
        else:
            fixed[0] = center[0]

        if self.is_sloped:
            local = (fixed[0] - center[0]) * self.direction.mod_x + (fixed[2] - center[2]) * self.direction.mod_z
            local = min(max(local, -0.5), 0.5)
            fixed[1] = rail_pos.y + 0.5 + local + height
        else:
            fixed[1] = rail_pos.y + height
        return fixed

    def on_pre_move(self, member: "MinecartMember") -> None:
        """Per-tick velocity adjustment before the position is integrated"""
        if self.is_air:
            _air_pre_move(member)
        elif member.movement_controlled or member.rail_transferred:
            return
        elif self.is_sloped:
            up_axis = np.array([self.direction.mod_x, 1.0, self.direction.mod_z]) * HALF_ROOT_OF_TWO
            member.velocity = member.velocity - up_axis * member.physics.slope_gravity
        else:
            member.velocity = member.velocity * member.physics.rail_friction


def _air_pre_move(member: "MinecartMember") -> None:
    # Leaving a slope launches the cart along the slope at 45 degrees
    last_logic = member.rail_tracker.last_logic
    if last_logic is not None and last_logic.is_sloped:
        slope_dir = last_logic.direction
        vel_len = float(np.linalg.norm(member.velocity))
        dx = slope_dir.mod_x * HALF_ROOT_OF_TWO * vel_len
        dz = slope_dir.mod_z * HALF_ROOT_OF_TWO * vel_len
        dy = HALF_ROOT_OF_TWO * vel_len
        if slope_dir is member.direction_from:
            member.velocity = np.array([dx, dy, dz])
        else:
            member.velocity = np.array([-dx, -dy, -dz])

    # Followers stacked on a vertically moving head keep their speed
    if member.is_moving_vertical_only() and member.velocity[1] > 0.0:
        head = member.group.head() if member.group is not None else member
        if member is not head and head.is_moving_vertical_only():
            return

    if not member.movement_controlled:
        member.velocity = member.velocity * member.physics.flying_friction


@lru_cache(maxsize=None)
def rail_logic(kind: RailLogicKind, direction: BlockFace = BlockFace.SELF) -> RailLogic:
    """Shared logic instance for a geometry and direction"""
    return RailLogic(kind, direction)


AIR = rail_logic(RailLogicKind.AIR)
