"""
A single cart of a train
"""

import itertools
import logging
import math
from typing import TYPE_CHECKING, Any, Optional, Sequence

import numpy as np

from railsync.geometry import BlockFace, face_between, face_from_vector
from railsync.logic import RailLogic
from railsync.params import PhysicsParams
from railsync.rails import RailTypeResolver, Resolution
from railsync.state import KinematicState
from railsync.tracker import RailTracker

if TYPE_CHECKING:
    from railsync.group import MinecartGroup

logger = logging.getLogger(__name__)

_entity_ids = itertools.count(1)


class MinecartMember:
    """Live kinematic state of one cart, moved by its active rail logic"""

    def __init__(
        self,
        position: Sequence[float],
        velocity: Sequence[float] = (0.0, 0.0, 0.0),
        direction: BlockFace = BlockFace.EAST,
        physics: Optional[PhysicsParams] = None,
        max_speed: Optional[float] = None,
    ) -> None:
        """
        Initialize a cart

        Args:
            position: World position (blocks)
            velocity: Initial velocity (blocks/tick)
            direction: Initial direction of travel
            physics: Physics constants, defaults when omitted
            max_speed: Speed limit, defaults to physics.max_speed
        """
        self.entity_id = next(_entity_ids)
        self.physics = physics if physics is not None else PhysicsParams()
        self.state = KinematicState(np.array(position, dtype=float), np.array(velocity, dtype=float))
        self.max_speed = self.physics.max_speed if max_speed is None else max_speed
        self.direction = direction
        self.direction_from = direction
        self.derailed = True
        self.movement_controlled = False
        self.unloaded = False
        self.dead = False
        self.position_changed = False
        self.velocity_changed = False
        # Set for the tick a cart is handed from vertical rails onto a slope
        self.rail_transferred = False
        self.rail_tracker = RailTracker()
        self.group: Optional["MinecartGroup"] = None
        # Network binding, normally a SyncController
        self.network: Any = None

    def __repr__(self) -> str:
        return f"MinecartMember(id={self.entity_id}, position={self.position.tolist()})"

    @property
    def position(self) -> np.ndarray:
        return self.state.position

    @position.setter
    def position(self, value: Sequence[float]) -> None:
        self.state.position = np.array(value, dtype=float)

    @property
    def velocity(self) -> np.ndarray:
        return self.state.velocity

    @velocity.setter
    def velocity(self, value: Sequence[float]) -> None:
        self.state.velocity = np.array(value, dtype=float)

    @property
    def logic(self) -> RailLogic:
        return self.rail_tracker.logic

    @property
    def index(self) -> int:
        return self.group.index_of(self) if self.group is not None else 0

    def set_velocity(self, velocity: Sequence[float]) -> None:
        """Change the velocity from outside the physics step and mark it dirty"""
        self.velocity = velocity
        self.velocity_changed = True

    def is_moving_horizontally(self) -> bool:
        return self.velocity[0] != 0.0 or self.velocity[2] != 0.0

    def is_moving_vertical_only(self) -> bool:
        return self.velocity[1] != 0.0 and not self.is_moving_horizontally()

    def update_rail(self, resolver: RailTypeResolver, tick: int) -> Resolution:
        """
        Resolve the rail under the cart and switch logic

        On entering a new block the direction of travel is taken from the next
        block the resolver picks.
        """
        resolution = resolver.resolve(self)
        self.rail_tracker.update(resolution.rail_type, resolution.block, resolution.logic, tick)
        if resolution.derailed != self.derailed:
            logger.debug("Cart %d %s", self.entity_id, "derailed" if resolution.derailed else "rerailed")
        self.derailed = resolution.derailed

        if not resolution.derailed and self.rail_tracker.block_changed:
            self.direction_from = self.direction
            next_pos = resolver.get_next_pos(resolution.rail_type, resolution.block, self.direction)
            if next_pos is not None:
                self.direction = face_between(resolution.block, next_pos)
        return resolution

    def pre_move(self) -> None:
        self.logic.on_pre_move(self)

    def integrate(self, forward: Optional[float] = None) -> None:
        """
        Advance the position by one tick

        Args:
            forward: Speed along the rail to use instead of the cart's own,
                used by the group to keep its carts at one speed
        """
        if self.rail_transferred:
            # The hand-over already placed the cart at the slope base
            self.rail_transferred = False
            self.position_changed = True
            self._update_orientation()
            return

        logic = self.logic
        if logic.is_air:
            if not self.movement_controlled:
                self.velocity = self.velocity - np.array([0.0, self.physics.gravity, 0.0])
            face = face_from_vector(self.velocity)
            if face is not BlockFace.SELF:
                self.direction = face
        else:
            speed = logic.forward_velocity(self) if forward is None else forward
            if speed < 0.0:
                self.direction = self.direction.opposite
                speed = -speed
            logic.set_forward_velocity(self, min(speed, self.max_speed))

        old_position = self.position.copy()
        new_position = old_position + self.velocity
        if not logic.is_air:
            new_position = logic.fixed_position(self, new_position, self.rail_tracker.block)
        self.position = new_position
        if not np.array_equal(old_position, new_position):
            self.position_changed = True
        self._update_orientation()

    def _update_orientation(self) -> None:
        vx, vy, vz = (float(v) for v in self.velocity)
        horizontal = math.hypot(vx, vz)
        if horizontal > 0.0:
            self.state.yaw = math.degrees(math.atan2(-vx, vz))
        if horizontal > 0.0 or vy != 0.0:
            self.state.pitch = -math.degrees(math.atan2(vy, horizontal))
