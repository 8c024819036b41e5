"""
Rail types and next-block resolution
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np

from railsync.geometry import BlockFace, IntVector3, get_faces
from railsync.logic import AIR, RailLogic, RailLogicKind, rail_logic
from railsync.world import Block, BlockKind, World

if TYPE_CHECKING:
    from railsync.member import MinecartMember

logger = logging.getLogger(__name__)


class RailType(Enum):
    """Kind of rail a cart was resolved onto"""

    NONE = "none"
    REGULAR = "regular"
    VERTICAL = "vertical"


def is_vertical_above(world: World, block: Block, direction: BlockFace) -> bool:
    """Whether a vertical rail attached towards direction sits on top of block"""
    above = world.get_block_relative(block.position, BlockFace.UP)
    return VerticalRails.is_rail(world, above) and world.get_rail_orientation(above) is direction


class RegularRails:
    """
    Straight, curved and sloped rails

    None of these can be used vertically, but a slope can hand a cart over to
    a vertical rail above it and receive one coming off the top of a vertical
    rail.
    """

    rail_type = RailType.REGULAR

    @staticmethod
    def is_rail(world: World, block: Block) -> bool:
        return world.is_rail(block) and block.kind is BlockKind.RAILS

    @staticmethod
    def possible_directions(world: World, block: Block) -> Tuple[BlockFace, ...]:
        """All faces a cart can leave this rail by"""
        if not RegularRails.is_rail(world, block):
            return ()
        direction = world.get_rail_orientation(block)
        if block.sloped and is_vertical_above(world, block, direction):
            return (direction.opposite, BlockFace.UP)
        return get_faces(direction.opposite)

    @staticmethod
    def next_pos(
        world: World,
        current: IntVector3,
        current_direction: BlockFace,
        rail_direction: BlockFace,
        sloped: bool,
    ) -> IntVector3:
        """
        Next block to enter, without asking the rail block itself

        Args:
            world: Block lookup, used for the vertical rail check above slopes
            current: Block the cart is on
            current_direction: Face the cart is moving towards
            rail_direction: Direction of the rail on the current block
            sloped: Whether the rail is sloped

        Returns:
            Position of the next block
        """
        if rail_direction.is_sub_cardinal:
            possible = get_faces(rail_direction.opposite)
            if current_direction in possible:
                return current.relative(current_direction)

            came_from = current_direction.opposite
            if possible[0] is came_from:
                next_dir = possible[1]
            elif possible[1] is came_from:
                next_dir = possible[0]
            elif possible[0] in (BlockFace.SOUTH, BlockFace.EAST):
                # south-east rule
                next_dir = possible[0]
            else:
                next_dir = possible[1]
            return current.relative(next_dir)

        if sloped:
            if rail_direction is current_direction or current_direction is BlockFace.UP:
                above = world.get_block_relative(current, BlockFace.UP)
                if VerticalRails.is_rail(world, above) and (
                    current_direction is BlockFace.UP or world.get_rail_orientation(above) is current_direction
                ):
                    return above.position
                return above.position.relative(rail_direction)
            return current.relative(rail_direction.opposite)

        if rail_direction is current_direction or rail_direction.opposite is current_direction:
            return current.relative(current_direction)
        # south-west rule
        return current.relative(rail_direction)

    def get_next_pos(self, world: World, current: IntVector3, current_direction: BlockFace) -> Optional[IntVector3]:
        block = world.get_block(current)
        if not self.is_rail(world, block):
            return None
        return self.next_pos(world, current, current_direction, world.get_rail_orientation(block), block.sloped)

    def get_logic(self, world: World, block: Block) -> RailLogic:
        if not self.is_rail(world, block):
            return AIR
        direction = world.get_rail_orientation(block)
        if block.sloped:
            if is_vertical_above(world, block, direction):
                return rail_logic(RailLogicKind.VERTICAL_SLOPE_DOWN, direction)
            return rail_logic(RailLogicKind.SLOPED, direction)
        return rail_logic(RailLogicKind.HORIZONTAL, direction)

    def find_rail(self, member: "MinecartMember", world: World, pos: IntVector3) -> Optional[IntVector3]:
        """
        Find the regular rail a cart at pos is on

        A cart climbing off the top of a vertical rail is handed over to a
        slope that ascends in the same direction as the vertical rail faces.
        """
        tracker = member.rail_tracker
        if member.velocity[1] > 0.0 and tracker.rail_type is RailType.VERTICAL:
            last_direction = tracker.logic.direction
            next_pos = pos.relative(last_direction)
            block = world.get_block(next_pos)
            if (
                self.is_rail(world, block)
                and block.sloped
                and world.get_rail_orientation(block) is last_direction
            ):
                self._transfer_from_vertical(member, next_pos, last_direction)
                return next_pos

        block = world.get_block(pos)
        if self.is_rail(world, block):
            return pos
        below = world.get_block_relative(pos, BlockFace.DOWN)
        if self.is_rail(world, below) and below.sloped:
            return below.position
        return None

    @staticmethod
    def _transfer_from_vertical(member: "MinecartMember", slope_pos: IntVector3, direction: BlockFace) -> None:
        physics = member.physics
        position = slope_pos.center() - direction.unit() * physics.slope_transition_offset
        position[1] = slope_pos.y + physics.slope_transition_height
        member.position = position

        # Vertical speed continues horizontally along the slope
        velocity = np.array(member.velocity, dtype=float)
        velocity[0] += direction.mod_x * velocity[1]
        velocity[2] += direction.mod_z * velocity[1]
        velocity[1] = 0.0
        member.velocity = velocity
        member.rail_transferred = True
        logger.debug("Cart %d moved from vertical rails onto slope at %s", member.entity_id, slope_pos)


class VerticalRails:
    """Rails attached to a wall, moving carts straight up or down"""

    rail_type = RailType.VERTICAL

    @staticmethod
    def is_rail(world: World, block: Block) -> bool:
        return world.is_rail(block) and block.kind is BlockKind.VERTICAL_RAILS

    @staticmethod
    def possible_directions(world: World, block: Block) -> Tuple[BlockFace, ...]:
        if not VerticalRails.is_rail(world, block):
            return ()
        return (BlockFace.UP, BlockFace.DOWN)

    def get_next_pos(self, world: World, current: IntVector3, current_direction: BlockFace) -> Optional[IntVector3]:
        if not self.is_rail(world, world.get_block(current)):
            return None
        if current_direction in (BlockFace.UP, BlockFace.DOWN):
            return current.relative(current_direction)
        return None

    def get_logic(self, world: World, block: Block) -> RailLogic:
        if not self.is_rail(world, block):
            return AIR
        return rail_logic(RailLogicKind.VERTICAL, world.get_rail_orientation(block))

    def find_rail(self, member: "MinecartMember", world: World, pos: IntVector3) -> Optional[IntVector3]:
        return pos if self.is_rail(world, world.get_block(pos)) else None


@dataclass(frozen=True)
class Resolution:
    """Rail a cart was resolved onto this tick"""

    rail_type: RailType
    block: Optional[IntVector3]
    logic: RailLogic

    @property
    def derailed(self) -> bool:
        return self.rail_type is RailType.NONE


DERAILED = Resolution(RailType.NONE, None, AIR)


class RailTypeResolver:
    """Resolves the rail and logic a cart is on, and the block it goes to next"""

    def __init__(self, world: World) -> None:
        self.world = world
        self.rail_types = (VerticalRails(), RegularRails())

    def get_rail_type(self, rail_type: RailType):
        for candidate in self.rail_types:
            if candidate.rail_type is rail_type:
                return candidate
        return None

    def resolve(self, member: "MinecartMember") -> Resolution:
        """
        Find the rail at the cart's position

        Args:
            member: Cart to resolve

        Returns:
            Resolution, DERAILED when no rail type claims the position
        """
        pos = IntVector3.floor(member.position)
        for candidate in self.rail_types:
            found = candidate.find_rail(member, self.world, pos)
            if found is not None:
                block = self.world.get_block(found)
                return Resolution(candidate.rail_type, found, candidate.get_logic(self.world, block))
        return DERAILED

    def get_next_pos(self, rail_type: RailType, current: IntVector3, current_direction: BlockFace) -> Optional[IntVector3]:
        """Next block to enter, or None when no rule applies"""
        candidate = self.get_rail_type(rail_type)
        if candidate is None:
            return None
        return candidate.get_next_pos(self.world, current, current_direction)
