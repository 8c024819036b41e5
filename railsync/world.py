"""
World / block query collaborator
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol

from railsync.geometry import BlockFace, IntVector3, combine_faces


class BlockKind(Enum):
    """Material of a block, as far as the rail system cares"""

    AIR = "air"
    SOLID = "solid"
    RAILS = "rails"
    VERTICAL_RAILS = "vertical_rails"


@dataclass(frozen=True)
class Block:
    """
    A block at a grid position

    For RAILS the direction follows the rail data convention: straight rails
    point along their axis, sloped rails point towards the ascending end and
    curves point away from the two faces they connect. For VERTICAL_RAILS the
    direction is the face of the wall the rail is attached to.
    """

    position: IntVector3
    kind: BlockKind = BlockKind.AIR
    direction: BlockFace = BlockFace.SELF
    sloped: bool = False

    @property
    def is_curve(self) -> bool:
        return self.kind is BlockKind.RAILS and self.direction.is_sub_cardinal


class World(Protocol):
    """Block storage the rail system queries. Must be deterministic within a tick."""

    def get_block(self, position: IntVector3) -> Block:
        ...

    def is_rail(self, block: Block) -> bool:
        ...

    def get_rail_orientation(self, block: Block) -> BlockFace:
        ...

    def get_block_relative(self, position: IntVector3, face: BlockFace) -> Block:
        ...


class GridWorld:
    """In-memory world: a sparse dictionary of non-air blocks"""

    def __init__(self, blocks: Optional[Iterable[Block]] = None) -> None:
        self._blocks: Dict[IntVector3, Block] = {}
        for block in blocks or ():
            self.set_block(block)

    def __len__(self) -> int:
        return len(self._blocks)

    def set_block(self, block: Block) -> Block:
        if block.kind is BlockKind.AIR:
            self._blocks.pop(block.position, None)
        else:
            self._blocks[block.position] = block
        return block

    def set_rails(self, position: IntVector3, direction: BlockFace, sloped: bool = False) -> Block:
        """Place straight or sloped rails"""
        if direction.is_sub_cardinal and sloped:
            raise ValueError("curved rails cannot be sloped")
        return self.set_block(Block(IntVector3(*position), BlockKind.RAILS, direction, sloped))

    def set_curve(self, position: IntVector3, first: BlockFace, second: BlockFace) -> Block:
        """Place curved rails connecting two orthogonal cardinal faces"""
        direction = combine_faces(first, second).opposite
        return self.set_block(Block(IntVector3(*position), BlockKind.RAILS, direction))

    def set_vertical_rails(self, position: IntVector3, wall: BlockFace) -> Block:
        if wall.is_vertical or wall.is_sub_cardinal or wall is BlockFace.SELF:
            raise ValueError(f"vertical rails must be attached to a cardinal wall, got {wall.name}")
        return self.set_block(Block(IntVector3(*position), BlockKind.VERTICAL_RAILS, wall))

    def get_block(self, position: IntVector3) -> Block:
        position = IntVector3(*position)
        block = self._blocks.get(position)
        if block is None:
            return Block(position)
        return block

    def is_rail(self, block: Block) -> bool:
        return block.kind in (BlockKind.RAILS, BlockKind.VERTICAL_RAILS)

    def get_rail_orientation(self, block: Block) -> BlockFace:
        return block.direction if self.is_rail(block) else BlockFace.SELF

    def get_block_relative(self, position: IntVector3, face: BlockFace) -> Block:
        return self.get_block(IntVector3(*position).relative(face))
