"""
Rail tracker: remembers which rail a cart used, to detect transitions
"""

import logging
from typing import Optional

from railsync.geometry import IntVector3
from railsync.logic import AIR, RailLogic
from railsync.rails import RailType

logger = logging.getLogger(__name__)


class RailTracker:
    """Rail type, block and logic a cart is on, plus the previous ones"""

    def __init__(self) -> None:
        self.rail_type: RailType = RailType.NONE
        self.block: Optional[IntVector3] = None
        self.logic: RailLogic = AIR
        self.last_rail_type: RailType = RailType.NONE
        self.last_block: Optional[IntVector3] = None
        self.last_logic: Optional[RailLogic] = None
        self._updated_tick: Optional[int] = None

    @property
    def block_changed(self) -> bool:
        return self.block != self.last_block

    def update(self, rail_type: RailType, block: Optional[IntVector3], logic: RailLogic, tick: int) -> None:
        """
        Apply a newly resolved rail

        Args:
            rail_type: Rail type found this tick
            block: Rail block, None when derailed
            logic: Logic applicable on that block
            tick: Current tick, updates are allowed once per tick
        """
        if self._updated_tick == tick:
            raise RuntimeError(f"rail tracker already updated during tick {tick}")
        self._updated_tick = tick

        if logic != self.logic:
            logger.debug("Rail logic %s -> %s at %s", self.logic.kind.name, logic.kind.name, block)
        self.last_rail_type = self.rail_type
        self.last_block = self.block
        self.last_logic = self.logic
        self.rail_type = rail_type
        self.block = block
        self.logic = logic
