"""
A train: an ordered group of carts
"""

import logging
from typing import Callable, Iterator, List, Optional, Sequence

import numpy as np

from railsync.member import MinecartMember
from railsync.network import SyncController
from railsync.params import TrainProperties
from railsync.rails import RailTypeResolver

logger = logging.getLogger(__name__)


class MinecartGroup:
    """Carts in physical order, head first. The head drives group synchronization."""

    def __init__(self, members: Sequence[MinecartMember], properties: Optional[TrainProperties] = None) -> None:
        if not members:
            raise ValueError("a group needs at least one member")
        self.properties = properties if properties is not None else TrainProperties()
        self.network_invalid = False
        self.syncing = False
        self._members: List[MinecartMember] = []
        for member in members:
            self._attach(member)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[MinecartMember]:
        return iter(self._members)

    def __repr__(self) -> str:
        return f"MinecartGroup({self.properties.name!r}, size={self.size()})"

    def size(self) -> int:
        return len(self._members)

    def get(self, index: int) -> MinecartMember:
        return self._members[index]

    def head(self) -> MinecartMember:
        return self._members[0]

    def index_of(self, member: MinecartMember) -> int:
        return self._members.index(member)

    def _attach(self, member: MinecartMember) -> None:
        member.group = self
        self._members.append(member)

    def _check_not_syncing(self) -> None:
        if self.syncing:
            raise RuntimeError(f"cannot restructure {self!r} while it is synchronizing")

    def couple(self, other: "MinecartGroup") -> None:
        """Append the carts of another train behind this one, leaving the other train empty"""
        self._check_not_syncing()
        other._check_not_syncing()
        for member in other._members:
            self._attach(member)
        other._members = []
        if other.network_invalid:
            self.network_invalid = True
        logger.info("Coupled %r onto %r", other.properties.name, self.properties.name)

    def split(self, index: int) -> "MinecartGroup":
        """
        Split the train before a cart

        Args:
            index: First cart of the new train, must leave both trains non-empty

        Returns:
            New group holding the carts from index onwards
        """
        self._check_not_syncing()
        if not 0 < index < self.size():
            raise ValueError(f"cannot split a group of {self.size()} at {index}")
        tail = self._members[index:]
        self._members = self._members[:index]
        properties = TrainProperties(name=f"{self.properties.name}-{index}", sound_enabled=self.properties.sound_enabled)
        logger.info("Split %r at cart %d", self.properties.name, index)
        return MinecartGroup(tail, properties)

    def invalidate_network(self) -> None:
        if not self.network_invalid:
            logger.warning("Network bindings of %r are invalid, repair scheduled", self.properties.name)
        self.network_invalid = True

    def repair_network(self, bind: Callable[[MinecartMember], object]) -> int:
        """
        Rebind carts whose network binding is of the wrong kind

        Args:
            bind: Creates and assigns a fresh binding for a cart

        Returns:
            Number of carts rebound
        """
        repaired = 0
        for member in self._members:
            if not isinstance(member.network, SyncController):
                bind(member)
                repaired += 1
        self.network_invalid = False
        logger.info("Repaired %d network bindings of %r", repaired, self.properties.name)
        return repaired

    def do_physics(self, resolver: RailTypeResolver, tick: int) -> None:
        """
        Run one physics tick for every cart

        Rails are resolved and pre-move logic applied for all carts before any
        cart moves. Carts on rails then move at the train's mean rail speed.
        """
        for member in self._members:
            member.update_rail(resolver, tick)
        for member in self._members:
            member.pre_move()

        speeds = [
            member.logic.forward_velocity(member)
            for member in self._members
            if not member.derailed and not member.movement_controlled
        ]
        shared = float(np.mean(speeds)) if speeds else None
        for member in self._members:
            if member.derailed or member.movement_controlled:
                member.integrate()
            else:
                member.integrate(shared)
