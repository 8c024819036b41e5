"""
Main train simulator class
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from railsync.geometry import BlockFace, IntVector3
from railsync.group import MinecartGroup
from railsync.member import MinecartMember
from railsync.network import SyncController, SyncResult
from railsync.params import NetworkParams, PhysicsParams, TrainProperties
from railsync.rails import RailTypeResolver
from railsync.transport import RecordingTransport, Viewer
from railsync.world import World

logger = logging.getLogger(__name__)


class TrainSimulator:
    """Moves trains over a world and synchronizes them to viewers, one tick at a time"""

    def __init__(
        self,
        world: World,
        transport: Optional[RecordingTransport] = None,
        physics: Optional[PhysicsParams] = None,
        network: Optional[NetworkParams] = None,
    ) -> None:
        """
        Initialize simulator

        Args:
            world: Block lookup holding the rails
            transport: Packet transport, a recording one when omitted
            physics: Physics constants
            network: Synchronization thresholds
        """
        self.world = world
        self.transport = transport if transport is not None else RecordingTransport()
        self.physics = physics if physics is not None else PhysicsParams()
        self.network = network if network is not None else NetworkParams()
        self.resolver = RailTypeResolver(world)
        self.groups: List[MinecartGroup] = []
        self.viewers: List[Viewer] = []
        self.tick_count = 0
        self.sync_results: List[Dict[int, SyncResult]] = []

    @property
    def members(self) -> List[MinecartMember]:
        return [member for group in self.groups for member in group]

    def bind(self, member: MinecartMember) -> SyncController:
        """Create the network binding of a cart"""
        return SyncController(member, self.transport, self.network)

    def spawn_train(
        self,
        start: IntVector3,
        direction: BlockFace,
        length: int = 1,
        speed: float = 0.0,
        spacing: float = 1.0,
        properties: Optional[TrainProperties] = None,
    ) -> MinecartGroup:
        """
        Place a train on a straight stretch of rails

        Args:
            start: Rail block of the head cart
            direction: Direction of travel, carts trail behind the head
            length: Number of carts
            speed: Initial speed (blocks/tick)
            spacing: Distance between cart centres (blocks)
            properties: Train properties

        Returns:
            The new group
        """
        if length < 1:
            raise ValueError(f"a train needs at least one cart, got {length}")
        members = []
        for i in range(length):
            position = start.center() - direction.unit() * spacing * i
            position[1] = start.y + self.physics.rail_height
            members.append(MinecartMember(position, direction.unit() * speed, direction, self.physics))
        group = MinecartGroup(members, properties)
        for member in members:
            self.bind(member)
        self.groups.append(group)
        logger.info("Spawned %r with %d carts at %s", group.properties.name, length, tuple(start))
        return group

    def add_group(self, group: MinecartGroup) -> MinecartGroup:
        for member in group:
            if not isinstance(member.network, SyncController):
                self.bind(member)
        self.groups.append(group)
        return group

    def remove_group(self, group: MinecartGroup) -> None:
        for member in group:
            if isinstance(member.network, SyncController):
                for viewer in list(member.network.viewers):
                    member.network.make_hidden(viewer)
        self.groups.remove(group)

    def couple(self, front: MinecartGroup, back: MinecartGroup) -> MinecartGroup:
        """Couple back behind front and drop the emptied train"""
        front.couple(back)
        if back in self.groups:
            self.groups.remove(back)
        return front

    def add_viewer(self, name: str, position: Sequence[float]) -> Viewer:
        viewer = Viewer(name, np.asarray(position, dtype=float))
        self.viewers.append(viewer)
        return viewer

    def remove_viewer(self, viewer: Viewer) -> None:
        for member in self.members:
            if isinstance(member.network, SyncController) and viewer in member.network.viewers:
                member.network.make_hidden(viewer)
        self.viewers.remove(viewer)

    def _update_visibility(self, controller: SyncController) -> None:
        view_distance_squared = self.network.view_distance**2
        for viewer in self.viewers:
            visible = viewer.distance_squared(controller.entity.position) <= view_distance_squared
            if visible and viewer not in controller.viewers:
                controller.make_visible(viewer)
            elif not visible and viewer in controller.viewers:
                controller.make_hidden(viewer)

    def tick(self) -> Dict[int, SyncResult]:
        """
        Run one tick: physics, visibility, then synchronization

        Returns:
            Synchronization result per cart id, carts that had nothing to do omitted
        """
        self.tick_count += 1
        self.transport.tick = self.tick_count

        # Trains emptied by coupling outside the simulator
        self.groups = [group for group in self.groups if group.size() > 0]

        for group in self.groups:
            if group.network_invalid:
                group.repair_network(self.bind)

        for group in self.groups:
            group.do_physics(self.resolver, self.tick_count)

        for member in self.members:
            if isinstance(member.network, SyncController):
                member.network.on_tick()
                self._update_visibility(member.network)

        results: Dict[int, SyncResult] = {}
        for group in self.groups:
            head = group.head()
            if not isinstance(head.network, SyncController):
                group.invalidate_network()
                results[head.entity_id] = SyncResult.BINDING_INVALID
                continue
            for member in list(group):
                if isinstance(member.network, SyncController):
                    result = member.network.on_sync()
                    if result is not SyncResult.SKIPPED:
                        results[member.entity_id] = result
        self.sync_results.append(results)
        return results

    def simulate(self, ticks: int = 400) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Run simulation

        Args:
            ticks: Number of ticks to run

        Returns:
            Tuple of (tick_array, state_history, traffic_history, drift_history):
            state_history is [N x carts x 6] (position, velocity),
            traffic_history is [N x 4] packet counts (absolute, relative, velocity, metadata),
            drift_history is [N x carts] distance between live and synchronized position
        """
        members = self.members
        t = np.arange(self.tick_count + 1, self.tick_count + ticks + 1)
        state = np.zeros((ticks, len(members), 6))
        traffic = np.zeros((ticks, len(RecordingTransport.KINDS)), dtype=int)
        drift = np.zeros((ticks, len(members)))

        for i in range(ticks):
            self.tick()
            counts = self.transport.counts(tick=self.tick_count)
            traffic[i] = [counts[kind] for kind in RecordingTransport.KINDS]
            for j, member in enumerate(members):
                state[i, j, :3] = member.position
                state[i, j, 3:] = member.velocity
                if isinstance(member.network, SyncController):
                    drift[i, j] = np.linalg.norm(member.position - member.network.loc_synched.position)

        return t, state, traffic, drift
