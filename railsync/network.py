"""
Group synchronization of carts to remote viewers

The head cart of a train decides once per tick whether the whole train is
sent as absolute or relative updates, so that the carts of a train always
update together. Velocity packets are only used to drive the client-side
rolling sound and are limited to viewers within the sound radius.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Set

import numpy as np

from railsync.geometry import wrap_angle
from railsync.params import NetworkParams
from railsync.state import Location
from railsync.transport import MetadataPacket, PacketTransport, PositionPacket, VelocityPacket, Viewer

if TYPE_CHECKING:
    from railsync.member import MinecartMember

logger = logging.getLogger(__name__)

ROTATION_K = 0.55
ZERO_VELOCITY = (0.0, 0.0, 0.0)


class SyncResult(Enum):
    """Outcome of one cart's synchronization step"""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"
    IDLE = "idle"
    SKIPPED = "skipped"
    DETACHED = "detached"
    BINDING_INVALID = "binding_invalid"
    FAULT = "fault"


def get_angle_k_factor(angle1: float, angle2: float, k: float = ROTATION_K) -> float:
    """
    Rotation correction towards angle1 from angle2

    Args:
        angle1: Live angle (degrees)
        angle2: Last synchronized angle (degrees)
        k: Proportional factor

    Returns:
        k times the shortest difference, difference taken in (-180, 180]
    """
    return k * wrap_angle(angle1 - angle2)


def audio_velocity(raw: Sequence[float], sound_enabled: bool, max_speed: float) -> np.ndarray:
    """Velocity as seen by the audio system: clamped, or zero when sound is off"""
    if not sound_enabled:
        return np.zeros(3)
    return np.clip(np.asarray(raw, dtype=float), -max_speed, max_speed)


class SyncController:
    """Live and synchronized state of one cart, and the viewers it is sent to"""

    def __init__(
        self,
        entity: "MinecartMember",
        transport: PacketTransport,
        params: Optional[NetworkParams] = None,
    ) -> None:
        """
        Bind a controller to a cart

        Args:
            entity: Cart to synchronize, its network binding is set to this controller
            transport: Packet transport used for every viewer
            params: Synchronization thresholds
        """
        self.entity = entity
        self.transport = transport
        self.params = params if params is not None else NetworkParams()
        self.loc_synched = self.loc_live
        self.vel_synched = np.zeros(3)
        self.ticks = 0
        self.ticks_since_absolute = 0
        self.viewers: Set[Viewer] = set()
        self.velocity_viewers: Set[Viewer] = set()
        self.metadata: Dict[str, Any] = {}
        self.metadata_changed = False
        self.passengers: List[str] = []
        self.passengers_changed = False
        entity.network = self

    @property
    def loc_live(self) -> Location:
        state = self.entity.state
        return Location(
            float(state.position[0]), float(state.position[1]), float(state.position[2]), state.yaw, state.pitch
        )

    @property
    def vel_live(self) -> np.ndarray:
        return audio_velocity(self.entity.velocity, self.is_sound_enabled(), self.entity.max_speed)

    def is_sound_enabled(self) -> bool:
        member = self.entity
        return not member.unloaded and member.group is not None and member.group.properties.sound_enabled

    def on_tick(self) -> None:
        self.ticks += 1
        self.ticks_since_absolute += 1

    def is_update_tick(self) -> bool:
        return self.ticks % self.params.update_interval == 0

    def is_position_changed(self, threshold: float) -> bool:
        delta = np.abs(self.loc_live.position - self.loc_synched.position)
        return bool(np.any(delta > threshold))

    def is_rotation_changed(self, threshold: float) -> bool:
        live = self.loc_live
        return (
            abs(wrap_angle(live.yaw - self.loc_synched.yaw)) > threshold
            or abs(wrap_angle(live.pitch - self.loc_synched.pitch)) > threshold
        )

    def set_metadata(self, key: str, value: Any) -> None:
        if self.metadata.get(key) != value:
            self.metadata[key] = value
            self.metadata_changed = True

    def set_passengers(self, passengers: Sequence[str]) -> None:
        if list(passengers) != self.passengers:
            self.passengers = list(passengers)
            self.passengers_changed = True

    def on_sync(self) -> SyncResult:
        """
        Synchronization step of this cart for the current tick

        Only the head of a loaded train does any work, for the entire train.
        Unloaded carts synchronize just themselves. Faults are logged and
        reported as SyncResult.FAULT, never raised.
        """
        member = self.entity
        try:
            if member.dead:
                return SyncResult.SKIPPED
            if member.unloaded:
                self.sync_individual()
                return SyncResult.DETACHED
            if member.index != 0:
                return SyncResult.SKIPPED
            group = member.group
            group.syncing = True
            try:
                return self._sync_group(group)
            finally:
                group.syncing = False
        except Exception:
            logger.exception("Failed to synchronize network controller of cart %d", member.entity_id)
            return SyncResult.FAULT

    def _sync_group(self, group) -> SyncResult:
        controllers: List[SyncController] = []
        for member in group:
            controller = member.network
            if not isinstance(controller, SyncController):
                # Repaired outside of the tick
                group.invalidate_network()
                return SyncResult.BINDING_INVALID
            controllers.append(controller)

        if self.ticks_since_absolute > self.params.absolute_update_interval:
            for controller in controllers:
                controller.sync_self(controller.entity, True, True, True)
            return SyncResult.ABSOLUTE

        needs_sync = self.is_update_tick() or any(
            controller.entity.position_changed or controller.metadata_changed or controller.passengers_changed
            for controller in controllers
        )
        if not needs_sync:
            return SyncResult.IDLE

        moved = False
        rotated = False
        for controller in controllers:
            moved |= controller.is_position_changed(self.params.min_relative_pos_change)
            rotated |= controller.is_rotation_changed(self.params.min_relative_rot_change)

        # Every cart uses the train-wide flags so the carts stay in line
        for controller in controllers:
            controller.sync_self(controller.entity, moved, rotated, False)
        return SyncResult.RELATIVE

    def sync_individual(self) -> None:
        """Synchronize only this cart, used while it is detached from the simulation"""
        if self.ticks_since_absolute > self.params.absolute_update_interval:
            self.sync_self(self.entity, True, True, True)
            return
        moved = self.is_position_changed(self.params.min_relative_pos_change)
        rotated = self.is_rotation_changed(self.params.min_relative_rot_change)
        if moved or rotated or self.is_update_tick() or self.metadata_changed or self.passengers_changed:
            self.sync_self(self.entity, moved, rotated, False)

    def sync_self(self, member: "MinecartMember", moved: bool, rotated: bool, absolute: bool) -> None:
        """
        Send this cart's state to its viewers

        Args:
            member: Cart being synchronized
            moved: Send the position
            rotated: Send the rotation
            absolute: Send everything as a full update
        """
        live = self.loc_live
        rot_yaw = live.yaw
        rot_pitch = live.pitch
        if rotated and not member.derailed:
            # Keeps the client side rotation animation from glitching
            rot_yaw += get_angle_k_factor(live.yaw, self.loc_synched.yaw, self.params.rotation_k)
            rot_pitch += get_angle_k_factor(live.pitch, self.loc_synched.pitch, self.params.rotation_k)
        member.position_changed = False

        if absolute:
            self.sync_location_absolute(live.x, live.y, live.z, rot_yaw, rot_pitch)
        else:
            self.sync_location(moved, rotated, live.x, live.y, live.z, rot_yaw, rot_pitch)

        # Clients play no rolling sound for vertical motion, so the whole
        # speed is put on the x axis
        if member.derailed:
            curr_velocity = np.zeros(3)
        else:
            curr_velocity = np.array([float(np.linalg.norm(self.vel_live)), 0.0, 0.0])
        min_velocity = self.params.min_relative_velocity
        velocity_changed = float(np.sum((self.vel_synched - curr_velocity) ** 2)) > min_velocity * min_velocity or (
            float(np.dot(self.vel_synched, self.vel_synched)) > 0.0 and float(np.dot(curr_velocity, curr_velocity)) == 0.0
        )

        if absolute or member.velocity_changed or velocity_changed:
            member.velocity_changed = False
            self.vel_synched = curr_velocity
            packet = VelocityPacket(member.entity_id, tuple(float(v) for v in curr_velocity))
            for viewer in list(self.velocity_viewers):
                self.transport.send_velocity_update(viewer, packet)

        if self.is_sound_enabled():
            for viewer in list(self.viewers):
                self._update_velocity(viewer)

        self.sync_metadata()
        self.sync_passengers()

    def sync_location_absolute(self, x: float, y: float, z: float, yaw: float, pitch: float) -> None:
        self.loc_synched = Location(x, y, z, yaw, pitch)
        self.ticks_since_absolute = 0
        packet = PositionPacket(self.entity.entity_id, True, (x, y, z), yaw, pitch)
        for viewer in list(self.viewers):
            self.transport.send_position_update(viewer, packet)

    def sync_location(
        self, moved: bool, rotated: bool, x: float, y: float, z: float, yaw: float, pitch: float
    ) -> None:
        """Relative update; moves too large for a relative packet are sent as absolute"""
        if not moved and not rotated:
            return
        delta = (0.0, 0.0, 0.0)
        if moved:
            synched = self.loc_synched
            delta = (x - synched.x, y - synched.y, z - synched.z)
            if max(abs(d) for d in delta) > self.params.max_relative_delta:
                self.sync_location_absolute(x, y, z, yaw, pitch)
                return
            self.loc_synched = Location(x, y, z, synched.yaw, synched.pitch)
        if rotated:
            self.loc_synched = Location(self.loc_synched.x, self.loc_synched.y, self.loc_synched.z, yaw, pitch)

        packet = PositionPacket(self.entity.entity_id, False, delta, yaw, pitch, moved, rotated)
        for viewer in list(self.viewers):
            self.transport.send_position_update(viewer, packet)

    def sync_metadata(self) -> None:
        if not self.metadata_changed:
            return
        self.metadata_changed = False
        packet = MetadataPacket(self.entity.entity_id, dict(self.metadata))
        for viewer in list(self.viewers):
            self.transport.send_metadata(viewer, packet)

    def sync_passengers(self) -> None:
        if not self.passengers_changed:
            return
        self.passengers_changed = False
        packet = MetadataPacket(self.entity.entity_id, {"passengers": list(self.passengers)})
        for viewer in list(self.viewers):
            self.transport.send_metadata(viewer, packet)

    def _update_velocity(self, viewer: Viewer) -> None:
        in_range = (
            self.is_sound_enabled()
            and viewer.distance_squared(self.entity.position) <= self.params.velocity_sound_radius_squared
        )
        if in_range == (viewer in self.velocity_viewers):
            return
        if in_range:
            self.velocity_viewers.add(viewer)
            velocity = tuple(float(v) for v in self.vel_synched)
        else:
            # Without the zero the client keeps playing the last sound level
            self.velocity_viewers.discard(viewer)
            velocity = ZERO_VELOCITY
        self.transport.send_velocity_update(viewer, VelocityPacket(self.entity.entity_id, velocity))

    def make_visible(self, viewer: Viewer) -> None:
        """Start sending this cart to a viewer"""
        self.viewers.add(viewer)
        synched = self.loc_synched
        self.transport.send_position_update(
            viewer,
            PositionPacket(self.entity.entity_id, True, (synched.x, synched.y, synched.z), synched.yaw, synched.pitch),
        )
        if self.metadata:
            self.transport.send_metadata(viewer, MetadataPacket(self.entity.entity_id, dict(self.metadata)))
        self.velocity_viewers.add(viewer)
        self._update_velocity(viewer)

    def make_hidden(self, viewer: Viewer) -> None:
        """Stop sending this cart to a viewer and silence its rolling sound"""
        self.viewers.discard(viewer)
        self.velocity_viewers.discard(viewer)
        self.transport.send_velocity_update(viewer, VelocityPacket(self.entity.entity_id, ZERO_VELOCITY))

    on_viewer_added = make_visible
    on_viewer_removed = make_hidden
