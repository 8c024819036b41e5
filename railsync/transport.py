"""
Viewers and the packet transport collaborator
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np


@dataclass(eq=False)
class Viewer:
    """A remote observer. Compared by identity."""

    name: str
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)

    def __repr__(self) -> str:
        return f"Viewer({self.name!r})"

    def move_to(self, position: Sequence[float]) -> None:
        self.position = np.asarray(position, dtype=float)

    def distance_squared(self, position: Sequence[float]) -> float:
        delta = self.position - np.asarray(position, dtype=float)
        return float(np.dot(delta, delta))


@dataclass(frozen=True)
class PositionPacket:
    """
    Position and rotation update

    Absolute packets carry the full position. Relative packets carry the
    position delta when moved is set and the rotation when rotated is set.
    """

    entity_id: int
    absolute: bool
    position: Tuple[float, float, float]
    yaw: float
    pitch: float
    moved: bool = True
    rotated: bool = True


@dataclass(frozen=True)
class VelocityPacket:
    entity_id: int
    velocity: Tuple[float, float, float]


@dataclass(frozen=True)
class MetadataPacket:
    entity_id: int
    data: Dict[str, Any]


Packet = Union[PositionPacket, VelocityPacket, MetadataPacket]


class PacketTransport(Protocol):
    """Fire-and-forget delivery, ordered per viewer"""

    def send_position_update(self, viewer: Viewer, packet: PositionPacket) -> None:
        ...

    def send_velocity_update(self, viewer: Viewer, packet: VelocityPacket) -> None:
        ...

    def send_metadata(self, viewer: Viewer, packet: MetadataPacket) -> None:
        ...


@dataclass(frozen=True)
class SentPacket:
    tick: int
    viewer: Viewer
    packet: Packet

    @property
    def kind(self) -> str:
        if isinstance(self.packet, PositionPacket):
            return "absolute" if self.packet.absolute else "relative"
        if isinstance(self.packet, VelocityPacket):
            return "velocity"
        return "metadata"


class RecordingTransport:
    """
    Transport that keeps the packets it was asked to send

    Packet counts are kept per tick for the whole run. The packet log itself
    only holds the most recent max_packets packets when a limit is given.
    """

    KINDS = ("absolute", "relative", "velocity", "metadata")

    def __init__(self, max_packets: Optional[int] = None) -> None:
        if max_packets is not None and max_packets < 0:
            raise ValueError(f"max_packets must not be negative, got {max_packets}")
        self.tick = 0
        self.max_packets = max_packets
        self._log: Deque[SentPacket] = deque(maxlen=max_packets)
        self._tick_counts: Dict[int, Counter] = {}

    @property
    def sent(self) -> List[SentPacket]:
        """Logged packets, oldest first"""
        return list(self._log)

    def _record(self, viewer: Viewer, packet: Packet) -> None:
        sent = SentPacket(self.tick, viewer, packet)
        self._tick_counts.setdefault(self.tick, Counter())[sent.kind] += 1
        self._log.append(sent)

    def send_position_update(self, viewer: Viewer, packet: PositionPacket) -> None:
        self._record(viewer, packet)

    def send_velocity_update(self, viewer: Viewer, packet: VelocityPacket) -> None:
        self._record(viewer, packet)

    def send_metadata(self, viewer: Viewer, packet: MetadataPacket) -> None:
        self._record(viewer, packet)

    def clear(self) -> None:
        self._log.clear()
        self._tick_counts.clear()

    def packets(
        self,
        viewer: Optional[Viewer] = None,
        kind: Optional[str] = None,
        entity_id: Optional[int] = None,
        tick: Optional[int] = None,
    ) -> List[Packet]:
        """Logged packets, optionally filtered"""
        return [
            sent.packet
            for sent in self._log
            if (viewer is None or sent.viewer is viewer)
            and (kind is None or sent.kind == kind)
            and (entity_id is None or sent.packet.entity_id == entity_id)
            and (tick is None or sent.tick == tick)
        ]

    def counts(self, tick: Optional[int] = None) -> Dict[str, int]:
        """
        Packet count per kind

        Args:
            tick: Only count packets sent during this tick, all ticks when omitted

        Returns:
            Dictionary of kind to count, every kind present
        """
        if tick is None:
            counter = sum(self._tick_counts.values(), Counter())
        else:
            counter = self._tick_counts.get(tick, Counter())
        return {kind: counter.get(kind, 0) for kind in self.KINDS}
