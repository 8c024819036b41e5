"""
Kinematic state representation
"""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class KinematicState:
    """Live state of a single cart"""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))  # x, y, z (blocks)
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))  # blocks/tick
    yaw: float = 0.0  # degrees
    pitch: float = 0.0  # degrees

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)
        self.velocity = np.asarray(self.velocity, dtype=float)


@dataclass
class Location:
    """Position plus orientation, as seen by a viewer"""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    def copy(self) -> "Location":
        return Location(self.x, self.y, self.z, self.yaw, self.pitch)
