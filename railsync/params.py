"""
Physics, network and train parameters
"""

from dataclasses import dataclass


@dataclass
class PhysicsParams:
    """Per-tick physics constants (units are blocks and ticks)"""

    max_speed: float = 0.4  # blocks/tick, default minecart top speed
    flying_friction: float = 0.95  # velocity multiplier per tick while airborne
    rail_friction: float = 0.997  # velocity multiplier per tick on flat/vertical rails
    gravity: float = 0.04  # blocks/tick² while airborne
    slope_gravity: float = 0.0078125  # blocks/tick² pulled down the slope axis
    rail_height: float = 0.0625  # height of the cart above the rail block floor
    slope_transition_offset: float = 0.49  # inset from the slope edge on vertical -> slope transfer
    slope_transition_height: float = 0.01  # height above the slope floor on vertical -> slope transfer

    def __post_init__(self) -> None:
        """Validate the parameter ranges"""
        if self.max_speed <= 0:
            raise ValueError(f"max_speed must be positive, got {self.max_speed}")
        for name in ("flying_friction", "rail_friction"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        if not 0.0 <= self.slope_transition_offset < 0.5:
            raise ValueError("slope_transition_offset must stay inside the slope block")


@dataclass
class NetworkParams:
    """Synchronization thresholds and intervals"""

    rotation_k: float = 0.55  # proportional rotation blend factor
    absolute_update_interval: int = 200  # ticks between forced absolute syncs
    update_interval: int = 3  # cadence of unconditional relative update ticks
    velocity_sound_radius: float = 16.0  # blocks, audio-velocity receiver radius
    view_distance: float = 64.0  # blocks, visibility radius used by the simulator
    min_relative_pos_change: float = 0.03  # blocks
    min_relative_rot_change: float = 1.5  # degrees
    min_relative_velocity: float = 0.02  # blocks/tick
    max_relative_delta: float = 8.0  # blocks, larger moves are sent as absolute teleports
    velocity_sound_radius_squared: float = 0.0  # Will be calculated

    def __post_init__(self) -> None:
        """Calculate derived parameters"""
        if self.absolute_update_interval <= 0:
            raise ValueError("absolute_update_interval must be positive")
        if self.update_interval <= 0:
            raise ValueError("update_interval must be positive")
        if not 0.0 < self.rotation_k <= 1.0:
            raise ValueError(f"rotation_k must be in (0, 1], got {self.rotation_k}")
        self.velocity_sound_radius_squared = self.velocity_sound_radius**2


@dataclass
class TrainProperties:
    """Properties shared by every cart of a train"""

    name: str = "train"
    sound_enabled: bool = True
