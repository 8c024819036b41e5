"""
Rail traversal and train synchronization

This package moves multi-cart trains over a block grid of rails and keeps
every remote viewer's copy of each cart consistent with the simulation,
under a fixed update tick and a bandwidth budget.
"""

import logging

from railsync.geometry import BlockFace, IntVector3
from railsync.group import MinecartGroup
from railsync.logic import AIR, RailLogic, RailLogicKind, rail_logic
from railsync.member import MinecartMember
from railsync.network import SyncController, SyncResult, audio_velocity, get_angle_k_factor
from railsync.params import NetworkParams, PhysicsParams, TrainProperties
from railsync.rails import RailType, RailTypeResolver, RegularRails, VerticalRails
from railsync.scenarios import build_loop_track, build_vertical_lift, run_train_length_analysis
from railsync.simulator import TrainSimulator
from railsync.transport import RecordingTransport, Viewer
from railsync.world import Block, BlockKind, GridWorld

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AIR",
    "Block",
    "BlockFace",
    "BlockKind",
    "GridWorld",
    "IntVector3",
    "MinecartGroup",
    "MinecartMember",
    "NetworkParams",
    "PhysicsParams",
    "RailLogic",
    "RailLogicKind",
    "RailType",
    "RailTypeResolver",
    "RecordingTransport",
    "RegularRails",
    "SyncController",
    "SyncResult",
    "TrainProperties",
    "TrainSimulator",
    "VerticalRails",
    "Viewer",
    "audio_velocity",
    "build_loop_track",
    "build_vertical_lift",
    "get_angle_k_factor",
    "rail_logic",
    "run_train_length_analysis",
]
