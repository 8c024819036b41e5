"""
Track builders and train length analysis
"""

from typing import Any, Dict, List

from railsync.analysis import SyncTrafficAnalyzer
from railsync.geometry import BlockFace, IntVector3
from railsync.params import NetworkParams, PhysicsParams, TrainProperties
from railsync.simulator import TrainSimulator
from railsync.transport import RecordingTransport
from railsync.world import GridWorld

# Packets kept per run for inspection, counts cover the whole run
PACKET_LOG_SIZE = 5000


def build_loop_track(world: GridWorld, origin: IntVector3, width: int, depth: int) -> List[IntVector3]:
    """
    Lay a flat rectangular loop with curves in the corners

    Args:
        world: World to place the rails in
        origin: North-west corner of the loop
        width: Extent along x (blocks between corners)
        depth: Extent along z (blocks between corners)

    Returns:
        Positions of all rail blocks placed
    """
    if width < 2 or depth < 2:
        raise ValueError("a loop needs at least 2 blocks between its corners")
    x0, y, z0 = origin
    x1 = x0 + width
    z1 = z0 + depth
    placed = []
    for x in range(x0 + 1, x1):
        placed.append(world.set_rails(IntVector3(x, y, z0), BlockFace.EAST).position)
        placed.append(world.set_rails(IntVector3(x, y, z1), BlockFace.EAST).position)
    for z in range(z0 + 1, z1):
        placed.append(world.set_rails(IntVector3(x0, y, z), BlockFace.SOUTH).position)
        placed.append(world.set_rails(IntVector3(x1, y, z), BlockFace.SOUTH).position)
    placed.append(world.set_curve(IntVector3(x0, y, z0), BlockFace.EAST, BlockFace.SOUTH).position)
    placed.append(world.set_curve(IntVector3(x1, y, z0), BlockFace.WEST, BlockFace.SOUTH).position)
    placed.append(world.set_curve(IntVector3(x1, y, z1), BlockFace.WEST, BlockFace.NORTH).position)
    placed.append(world.set_curve(IntVector3(x0, y, z1), BlockFace.EAST, BlockFace.NORTH).position)
    return placed


def build_vertical_lift(world: GridWorld, base: IntVector3, wall: BlockFace, height: int) -> IntVector3:
    """
    Lay a vertical rail column that tops out onto a slope and a flat run

    Args:
        world: World to place the rails in
        base: Lowest vertical rail block
        wall: Face the vertical rails are attached to, also the direction the slope climbs
        height: Number of vertical rail blocks

    Returns:
        Position of the slope at the top
    """
    for i in range(height):
        world.set_vertical_rails(base.relative(BlockFace.UP, i), wall)
    top = base.relative(BlockFace.UP, height)
    slope = top.relative(wall)
    world.set_rails(slope, wall, sloped=True)
    world.set_rails(slope.relative(BlockFace.UP).relative(wall), wall)
    world.set_rails(slope.relative(BlockFace.UP).relative(wall, 2), wall)
    return slope


def run_train_length_analysis(
    lengths: List[int],
    ticks: int = 400,
    viewer_distance: float = 8.0,
    speed: float = 0.3,
    loop_width: int = 24,
    loop_depth: int = 12,
) -> Dict[int, Dict[str, Any]]:
    """
    Run a train of each length around a loop and analyze its synchronization traffic

    Args:
        lengths: Train lengths (carts) to simulate
        ticks: Number of ticks per run
        viewer_distance: Distance of the observer from the loop's north edge (blocks)
        speed: Initial train speed (blocks/tick)
        loop_width: Loop extent along x
        loop_depth: Loop extent along z

    Returns:
        Dictionary with results for each length
    """
    network = NetworkParams()
    physics = PhysicsParams(rail_friction=1.0)
    origin = IntVector3(0, 64, 0)
    results: Dict[int, Dict[str, Any]] = {}

    for length in lengths:
        if not 1 <= length <= loop_width - 3:
            raise ValueError(f"train length must be between 1 and {loop_width - 3}, got {length}")
        world = GridWorld()
        build_loop_track(world, origin, loop_width, loop_depth)
        simulator = TrainSimulator(
            world, transport=RecordingTransport(max_packets=PACKET_LOG_SIZE), physics=physics, network=network
        )
        simulator.spawn_train(
            IntVector3(length + 1, origin.y, origin.z),
            BlockFace.EAST,
            length=length,
            speed=speed,
            properties=TrainProperties(name=f"train-{length}"),
        )
        simulator.add_viewer("observer", (loop_width / 2.0, origin.y + 1.0, origin.z - viewer_distance))

        t, state, traffic, drift = simulator.simulate(ticks)
        analysis = SyncTrafficAnalyzer(network).analyze(t, state, traffic, drift)

        results[length] = {
            "time": t,
            "state": state,
            "traffic": traffic,
            "drift": drift,
            "analysis": analysis,
            "simulator": simulator,
        }

    return results
