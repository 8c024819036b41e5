"""
Unit tests for the tick driver.

Tests the TrainSimulator tick order, visibility handling, binding repair and
the simulate method that records state and traffic histories.
"""

import numpy as np
import pytest

from railsync import (
    GridWorld,
    NetworkParams,
    PhysicsParams,
    SyncController,
    SyncResult,
    TrainSimulator,
    build_loop_track,
)
from railsync.geometry import BlockFace, IntVector3


@pytest.fixture
def world() -> GridWorld:
    """Create a 24 x 12 loop at y=64"""
    world = GridWorld()
    build_loop_track(world, IntVector3(0, 64, 0), 24, 12)
    return world


@pytest.fixture
def simulator(world: GridWorld) -> TrainSimulator:
    """Create a simulator with a three-cart train and one observer"""
    sim = TrainSimulator(world, physics=PhysicsParams(rail_friction=1.0), network=NetworkParams())
    sim.spawn_train(IntVector3(4, 64, 0), BlockFace.EAST, length=3, speed=0.3)
    sim.add_viewer("observer", (12.0, 65.0, -8.0))
    return sim


class TestSpawn:
    """Test suite for placing trains"""

    def test_spawn_places_carts_behind_head(self, simulator: TrainSimulator) -> None:
        """Test that the carts trail the head on the rails"""
        members = simulator.members

        assert len(members) == 3
        np.testing.assert_allclose(members[0].position, [4.5, 64.0625, 0.5])
        np.testing.assert_allclose(members[2].position, [2.5, 64.0625, 0.5])
        assert all(isinstance(member.network, SyncController) for member in members)

    def test_spawn_rejects_empty_train(self, simulator: TrainSimulator) -> None:
        """Test that a train needs at least one cart"""
        with pytest.raises(ValueError):
            simulator.spawn_train(IntVector3(10, 64, 0), BlockFace.EAST, length=0)


class TestTick:
    """Test suite for single ticks"""

    def test_first_tick_makes_train_visible(self, simulator: TrainSimulator) -> None:
        """Test that the observer receives every cart in full on the first tick"""
        results = simulator.tick()

        head = simulator.groups[0].head()
        assert results[head.entity_id] is SyncResult.RELATIVE
        assert simulator.transport.counts(tick=1)["absolute"] == 3
        assert simulator.transport.counts(tick=1)["relative"] == 3

    def test_followers_omitted_from_results(self, simulator: TrainSimulator) -> None:
        """Test that only the head reports a result for a loaded train"""
        results = simulator.tick()

        assert list(results) == [simulator.groups[0].head().entity_id]

    def test_binding_repaired_next_tick(self, simulator: TrainSimulator) -> None:
        """Test that a foreign binding is reported and then repaired"""
        simulator.tick()
        group = simulator.groups[0]
        group.get(1).network = None

        assert simulator.tick()[group.head().entity_id] is SyncResult.BINDING_INVALID
        assert group.network_invalid

        results = simulator.tick()

        assert results[group.head().entity_id] is not SyncResult.BINDING_INVALID
        assert isinstance(group.get(1).network, SyncController)
        assert not group.network_invalid

    def test_invalid_head_binding(self, simulator: TrainSimulator) -> None:
        """Test that a head without a controller flags its train"""
        group = simulator.groups[0]
        head = group.head()
        head.network = None

        assert simulator.tick()[head.entity_id] is SyncResult.BINDING_INVALID
        assert group.network_invalid

    def test_fault_in_one_train_does_not_stop_others(self, world: GridWorld, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that one train failing to sync leaves the other trains alone"""
        for x in range(0, 30):
            world.set_rails(IntVector3(x, 64, 40), BlockFace.EAST)
        sim = TrainSimulator(world)
        broken = sim.spawn_train(IntVector3(4, 64, 0), BlockFace.EAST, length=2, speed=0.3)
        healthy = sim.spawn_train(IntVector3(4, 64, 40), BlockFace.EAST, length=2, speed=0.3)

        def fail(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(broken.head().network, "sync_self", fail)
        results = sim.tick()

        assert results[broken.head().entity_id] is SyncResult.FAULT
        assert results[healthy.head().entity_id] is SyncResult.RELATIVE

    def test_remove_viewer_silences_carts(self, simulator: TrainSimulator) -> None:
        """Test that a removed viewer receives a zero velocity for every cart"""
        simulator.tick()
        viewer = simulator.viewers[0]
        start = len(simulator.transport.sent)

        simulator.remove_viewer(viewer)

        removed = simulator.transport.sent[start:]
        assert len(removed) == 3
        assert all(sent.packet.velocity == (0.0, 0.0, 0.0) for sent in removed)
        assert simulator.viewers == []

    def test_add_and_remove_group(self, simulator: TrainSimulator) -> None:
        """Test that added trains are bound and removed trains are hidden from viewers"""
        simulator.tick()
        group = simulator.groups[0]
        tail = group.split(2)

        simulator.add_group(tail)
        assert isinstance(tail.head().network, SyncController)

        start = len(simulator.transport.sent)
        simulator.remove_group(tail)

        removed = simulator.transport.sent[start:]
        assert len(removed) == 1
        assert removed[0].packet.velocity == (0.0, 0.0, 0.0)
        assert tail not in simulator.groups

    def test_far_viewer_sees_nothing(self, world: GridWorld) -> None:
        """Test that viewers beyond the view distance receive no packets"""
        sim = TrainSimulator(world)
        sim.spawn_train(IntVector3(4, 64, 0), BlockFace.EAST, length=2, speed=0.3)
        far = sim.add_viewer("far", (500.0, 64.0, 500.0))

        for _ in range(5):
            sim.tick()

        assert sim.transport.packets(viewer=far) == []


class TestSimulate:
    """Test suite for simulation runs"""

    def test_history_shapes(self, simulator: TrainSimulator) -> None:
        """Test that the histories have one row per tick"""
        t, state, traffic, drift = simulator.simulate(ticks=50)

        assert len(t) == 50
        assert t[0] == 1
        assert state.shape == (50, 3, 6)
        assert traffic.shape == (50, 4)
        assert drift.shape == (50, 3)

    def test_train_stays_on_loop(self, simulator: TrainSimulator) -> None:
        """Test that the train follows the loop around its corners"""
        _, state, _, _ = simulator.simulate(ticks=200)

        assert not any(member.derailed for member in simulator.members)
        # Went round the north-east corner and down the east side
        assert np.max(state[:, 0, 2]) > 5.0
        np.testing.assert_allclose(state[:, :, 1], 64.0625)

    def test_carts_keep_spacing(self, simulator: TrainSimulator) -> None:
        """Test that carts on straight track stay one block apart"""
        _, state, _, _ = simulator.simulate(ticks=40)

        gaps = state[:, 0, 0] - state[:, 1, 0]
        np.testing.assert_allclose(gaps, 1.0)

    def test_absolute_interval_respected(self, simulator: TrainSimulator) -> None:
        """Test that absolute updates reach the observer at least every interval"""
        t, _, traffic, _ = simulator.simulate(ticks=450)

        absolute_ticks = t[traffic[:, 0] > 0]
        assert absolute_ticks[0] == 1
        assert np.max(np.diff(absolute_ticks)) <= simulator.network.absolute_update_interval + 1

    def test_drift_stays_small(self, simulator: TrainSimulator) -> None:
        """Test that synchronized positions track the live positions"""
        _, _, _, drift = simulator.simulate(ticks=150)

        assert np.max(drift) < 0.1


class TestCoupling:
    """Test suite for coupling trains while the simulator runs"""

    @pytest.fixture
    def two_trains(self, world: GridWorld) -> TrainSimulator:
        """Create a simulator with a train on the loop and another on a separate straight"""
        for x in range(0, 30):
            world.set_rails(IntVector3(x, 64, 40), BlockFace.EAST)
        sim = TrainSimulator(world)
        sim.spawn_train(IntVector3(4, 64, 0), BlockFace.EAST, length=2, speed=0.3)
        sim.spawn_train(IntVector3(4, 64, 40), BlockFace.EAST, length=2, speed=0.3)
        return sim

    def test_couple_through_simulator(self, two_trains: TrainSimulator) -> None:
        """Test that coupling keeps one train and the next tick syncs it"""
        front, back = two_trains.groups

        assert two_trains.couple(front, back) is front
        results = two_trains.tick()

        assert two_trains.groups == [front]
        assert front.size() == 4
        assert front.head().entity_id in results

    def test_group_coupled_directly_is_dropped(self, two_trains: TrainSimulator) -> None:
        """Test that a train emptied by coupling the groups directly is dropped on the next tick"""
        front, back = two_trains.groups
        front.couple(back)

        results = two_trains.tick()

        assert two_trains.groups == [front]
        assert back.size() == 0
        assert front.head().entity_id in results
        assert len(two_trains.members) == 4
