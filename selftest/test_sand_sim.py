"""Selftests for the simulation context (tick pipeline + invariants).

Run:
  python -m selftest.test_sand_sim
"""

import dataclasses

from runtime.obstacles_v1 import blocks_cell
from runtime.occupancy_v1 import cell_key
from runtime.sand_sim_v1 import CellSnapshot, PointerState, SandConfig, SandSimulation


def _check_invariants(sim):
    cs = sim.config.cell_size
    settled_keys = []
    for p in sim.store:
        assert p.x % cs == 0 and p.y % cs == 0, (p.x, p.y)
        assert 0 <= p.x <= sim.width - cs and 0 <= p.y <= sim.height - cs, (p.x, p.y)
        assert not blocks_cell(sim.obstacle, p.x, p.y, cs), (p.x, p.y)
        if p.settled:
            settled_keys.append(cell_key(p.x, p.y, cs))
    assert len(settled_keys) == len(set(settled_keys))
    assert set(settled_keys) == set(sim.grid.cells())
    assert len(sim.store) <= sim.config.max_particles


def test_tick_without_pointer_is_quiet():
    sim = SandSimulation(200, 200)
    snap = sim.tick(16.0)
    assert snap == ()
    assert sim.ticks == 1 and sim.time_ms == 16.0
    assert sim.last_emit.attempted == 0


def test_snapshot_is_frozen_and_sized():
    sim = SandSimulation(200, 200, SandConfig(cell_size=6, sand_flow=0.0), seed=1)
    snap = sim.tick(16.0, PointerState(60, 30, True))
    assert isinstance(snap, tuple) and len(snap) == 20
    cell = snap[0]
    assert isinstance(cell, CellSnapshot) and cell.size == 6
    try:
        cell.x = 0
    except dataclasses.FrozenInstanceError:
        pass
    else:
        raise AssertionError("snapshot cells must be immutable")


def test_hue_wraps():
    sim = SandSimulation(100, 100, SandConfig(color_speed=2.0))
    for _ in range(200):
        sim.tick(16.0)
    assert sim.hue == 40.0


def test_pour_keeps_invariants_around_obstacle():
    cfg = SandConfig(sand_flow=6.0, particles_per_tick=5, max_particles=400,
                     shape_type="circle", shape_size=30.0)
    sim = SandSimulation(200, 200, cfg, seed=5)
    was_settled = set()
    for i in range(300):
        sim.tick(16.0, PointerState(100 + (i % 7) - 3, 20, True))
        _check_invariants(sim)
        present = {p.pid: p for p in sim.store}
        for pid in was_settled:
            if pid in present:
                assert present[pid].settled, pid
        was_settled = {p.pid for p in sim.store if p.settled}
    settled, falling = sim.store.counts()
    assert settled > 0
    assert sim.stats()["particles"] == settled + falling


def test_deterministic_for_same_seed():
    def run(seed):
        sim = SandSimulation(160, 120, SandConfig(sand_flow=8.0, shape_type="triangle", shape_size=30.0), seed=seed)
        snap = ()
        for i in range(120):
            snap = sim.tick(16.0, PointerState(80, 10, i < 90))
        return snap

    assert run(3) == run(3)
    assert run(3) != run(4)


def test_configure_continuous_keeps_particles():
    sim = SandSimulation(200, 200, SandConfig(sand_flow=0.0))
    sim.tick(16.0, PointerState(100, 20, True))
    n = len(sim.store)
    sim.configure(fall_speed=4.0, color_speed=1.0, sand_flow=5.0)
    assert len(sim.store) == n
    assert sim.config.fall_speed == 4.0


def test_configure_cell_size_resets():
    sim = SandSimulation(200, 200)
    sim.tick(16.0, PointerState(100, 20, True))
    assert len(sim.store) > 0
    sim.configure(cell_size=8)
    assert len(sim.store) == 0 and len(sim.grid) == 0
    assert sim.grid.cell_size == 8
    sim.tick(16.0, PointerState(100, 20, True))
    assert all(p.x % 8 == 0 and p.y % 8 == 0 for p in sim.store)


def test_configure_rejects_unknown_keys():
    sim = SandSimulation(200, 200)
    try:
        sim.configure(gravity=9.8)
    except KeyError:
        pass
    else:
        raise AssertionError("unknown config key must raise")


def test_configure_batch_rebases_governor():
    sim = SandSimulation(200, 200)
    sim.configure(particles_per_tick=5, particle_interval_ms=40.0)
    assert sim.governor.base_batch == 5 and sim.governor.batch == 5
    assert sim.governor.interval_ms == 40.0
    sim.configure(fps_low=55.0, fps_high=70.0)
    assert sim.governor.cfg.fps_low == 55.0


def test_obstacle_change_resettles_pile():
    sim = SandSimulation(200, 200, SandConfig(sand_flow=10.0, particles_per_tick=10), seed=2)
    for _ in range(200):
        sim.tick(16.0, PointerState(100, 150, True))
    for _ in range(100):
        sim.tick(16.0)
    assert sim.store.counts()[0] > 0

    sim.configure(shape_type="square", shape_size=20.0)
    assert sim.obstacle.kind == "square"
    assert (sim.obstacle.cx, sim.obstacle.cy) == (100.0, 100.0)
    rs = sim.last_resettle
    assert rs is not None
    assert rs.relocated + rs.fallback + rs.released == len(sim.store)
    _check_invariants(sim)
    for _ in range(200):
        sim.tick(16.0)
        _check_invariants(sim)


def test_resize_recenters_and_clears():
    sim = SandSimulation(200, 200, SandConfig(shape_type="circle", shape_size=20.0))
    sim.tick(16.0, PointerState(50, 20, True))
    sim.resize(400, 300)
    assert len(sim.store) == 0
    assert (sim.obstacle.cx, sim.obstacle.cy) == (200.0, 150.0)
    assert sim.stats()["width"] == 400

def test_obstacle_reaching_past_canvas_top():
    sim = SandSimulation(200, 200, SandConfig(sand_flow=10.0, particles_per_tick=10), seed=9)
    for _ in range(60):
        sim.tick(16.0, PointerState(100, 20, True))
    for _ in range(60):
        sim.tick(16.0)
    n = len(sim.store)
    assert n > 0

    sim.configure(shape_type="circle", shape_size=110.0)
    rs = sim.last_resettle
    assert rs.relocated + rs.fallback + rs.released + rs.dropped == n
    _check_invariants(sim)
    for _ in range(50):
        sim.tick(16.0)
        _check_invariants(sim)

    # Padded circle now covers every cell: nothing can stay.
    sim.configure(shape_size=150.0)
    assert len(sim.store) == 0 and len(sim.grid) == 0
    assert sim.last_resettle.dropped > 0


def test_lowering_max_particles_trims_store():
    sim = SandSimulation(200, 200, SandConfig(sand_flow=10.0, particles_per_tick=10), seed=4)
    for _ in range(100):
        sim.tick(16.0, PointerState(100, 20, True))
    for _ in range(60):
        sim.tick(16.0)
    n = len(sim.store)
    assert n > 100
    oldest = min(p.pid for p in sim.store)

    sim.configure(max_particles=100)
    assert len(sim.store) == 100
    assert oldest not in {p.pid for p in sim.store}
    _check_invariants(sim)
    for _ in range(5):
        sim.tick(16.0, PointerState(100, 20, True))
        _check_invariants(sim)



def main():
    test_tick_without_pointer_is_quiet()
    test_snapshot_is_frozen_and_sized()
    test_hue_wraps()
    test_pour_keeps_invariants_around_obstacle()
    test_deterministic_for_same_seed()
    test_configure_continuous_keeps_particles()
    test_configure_cell_size_resets()
    test_configure_rejects_unknown_keys()
    test_configure_batch_rebases_governor()
    test_obstacle_change_resettles_pile()
    test_resize_recenters_and_clears()
    test_obstacle_reaching_past_canvas_top()
    test_lowering_max_particles_trims_store()
    print("OK: simulation selftests passed")


if __name__ == "__main__":
    main()
