"""Selftests for the fall / slide / settle stepper.

Run:
  python -m selftest.test_sand_stepper
"""

from runtime.obstacles_v1 import NoObstacle, blocks_cell, make_obstacle
from runtime.occupancy_v1 import OccupancyGrid, cell_key
from runtime.rng_v1 import DeterministicRNG
from runtime.sand_particles_v1 import ParticleStore, align
from runtime.sand_stepper_v1 import (
    last_cell,
    resettle_after_obstacle_change,
    step_count,
    step_particles,
)

CS = 4
W = 200
H = 400
WHITE = (255, 255, 255)


def _step(store, grid, obstacle=None, dt_ms=0.0, fall_speed=2.0, width=W, height=H):
    return step_particles(store, grid, obstacle or NoObstacle(), cell_size=CS, width=width, height=height,
                          fall_speed=fall_speed, dt_ms=dt_ms)


def _settled_at(store, x, y):
    p = store.add(x, y, WHITE, 0.0)
    p.settled = True
    return p


def test_step_count():
    assert step_count(2.0, 16.0) == 2
    assert step_count(2.0, 0.0) == 1
    assert step_count(0.5, 16.0) == 1
    assert step_count(5.0, 33.0) == 10


def test_align_and_last_cell():
    assert align(5, 4) == 4
    assert align(6, 4) == 8  # halves round up
    assert align(-1, 4) == 0
    assert last_cell(400, 4) == 396
    assert last_cell(402, 4) == 396


def test_flat_floor():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    p = store.add(100, 0, WHITE, 0.0)
    for _ in range(200):
        _step(store, grid, dt_ms=16.0)
        if p.settled:
            break
    assert p.settled
    assert (p.x, p.y) == (100, 396)
    assert grid.is_occupied(100, 396)


def test_diagonal_tie_even_row_goes_left():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 100, 396)
    p = store.add(100, 392, WHITE, 0.0)  # row 98
    _step(store, grid)
    assert (p.x, p.y) == (96, 396)


def test_diagonal_tie_odd_row_goes_right():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 100, 392)
    p = store.add(100, 388, WHITE, 0.0)  # row 97
    _step(store, grid)
    assert (p.x, p.y) == (104, 392)


def test_same_row_same_side():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 40, 396)
    _settled_at(store, 120, 396)
    a = store.add(40, 392, WHITE, 0.0)
    b = store.add(120, 392, WHITE, 0.0)
    _step(store, grid)
    assert (a.x - 40) == (b.x - 120) == -CS


def test_single_free_diagonal():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 100, 396)
    _settled_at(store, 96, 396)
    p = store.add(100, 392, WHITE, 0.0)
    _step(store, grid)
    assert (p.x, p.y) == (104, 396)


def test_settles_when_fully_supported():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    for x in (96, 100, 104):
        _settled_at(store, x, 396)
    p = store.add(100, 392, WHITE, 0.0)
    stats = _step(store, grid, dt_ms=160.0)
    assert p.settled and (p.x, p.y) == (100, 392)
    assert stats.settled == 1
    assert grid.is_occupied(100, 392)


def test_wall_blocks_diagonal():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 0, 396)
    p = store.add(0, 392, WHITE, 0.0)  # row 98 prefers left, but left is off-canvas
    _step(store, grid)
    assert (p.x, p.y) == (4, 396)


def test_overlapping_falling_grains_stack():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    a = store.add(100, 396, WHITE, 0.0)
    b = store.add(100, 396, WHITE, 0.0)
    stats = _step(store, grid)
    assert a.settled and b.settled
    assert {a.y, b.y} == {396, 392}
    assert stats.stacked == 1
    assert len(grid) == 2


def test_realigns_before_moving():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    p = store.add(101, 2, WHITE, 0.0)
    _step(store, grid)
    assert p.x % CS == 0 and p.y % CS == 0
    assert (p.x, p.y) == (100, 8)  # aligned to (100, 4), then one fall step


def test_settle_writes_grid_within_tick():
    # b lands on a in the same tick because a's cell is marked as soon as it settles
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    for x in (96, 104):
        _settled_at(store, x, 396)
    a = store.add(100, 396, WHITE, 0.0)
    b = store.add(100, 392, WHITE, 0.0)
    _step(store, grid)
    assert a.settled and (a.x, a.y) == (100, 396)
    assert b.settled and (b.x, b.y) == (100, 392)


def test_obstacle_deflects():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    obstacle = make_obstacle("circle", 100, 200, 50)
    for x in range(60, 144, 8):
        store.add(x, 0, WHITE, 0.0)
    for _ in range(400):
        _step(store, grid, obstacle, dt_ms=16.0)
    for p in store:
        assert p.settled
        assert not blocks_cell(obstacle, p.x, p.y, CS)


def test_resettle_moves_grains_out_of_new_obstacle():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    for x in range(80, 124, 4):
        for y in range(80, 124, 4):
            _settled_at(store, x, y)
    far = _settled_at(store, 0, 396)
    obstacle = make_obstacle("circle", 100, 100, 20)
    inside = sum(1 for p in store if blocks_cell(obstacle, p.x, p.y, CS))
    assert inside > 0

    stats = resettle_after_obstacle_change(store, grid, obstacle, cell_size=CS, width=W, height=H,
                                           rng=DeterministicRNG(3))
    assert stats.relocated + stats.fallback == inside
    assert stats.released == len(store) - inside
    assert not far.settled

    for p in store:
        assert not blocks_cell(obstacle, p.x, p.y, CS)
        assert p.x % CS == 0 and p.y % CS == 0
    settled_keys = [cell_key(p.x, p.y, CS) for p in store if p.settled]
    assert len(settled_keys) == len(set(settled_keys)) == len(grid)
    assert set(settled_keys) == set(grid.cells())


def test_resettle_fallback_when_search_exhausted():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    p = _settled_at(store, 100, 100)
    obstacle = make_obstacle("square", 100, 100, 60)
    stats = resettle_after_obstacle_change(store, grid, obstacle, cell_size=CS, width=W, height=H,
                                           rng=DeterministicRNG(1), max_radius_cells=2)
    assert stats.fallback == 1 and stats.relocated == 0
    assert not p.settled
    assert p.y < obstacle.top()
    assert abs(p.x - 100) <= 3 * CS
    assert not blocks_cell(obstacle, p.x, p.y, CS)

def test_fallback_when_obstacle_covers_canvas_top():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    p = _settled_at(store, 100, 100)
    obstacle = make_obstacle("circle", 100, 100, 110)  # top edge at y=-10
    stats = resettle_after_obstacle_change(store, grid, obstacle, cell_size=CS, width=200, height=200,
                                           rng=DeterministicRNG(5), max_radius_cells=2)
    assert stats.fallback == 1 and stats.dropped == 0
    assert p.y == 0 and not p.settled
    assert not blocks_cell(obstacle, p.x, p.y, CS)
    for _ in range(100):
        _step(store, grid, obstacle, dt_ms=16.0, width=200, height=200)
        assert not blocks_cell(obstacle, p.x, p.y, CS)
    assert p.settled


def test_resettle_drops_grains_when_canvas_is_covered():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    _settled_at(store, 100, 100)
    store.add(40, 40, WHITE, 0.0)
    obstacle = make_obstacle("circle", 100, 100, 150)
    stats = resettle_after_obstacle_change(store, grid, obstacle, cell_size=CS, width=200, height=200,
                                           rng=DeterministicRNG(5))
    assert stats.dropped == 2
    assert stats.relocated == stats.fallback == 0
    assert len(store) == 0 and len(grid) == 0


def test_doubled_grain_with_full_column_settles_beside():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    for y in (0, 4, 8):
        _settled_at(store, 4, y)
    p = store.add(4, 8, WHITE, 0.0)
    stats = _step(store, grid, width=12, height=12)
    assert p.settled and (p.x, p.y) == (0, 8)  # row 2 is even: left side first
    assert stats.dropped == 0
    assert len(grid) == 4


def test_doubled_grain_with_no_room_is_dropped():
    store = ParticleStore()
    grid = OccupancyGrid(CS)
    for x in (0, 4, 8):
        for y in (0, 4, 8):
            _settled_at(store, x, y)
    p = store.add(4, 8, WHITE, 0.0)
    stats = _step(store, grid, width=12, height=12)
    assert stats.dropped == 1
    assert len(store) == 9
    assert all(q is not p for q in store)


def test_store_trim_prefers_settled():
    store = ParticleStore()
    old_falling = store.add(0, 0, WHITE, 0.0)
    for x in (4, 8, 12):
        _settled_at(store, x, 396)
    store.add(16, 0, WHITE, 0.0)
    store.add(20, 0, WHITE, 0.0)
    gone = store.trim_to(2)
    assert len(gone) == 4 and len(store) == 2
    assert sum(1 for q in gone if q.settled) == 3
    assert old_falling in gone
    assert [q.pid for q in store] == [5, 6]
    assert store.trim_to(10) == []



def main():
    test_step_count()
    test_align_and_last_cell()
    test_flat_floor()
    test_diagonal_tie_even_row_goes_left()
    test_diagonal_tie_odd_row_goes_right()
    test_same_row_same_side()
    test_single_free_diagonal()
    test_settles_when_fully_supported()
    test_wall_blocks_diagonal()
    test_overlapping_falling_grains_stack()
    test_realigns_before_moving()
    test_settle_writes_grid_within_tick()
    test_obstacle_deflects()
    test_resettle_moves_grains_out_of_new_obstacle()
    test_resettle_fallback_when_search_exhausted()
    test_fallback_when_obstacle_covers_canvas_top()
    test_resettle_drops_grains_when_canvas_is_covered()
    test_doubled_grain_with_full_column_settles_beside()
    test_doubled_grain_with_no_room_is_dropped()
    test_store_trim_prefers_settled()
    print("OK: stepper selftests passed")


if __name__ == "__main__":
    main()
