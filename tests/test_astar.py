from __future__ import annotations

import pytest
from shapely.geometry import box

from coastal_router.core.grid import LegGrid
from coastal_router.land.predicates import crosses_land
from coastal_router.land.store import LandGeometryStore
from coastal_router.routing.astar import MOVES, BoundedAStar, reconstruct_path


def _grid(rows: int = 10, cols: int = 10) -> LegGrid:
    return LegGrid(lat0=0.0, lng0=0.0, dlat=0.01, dlng=0.01, rows=rows, cols=cols, step_km=1.1132)


def _astar(store: LandGeometryStore, grid: LegGrid) -> BoundedAStar:
    return BoundedAStar(grid, store.window_mask(grid), store)


def _is_connected(path: list[tuple[int, int]]) -> bool:
    return all((b[0] - a[0], b[1] - a[1]) in MOVES for a, b in zip(path, path[1:]))


def test_open_water_diagonal(empty_store: LandGeometryStore) -> None:
    result = _astar(empty_store, _grid()).search((0, 0), (9, 9), max_iterations=1000)
    assert result.success
    assert result.path[0] == (0, 0)
    assert result.path[-1] == (9, 9)
    assert len(result.path) == 10
    assert _is_connected(result.path)


def test_routes_around_a_wall() -> None:
    store = LandGeometryStore.from_geometries([box(0.045, 0.0, 0.055, 0.07)], buffer_km=0.0)
    grid = _grid()
    astar = _astar(store, grid)
    result = astar.search((2, 0), (2, 9), max_iterations=1000)

    assert result.success
    assert _is_connected(result.path)
    assert max(row for row, _ in result.path) >= 8
    points = [grid.point(cell) for cell in result.path]
    assert not any(crosses_land(store, a, b) for a, b in zip(points, points[1:]))


def test_enclosed_goal_exhausts_the_window() -> None:
    lagoon = box(0.08, 0.08, 0.14, 0.14).difference(box(0.10, 0.10, 0.12, 0.12))
    store = LandGeometryStore.from_geometries([lagoon], buffer_km=0.0)
    result = _astar(store, _grid(20, 20)).search((2, 2), (11, 11), max_iterations=10_000)
    assert not result.success
    assert result.reason == "no water path inside the search window"
    assert 0 < result.explored < 400


def test_iteration_cap(empty_store: LandGeometryStore) -> None:
    result = _astar(empty_store, _grid()).search((0, 0), (9, 9), max_iterations=1)
    assert not result.success
    assert result.reason == "iteration cap 1 reached"
    assert result.explored == 1


def test_cancellation(empty_store: LandGeometryStore) -> None:
    result = _astar(empty_store, _grid()).search((0, 0), (9, 9), max_iterations=1000, should_cancel=lambda: True)
    assert not result.success
    assert result.reason == "cancelled"


def test_endpoint_on_land() -> None:
    store = LandGeometryStore.from_geometries([box(-0.005, -0.005, 0.015, 0.015)], buffer_km=0.0)
    result = _astar(store, _grid()).search((0, 0), (9, 9), max_iterations=1000)
    assert not result.success
    assert result.reason == "endpoint on land"


def test_same_cell(empty_store: LandGeometryStore) -> None:
    result = _astar(empty_store, _grid()).search((4, 4), (4, 4), max_iterations=10)
    assert result.success
    assert result.path == [(4, 4)]
    assert result.cost == 0.0


def test_search_is_deterministic() -> None:
    store = LandGeometryStore.from_geometries([box(0.045, 0.0, 0.055, 0.07)], buffer_km=0.0)
    grid = _grid()
    first = _astar(store, grid).search((2, 0), (2, 9), max_iterations=1000)
    second = _astar(store, grid).search((2, 0), (2, 9), max_iterations=1000)
    assert first.path == second.path
    assert first.cost == pytest.approx(second.cost)


def test_reconstruct_path() -> None:
    came_from = {(0, 1): (0, 0), (1, 2): (0, 1)}
    assert reconstruct_path(came_from, (1, 2)) == [(0, 0), (0, 1), (1, 2)]
