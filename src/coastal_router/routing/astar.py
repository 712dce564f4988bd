"""A* search confined to a leg's grid window."""
from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from coastal_router.core.geodesy import haversine_km
from coastal_router.core.grid import Cell, LegGrid
from coastal_router.core.models import GeoPoint
from coastal_router.land.predicates import crosses_land
from coastal_router.land.store import LandGeometryStore


Move = Tuple[int, int]
MOVES: List[Move] = [
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
    (-1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
]


@dataclass
class AStarResult:
    path: List[Cell]
    explored: int
    cost: float
    success: bool
    reason: str = ""


def reconstruct_path(came_from: Dict[Cell, Cell], current: Cell) -> List[Cell]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


class BoundedAStar:
    """8-connected A* over the implicit grid of one leg.

    An edge is usable only when both cells are water and the straight segment
    between them stays off buffered land. Searches share nothing but the
    read-only land store.
    """

    def __init__(self, grid: LegGrid, land_mask: np.ndarray, store: LandGeometryStore):
        self.grid = grid
        self.land_mask = land_mask
        self.store = store
        self._points: Dict[Cell, GeoPoint] = {}

    def point(self, cell: Cell) -> GeoPoint:
        pt = self._points.get(cell)
        if pt is None:
            pt = self.grid.point(cell)
            self._points[cell] = pt
        return pt

    def passable(self, cell: Cell) -> bool:
        return self.grid.contains(cell) and not bool(self.land_mask[cell])

    def edge_clear(self, a: Cell, b: Cell) -> bool:
        return not crosses_land(self.store, self.point(a), self.point(b))

    def search(
        self,
        start: Cell,
        goal: Cell,
        max_iterations: int,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> AStarResult:
        if not self.passable(start) or not self.passable(goal):
            return AStarResult(path=[], explored=0, cost=float("inf"), success=False, reason="endpoint on land")
        if start == goal:
            return AStarResult(path=[start], explored=0, cost=0.0, success=True)

        goal_pt = self.point(goal)

        def heuristic(cell: Cell) -> float:
            lat, lng = self.point(cell)
            return haversine_km(lat, lng, goal_pt.lat, goal_pt.lng)

        h0 = heuristic(start)
        open_set: List[Tuple[float, float, Cell]] = [(h0, h0, start)]
        came_from: Dict[Cell, Cell] = {}
        g_score: Dict[Cell, float] = {start: 0.0}
        closed: set[Cell] = set()
        explored = 0

        while open_set:
            if explored >= max_iterations:
                return AStarResult(path=[], explored=explored, cost=float("inf"), success=False,
                                   reason=f"iteration cap {max_iterations} reached")
            if should_cancel is not None and should_cancel():
                return AStarResult(path=[], explored=explored, cost=float("inf"), success=False,
                                   reason="cancelled")

            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            if current == goal:
                return AStarResult(
                    path=reconstruct_path(came_from, current),
                    explored=explored,
                    cost=g_score[current],
                    success=True,
                )
            closed.add(current)
            explored += 1

            cur_lat, cur_lng = self.point(current)
            row, col = current
            for drow, dcol in MOVES:
                neighbor = (row + drow, col + dcol)
                if neighbor in closed or not self.passable(neighbor):
                    continue
                nb_lat, nb_lng = self.point(neighbor)
                tentative_g = g_score[current] + haversine_km(cur_lat, cur_lng, nb_lat, nb_lng)
                if tentative_g >= g_score.get(neighbor, float("inf")):
                    continue
                if not self.edge_clear(current, neighbor):
                    continue
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                h = heuristic(neighbor)
                heapq.heappush(open_set, (tentative_g + h, h, neighbor))

        return AStarResult(path=[], explored=explored, cost=float("inf"), success=False,
                           reason="no water path inside the search window")
