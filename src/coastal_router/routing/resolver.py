"""Turns a leg into a local search problem: grid window plus resolved endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from coastal_router.core.config import GridConfig
from coastal_router.core.geodesy import haversine_km
from coastal_router.core.grid import Cell, LegGrid
from coastal_router.core.models import GeoPoint
from coastal_router.land.predicates import is_land, segment_is_clear
from coastal_router.land.store import LandGeometryStore


class UnresolvedEndpointError(ValueError):
    """No water cell with a clean access segment was found within the ring limit."""


@dataclass(frozen=True)
class ResolvedEndpoint:
    point: GeoPoint
    cell: Cell
    ring: int
    in_land: bool


@dataclass
class SearchProblem:
    grid: LegGrid
    land_mask: np.ndarray
    start: ResolvedEndpoint
    goal: ResolvedEndpoint
    leg_km: float


def build_leg_grid(
    start: GeoPoint,
    end: GeoPoint,
    config: GridConfig,
    max_abs_lat: float = 85.0,
) -> LegGrid:
    """Size the grid from the leg length: shorter legs get finer cells."""
    leg_km = haversine_km(start.lat, start.lng, end.lat, end.lng)
    step_km = config.step_km_for(leg_km)
    return LegGrid.for_leg(
        start,
        end,
        step_km=step_km,
        pad_cells=config.pad_cells,
        min_pad_km=config.min_pad_km,
        max_abs_lat=max_abs_lat,
    )


def resolve_endpoint(
    point: GeoPoint,
    grid: LegGrid,
    land_mask: np.ndarray,
    store: LandGeometryStore,
    max_rings: int,
) -> ResolvedEndpoint:
    """Snap `point` onto the grid, moving outward ring by ring while it sits on land.

    Within a ring, candidates are tried nearest-first (ties broken by row, col),
    so the result is deterministic.
    """
    in_land = is_land(store, point)
    center = grid.snap(point)
    for radius in range(max_rings + 1):
        ring = sorted(
            grid.ring(center, radius),
            key=lambda cell: (_cell_distance(grid, cell, point), cell),
        )
        for cell in ring:
            if land_mask[cell]:
                continue
            candidate = grid.point(cell)
            if is_land(store, candidate):
                continue
            if segment_is_clear(store, point, candidate, a_in_land=in_land):
                return ResolvedEndpoint(point=candidate, cell=cell, ring=radius, in_land=in_land)
    raise UnresolvedEndpointError(
        f"no reachable water within {max_rings} rings of ({point.lat:.5f}, {point.lng:.5f})"
    )


def _cell_distance(grid: LegGrid, cell: Cell, point: GeoPoint) -> float:
    lat, lng = grid.point(cell)
    return haversine_km(lat, lng, point.lat, point.lng)


def build_search_problem(
    start: GeoPoint,
    end: GeoPoint,
    store: LandGeometryStore,
    config: GridConfig,
    max_abs_lat: float = 85.0,
    grid: Optional[LegGrid] = None,
) -> SearchProblem:
    grid = grid or build_leg_grid(start, end, config, max_abs_lat=max_abs_lat)
    land_mask = store.window_mask(grid)
    start_ep = resolve_endpoint(start, grid, land_mask, store, config.max_rings)
    goal_ep = resolve_endpoint(end, grid, land_mask, store, config.max_rings)
    return SearchProblem(
        grid=grid,
        land_mask=land_mask,
        start=start_ep,
        goal=goal_ep,
        leg_km=haversine_km(start.lat, start.lng, end.lat, end.lng),
    )
