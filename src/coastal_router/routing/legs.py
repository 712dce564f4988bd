"""Per-leg orchestration: fast path, grid search, simplification and failure isolation."""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence, Union

from coastal_router.core.config import RouterConfig, get_config
from coastal_router.core.geodesy import (
    bearing_deg,
    clamp_lat,
    destination,
    haversine_km,
    shortest_dlng,
    wrap_lng,
)
from coastal_router.core.models import (
    GeoPoint,
    Leg,
    LegResult,
    LegValidationError,
    Vessel,
    Waypoint,
)
from coastal_router.land.predicates import crosses_land, is_land, validate_polyline
from coastal_router.land.store import LandGeometryStore
from coastal_router.routing.astar import BoundedAStar
from coastal_router.routing.channels import ChannelGraph
from coastal_router.routing.resolver import UnresolvedEndpointError, build_search_problem
from coastal_router.routing.simplify import simplify_leg_chain


LegInput = Union[Leg, dict]
SAFE_ROUTE_NOTE = "safe route"


def normalise_point(point: GeoPoint, max_abs_lat: float) -> GeoPoint:
    """Clamp latitude to the operating envelope and wrap longitude into [-180, 180)."""
    lng = point.lng if -180.0 <= point.lng < 180.0 else wrap_lng(point.lng)
    return GeoPoint(clamp_lat(point.lat, max_abs_lat), lng)


def offset_midpoint(start: GeoPoint, end: GeoPoint, offset_km: float) -> GeoPoint:
    """Midpoint of start-end pushed `offset_km` to the left of the direction of travel."""
    mid_lat = (start.lat + end.lat) / 2.0
    mid_lng = wrap_lng(start.lng + shortest_dlng(start.lng, end.lng) / 2.0)
    heading = bearing_deg(start.lat, start.lng, end.lat, end.lng)
    lat, lng = destination(mid_lat, mid_lng, (heading - 90.0) % 360.0, offset_km)
    return GeoPoint(lat, lng)


def plan_leg(
    leg: LegInput,
    store: LandGeometryStore,
    config: Optional[RouterConfig] = None,
    channels: Optional[ChannelGraph] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> LegResult:
    """Route a single leg. Never raises: every problem becomes a failed result."""
    config = config or get_config()
    if isinstance(leg, Leg):
        day, from_name, to_name = leg.day, leg.from_name, leg.to_name
    else:
        record = leg if isinstance(leg, dict) else {}
        day, from_name, to_name = record.get("day"), str(record.get("from") or ""), str(record.get("to") or "")
        try:
            if not isinstance(leg, dict):
                raise LegValidationError(f"leg must be an object, got {type(leg).__name__}")
            leg = Leg.from_dict(leg)
        except LegValidationError as exc:
            print(f"[Leg {day}] Invalid leg: {exc}")
            return LegResult(day, from_name, to_name, failed=True, error=f"invalid leg: {exc}")

    try:
        return _plan(leg, store, config, channels, should_cancel)
    except Exception as exc:
        print(f"[Leg {day}] Unexpected error: {exc!r}")
        return LegResult(day, from_name, to_name, failed=True, error=f"internal error: {exc}")


def _plan(
    leg: Leg,
    store: LandGeometryStore,
    config: RouterConfig,
    channels: Optional[ChannelGraph],
    should_cancel: Optional[Callable[[], bool]],
) -> LegResult:
    t0 = time.perf_counter()
    legs_cfg = config.legs
    start = normalise_point(leg.start, legs_cfg.max_abs_lat)
    end = normalise_point(leg.end, legs_cfg.max_abs_lat)
    leg_km = haversine_km(start.lat, start.lng, end.lat, end.lng)

    if leg_km < legs_cfg.min_leg_km:
        return LegResult(leg.day, leg.from_name, leg.to_name)

    if abs(end.lng - start.lng) > 180.0:
        return _failed(leg, "leg crosses the antimeridian")

    start_in_land = is_land(store, start)
    end_in_land = is_land(store, end)

    if not start_in_land and not end_in_land and not crosses_land(store, start, end):
        interior: List[GeoPoint] = []
        offset_km = min(leg_km * legs_cfg.fast_path_offset_ratio, legs_cfg.fast_path_max_offset_km)
        if offset_km > 0:
            mid = normalise_point(offset_midpoint(start, end, offset_km), legs_cfg.max_abs_lat)
            if not crosses_land(store, start, mid) and not crosses_land(store, mid, end):
                interior = [mid]
        print(f"[Leg {leg.day}] Direct line clear ({leg_km:.1f} km), fast path")
        return _package(leg, store, config, start, end, interior, start_in_land, end_in_land)

    reason = ""
    try:
        problem = build_search_problem(
            start, end, store, config.grid, max_abs_lat=legs_cfg.max_abs_lat
        )
    except UnresolvedEndpointError as exc:
        problem = None
        reason = f"unresolved endpoint: {exc}"

    if problem is not None:
        astar = BoundedAStar(problem.grid, problem.land_mask, store)
        result = astar.search(
            problem.start.cell,
            problem.goal.cell,
            max_iterations=config.search.iteration_cap(leg_km),
            should_cancel=should_cancel,
        )
        if result.success:
            chain = [problem.grid.point(cell) for cell in result.path]
            interior, simplified = simplify_leg_chain(
                store,
                start,
                chain,
                end,
                tolerance_km=config.simplify.tolerance_km,
                start_in_land=start_in_land,
                end_in_land=end_in_land,
                line_of_sight=config.simplify.line_of_sight,
                max_skip=config.simplify.max_skip,
            )
            print(
                f"[Leg {leg.day}] Grid search {problem.grid.rows}x{problem.grid.cols} "
                f"@ {problem.grid.step_km:.2f} km: explored={result.explored}, "
                f"cells={len(chain)}, waypoints={len(interior)}"
                f"{'' if simplified else ' (unsimplified)'}, "
                f"{(time.perf_counter() - t0) * 1000:.0f}ms"
            )
            return _package(leg, store, config, start, end, interior, start_in_land, end_in_land)
        reason = f"no safe path found: {result.reason}"

    if channels is not None:
        interior = channels.route(start, end, store)
        if interior is not None:
            print(f"[Leg {leg.day}] Grid search failed ({reason}); routed via channel graph '{channels.name}'")
            return _package(leg, store, config, start, end, interior, start_in_land, end_in_land)

    print(f"[Leg {leg.day}] {reason}")
    return _failed(leg, reason)


def _failed(leg: Leg, message: str, waypoints: Optional[List[Waypoint]] = None) -> LegResult:
    return LegResult(leg.day, leg.from_name, leg.to_name, waypoints=waypoints or [], failed=True, error=message)


def _package(
    leg: Leg,
    store: LandGeometryStore,
    config: RouterConfig,
    start: GeoPoint,
    end: GeoPoint,
    interior: Sequence[GeoPoint],
    start_in_land: bool,
    end_in_land: bool,
) -> LegResult:
    """Round waypoints for output and re-check the polyline that will be drawn."""
    precision = config.legs.coordinate_precision
    rounded = [GeoPoint(round(p.lat, precision), round(p.lng, precision)) for p in interior]
    waypoints = [
        Waypoint(lat=p.lat, lng=p.lng, note=SAFE_ROUTE_NOTE if idx == 0 else "")
        for idx, p in enumerate(rounded)
    ]

    report = validate_polyline(store, [start, *rounded, end], start_in_land=start_in_land, end_in_land=end_in_land)
    if not report.is_ok:
        return _failed(leg, f"route crosses land at segments {report.offending}", waypoints)
    return LegResult(leg.day, leg.from_name, leg.to_name, waypoints=waypoints)


def plan_legs(
    legs: Optional[Sequence[Any]],
    store: LandGeometryStore,
    config: Optional[RouterConfig] = None,
    vessel: Any = None,
    channels: Optional[ChannelGraph] = None,
    max_workers: Optional[int] = None,
) -> List[LegResult]:
    """Route a batch of legs; returns exactly one result per input, in input order."""
    config = config or get_config()
    legs = list(legs or [])
    vessel = vessel if isinstance(vessel, Vessel) else Vessel.from_dict(vessel)
    workers = max_workers or config.legs.max_workers
    print(
        f"[SafeRoute] {len(legs)} legs, draft={vessel.draft_m}m, type={vessel.type} "
        "(vessel draft is not used for routing)"
    )

    def run(leg: Any) -> LegResult:
        return plan_leg(leg, store, config, channels)

    if workers <= 1 or len(legs) <= 1:
        results = [run(leg) for leg in legs]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(run, legs))

    failed = sum(1 for r in results if r.failed)
    print(f"[SafeRoute] Generated {len(results)} legs ({failed} failed)")
    return results
