"""Polyline simplification that never trades safety for fewer waypoints."""
from __future__ import annotations

from typing import Callable, List, Sequence, Tuple
import math

from coastal_router.core.geodesy import local_xy_km
from coastal_router.core.models import GeoPoint
from coastal_router.land.predicates import segment_is_clear, validate_polyline
from coastal_router.land.store import LandGeometryStore


def perpendicular_distance_km(point: GeoPoint, line_start: GeoPoint, line_end: GeoPoint) -> float:
    """Distance from point to the segment line_start-line_end in kilometres.

    Uses a cosine-scaled plane around the segment's mean latitude.
    """
    ref_lat = (line_start.lat + line_end.lat) / 2.0
    x, y = local_xy_km(point.lat, point.lng, ref_lat)
    x1, y1 = local_xy_km(line_start.lat, line_start.lng, ref_lat)
    x2, y2 = local_xy_km(line_end.lat, line_end.lng, ref_lat)

    dx = x2 - x1
    dy = y2 - y1
    line_length_sq = dx * dx + dy * dy
    if line_length_sq == 0:
        return math.hypot(x - x1, y - y1)

    t = max(0.0, min(1.0, ((x - x1) * dx + (y - y1) * dy) / line_length_sq))
    return math.hypot(x - (x1 + t * dx), y - (y1 + t * dy))


def simplify_path(points: Sequence[GeoPoint], tolerance_km: float) -> List[GeoPoint]:
    """Ramer-Douglas-Peucker with a perpendicular-distance tolerance in km.

    Endpoints are always kept.
    """
    if len(points) < 3:
        return list(points)

    keep_indices = {0, len(points) - 1}
    stack = [(0, len(points) - 1)]
    while stack:
        start_idx, end_idx = stack.pop()
        if end_idx - start_idx <= 1:
            continue

        max_dist = -1.0
        max_idx = start_idx + 1
        for i in range(start_idx + 1, end_idx):
            dist = perpendicular_distance_km(points[i], points[start_idx], points[end_idx])
            if dist > max_dist:
                max_dist = dist
                max_idx = i

        if max_dist > tolerance_km:
            keep_indices.add(max_idx)
            stack.append((start_idx, max_idx))
            stack.append((max_idx, end_idx))

    return [points[i] for i in sorted(keep_indices)]


def smooth_path_los(
    points: Sequence[GeoPoint],
    is_clear: Callable[[int, int], bool],
    max_skip: int = 50,
) -> List[GeoPoint]:
    """Drop intermediate points wherever a direct hop is clear (string pulling).

    `is_clear(i, j)` decides whether points[i] can be joined directly to points[j].
    """
    if len(points) < 3:
        return list(points)

    smoothed = [points[0]]
    i = 0
    while i < len(points) - 1:
        best_j = i + 1
        for j in range(min(i + max_skip, len(points) - 1), i + 1, -1):
            if is_clear(i, j):
                best_j = j
                break
        smoothed.append(points[best_j])
        i = best_j
    return smoothed


def simplify_leg_chain(
    store: LandGeometryStore,
    start: GeoPoint,
    chain: Sequence[GeoPoint],
    goal: GeoPoint,
    tolerance_km: float,
    start_in_land: bool = False,
    end_in_land: bool = False,
    line_of_sight: bool = True,
    max_skip: int = 50,
) -> Tuple[List[GeoPoint], bool]:
    """Reduce a raw cell chain to interior waypoints for the leg start -> goal.

    Returns (interior points, simplified). If any simplified segment crosses land,
    the raw chain is returned unchanged with simplified=False.
    """
    raw = list(chain)
    full = [start, *raw, goal]
    last = len(full) - 1

    def clear(i: int, j: int) -> bool:
        return segment_is_clear(
            store,
            full[i],
            full[j],
            a_in_land=start_in_land and i == 0,
            b_in_land=end_in_land and j == last,
        )

    candidate = full
    if line_of_sight:
        candidate = smooth_path_los(candidate, clear, max_skip=max_skip)
    candidate = simplify_path(candidate, tolerance_km)

    interior = candidate[1:-1]
    if not interior and raw and not clear(0, last):
        interior = [raw[len(raw) // 2]]
        candidate = [start, *interior, goal]

    report = validate_polyline(store, candidate, start_in_land=start_in_land, end_in_land=end_in_land)
    if not report.is_ok:
        return raw, False
    return interior, True
