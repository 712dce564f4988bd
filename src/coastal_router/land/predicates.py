"""Point and segment tests against the land store."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, unary_union

from coastal_router.core.geodesy import clamp_lat, wrap_lng
from coastal_router.core.models import GeoPoint
from coastal_router.land.store import LandGeometryStore


@dataclass(slots=True)
class ValidationReport:
    is_ok: bool
    offending: list[int] = field(default_factory=list)


def _xy(point: Tuple[float, float]) -> Tuple[float, float]:
    lat, lng = point
    if not -180.0 <= lng <= 180.0:
        lng = wrap_lng(lng)
    return lng, clamp_lat(lat)


def is_land(store: LandGeometryStore, point: GeoPoint, buffered: bool = True) -> bool:
    """True if `point` lies on (buffered) land."""
    return store.intersects(Point(_xy(point)), buffered=buffered)


def crosses_land(store: LandGeometryStore, a: GeoPoint, b: GeoPoint, buffered: bool = True) -> bool:
    """True if the closed segment a-b touches (buffered) land anywhere, endpoints included."""
    xa, xb = _xy(a), _xy(b)
    if xa == xb:
        return store.intersects(Point(xa), buffered=buffered)
    return store.intersects(LineString([xa, xb]), buffered=buffered)


def leaves_land_once(store: LandGeometryStore, a: GeoPoint, b: GeoPoint) -> bool:
    """True if the part of a-b on land is a single run that starts at `a`.

    Used for the access segment of a port that sits inside the safety buffer: the
    segment may start on land but must not re-enter it once it reaches water.
    Checked on both layers, so the run cannot cross an island whose buffer
    happens to touch the port.
    """
    xa, xb = _xy(a), _xy(b)
    if xa == xb:
        return True
    segment = LineString([xa, xb])
    return all(_single_run_from(store, segment, Point(xa), buffered) for buffered in (True, False))


def _single_run_from(store: LandGeometryStore, segment: LineString, origin: Point, buffered: bool) -> bool:
    pieces = store.intersection(segment, buffered=buffered)
    if not pieces:
        return True
    lines = []
    for part in _parts(unary_union(pieces)):
        if part.is_empty:
            continue
        if part.geom_type != "LineString":
            return False
        lines.append(part)
    if not lines:
        # only isolated touch points
        return False
    merged = linemerge(lines)
    if merged.geom_type != "LineString":
        return False
    return merged.distance(origin) <= 1e-12


def _parts(geom: BaseGeometry) -> list[BaseGeometry]:
    if hasattr(geom, "geoms"):
        out: list[BaseGeometry] = []
        for part in geom.geoms:
            out.extend(_parts(part))
        return out
    return [geom]


def segment_is_clear(
    store: LandGeometryStore,
    a: GeoPoint,
    b: GeoPoint,
    a_in_land: bool = False,
    b_in_land: bool = False,
) -> bool:
    """Segment check that lets a leg endpoint sitting in land exit it once."""
    if a_in_land and b_in_land:
        return False
    if a_in_land:
        return leaves_land_once(store, a, b)
    if b_in_land:
        return leaves_land_once(store, b, a)
    return not crosses_land(store, a, b)


def validate_polyline(
    store: LandGeometryStore,
    points: Sequence[GeoPoint],
    start_in_land: bool = False,
    end_in_land: bool = False,
) -> ValidationReport:
    """Check every consecutive pair of a leg polyline [from, *waypoints, to]."""
    if len(points) < 2:
        return ValidationReport(is_ok=True)

    last = len(points) - 2
    offending: list[int] = []
    for idx in range(len(points) - 1):
        a_in_land = start_in_land and idx == 0
        b_in_land = end_in_land and idx == last
        if not segment_is_clear(store, points[idx], points[idx + 1], a_in_land, b_in_land):
            offending.append(idx)
    return ValidationReport(is_ok=not offending, offending=offending)
