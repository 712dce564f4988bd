"""Lightweight geodesy helpers."""
from __future__ import annotations

import math
from typing import Tuple

from pyproj import Geod


EARTH_RADIUS_KM = 6371.0088
KM_PER_DEG_LAT = 111.32
MIN_COS_LAT = 0.05

_GEOD = Geod(ellps="WGS84")


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = lat2_r - lat1_r
    dlng = math.radians(shortest_dlng(lng1, lng2))
    s = math.sin(dlat / 2) ** 2 + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(s), math.sqrt(max(0.0, 1 - s)))


def shortest_dlng(lng1: float, lng2: float) -> float:
    """Return the shortest longitudinal delta from lng1 to lng2 in degrees."""
    return (lng2 - lng1 + 180) % 360 - 180


def wrap_lng(lng: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return (lng + 180.0) % 360.0 - 180.0


def clamp_lat(lat: float, limit: float = 90.0) -> float:
    return max(min(lat, limit), -limit)


def lng_scale(lat: float) -> float:
    """cos(lat), floored so polar legs keep a finite longitude step."""
    return max(math.cos(math.radians(lat)), MIN_COS_LAT)


def km_to_lat_deg(km: float) -> float:
    return km / KM_PER_DEG_LAT


def km_to_lng_deg(km: float, lat: float) -> float:
    return km / (KM_PER_DEG_LAT * lng_scale(lat))


def bearing_deg(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return initial bearing from point 1 to point 2 in degrees 0-360."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlng = math.radians(shortest_dlng(lng1, lng2))
    x = math.sin(dlng) * math.cos(lat2_r)
    y = math.cos(lat1_r) * math.sin(lat2_r) - math.sin(lat1_r) * math.cos(lat2_r) * math.cos(dlng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def destination(lat: float, lng: float, bearing: float, km: float) -> Tuple[float, float]:
    """Point reached from (lat, lng) after `km` along `bearing`, as (lat, lng)."""
    lng2, lat2, _ = _GEOD.fwd(lng, lat, bearing, km * 1000.0)
    return lat2, wrap_lng(lng2)


def local_xy_km(lat: float, lng: float, ref_lat: float) -> Tuple[float, float]:
    """Project onto a cosine-scaled plane in km (x east, y north)."""
    return lng * KM_PER_DEG_LAT * lng_scale(ref_lat), lat * KM_PER_DEG_LAT
