"""Land geometry store and land/water predicates."""

from coastal_router.land.predicates import (
    ValidationReport,
    crosses_land,
    is_land,
    leaves_land_once,
    segment_is_clear,
    validate_polyline,
)
from coastal_router.land.store import (
    LandDataError,
    LandGeometryStore,
    build_land_store,
)

__all__ = [
    "LandDataError",
    "LandGeometryStore",
    "ValidationReport",
    "build_land_store",
    "crosses_land",
    "is_land",
    "leaves_land_once",
    "segment_is_clear",
    "validate_polyline",
]
