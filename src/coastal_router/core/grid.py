"""Per-leg search grid: converts between coordinates and (row, col) cells."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple
import math

from coastal_router.core.geodesy import (
    clamp_lat,
    km_to_lat_deg,
    km_to_lng_deg,
    lng_scale,
)
from coastal_router.core.models import GeoPoint


Cell = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class LegGrid:
    """Search window and lattice for one leg.

    Attributes:
        lat0: Latitude of row 0 (southern edge of the window).
        lng0: Longitude of column 0 (western edge of the window).
        dlat: Row spacing in degrees latitude.
        dlng: Column spacing in degrees longitude (cosine-corrected).
        rows: Number of rows.
        cols: Number of columns.
        step_km: Nominal cell size the steps were derived from.
    """

    lat0: float
    lng0: float
    dlat: float
    dlng: float
    rows: int
    cols: int
    step_km: float

    @classmethod
    def for_leg(
        cls,
        start: GeoPoint,
        end: GeoPoint,
        step_km: float,
        pad_cells: int,
        min_pad_km: float,
        max_abs_lat: float = 85.0,
    ) -> "LegGrid":
        """Build a padded window around both endpoints.

        The longitude step is scaled by cos(mean latitude) so cells stay roughly
        square on the ground.
        """
        mean_lat = (start.lat + end.lat) / 2.0
        dlat = km_to_lat_deg(step_km)
        dlng = dlat / lng_scale(mean_lat)

        pad_km = max(pad_cells * step_km, min_pad_km)
        pad_lat = km_to_lat_deg(pad_km)
        pad_lng = km_to_lng_deg(pad_km, mean_lat)

        south = clamp_lat(min(start.lat, end.lat) - pad_lat, max_abs_lat)
        north = clamp_lat(max(start.lat, end.lat) + pad_lat, max_abs_lat)
        west = max(min(start.lng, end.lng) - pad_lng, -180.0)
        east = min(max(start.lng, end.lng) + pad_lng, 180.0)

        rows = max(2, int(math.ceil((north - south) / dlat)) + 1)
        cols = max(2, int(math.ceil((east - west) / dlng)) + 1)
        return cls(lat0=south, lng0=west, dlat=dlat, dlng=dlng, rows=rows, cols=cols, step_km=step_km)

    @property
    def lat1(self) -> float:
        return self.lat0 + self.dlat * (self.rows - 1)

    @property
    def lng1(self) -> float:
        return self.lng0 + self.dlng * (self.cols - 1)

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def snap(self, point: GeoPoint) -> Cell:
        """Nearest grid intersection to `point`, clipped into the window."""
        row = int(round((point.lat - self.lat0) / self.dlat))
        col = int(round((point.lng - self.lng0) / self.dlng))
        return min(max(row, 0), self.rows - 1), min(max(col, 0), self.cols - 1)

    def point(self, cell: Cell) -> GeoPoint:
        row, col = cell
        return GeoPoint(self.lat0 + row * self.dlat, self.lng0 + col * self.dlng)

    def contains(self, cell: Cell) -> bool:
        row, col = cell
        return 0 <= row < self.rows and 0 <= col < self.cols

    def ring(self, center: Cell, radius: int) -> Iterator[Cell]:
        """Cells at Chebyshev distance `radius` from `center` that lie in the window."""
        row0, col0 = center
        if radius == 0:
            if self.contains(center):
                yield center
            return
        for dr in range(-radius, radius + 1):
            for dc in range(-radius, radius + 1):
                if max(abs(dr), abs(dc)) != radius:
                    continue
                cell = (row0 + dr, col0 + dc)
                if self.contains(cell):
                    yield cell

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_lng, min_lat, max_lng, max_lat) of the cell centres."""
        return (self.lng0, self.lat0, self.lng1, self.lat1)
