"""Buffered land geometry loaded once and shared read-only for the process lifetime."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence, Tuple
import hashlib
import json
import math
import pickle

import fiona
import numpy as np
import rasterio
from fiona.errors import FionaError
from rasterio import features
from shapely import clip_by_rect, from_wkb, to_wkb
from shapely.geometry import box, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform as shapely_transform
from shapely.prepared import PreparedGeometry, prep
from shapely.strtree import STRtree
from pyproj import CRS, Transformer

from coastal_router.core.grid import LegGrid


BBox = Tuple[float, float, float, float]
CACHE_VERSION = 1
POLYGONAL = {"Polygon", "MultiPolygon"}


class LandDataError(RuntimeError):
    """The land polygon dataset could not be loaded; routing cannot start."""


@dataclass(frozen=True, eq=False)
class _Layer:
    geoms: tuple[BaseGeometry, ...]
    prepared: tuple[PreparedGeometry, ...]
    tree: STRtree

    @classmethod
    def build(cls, geoms: Sequence[BaseGeometry]) -> "_Layer":
        geoms = tuple(geoms)
        return cls(geoms=geoms, prepared=tuple(prep(g) for g in geoms), tree=STRtree(list(geoms)))

    def hits(self, geom: BaseGeometry) -> list[int]:
        """Indices of pieces that really intersect `geom`, in index order."""
        candidates = self.tree.query(geom)
        return [int(i) for i in sorted(candidates) if self.prepared[int(i)].intersects(geom)]


@dataclass(frozen=True, eq=False)
class LandGeometryStore:
    """Raw and outward-buffered land pieces with spatial indexes.

    Never mutated after construction, so any number of leg searches may query it
    concurrently.
    """

    raw: _Layer
    buffered: _Layer
    buffer_km: float
    source: str

    @classmethod
    def from_geometries(
        cls,
        geoms: Iterable[BaseGeometry],
        buffer_km: float = 0.2,
        tile_deg: float = 5.0,
        region_bbox: BBox | None = None,
        source: str = "<memory>",
    ) -> "LandGeometryStore":
        raw_pieces = _prepare_pieces(geoms, tile_deg, region_bbox, buffer_km)
        buffered_pieces = [_buffer_km(piece, buffer_km) for piece in raw_pieces]
        return cls._from_pieces(raw_pieces, buffered_pieces, buffer_km, source)

    @classmethod
    def _from_pieces(
        cls,
        raw_pieces: Sequence[BaseGeometry],
        buffered_pieces: Sequence[BaseGeometry],
        buffer_km: float,
        source: str,
    ) -> "LandGeometryStore":
        return cls(
            raw=_Layer.build(raw_pieces),
            buffered=_Layer.build(buffered_pieces),
            buffer_km=buffer_km,
            source=source,
        )

    @property
    def piece_count(self) -> int:
        return len(self.raw.geoms)

    def layer(self, buffered: bool = True) -> _Layer:
        return self.buffered if buffered else self.raw

    def intersects(self, geom: BaseGeometry, buffered: bool = True) -> bool:
        layer = self.layer(buffered)
        for i in layer.tree.query(geom):
            if layer.prepared[int(i)].intersects(geom):
                return True
        return False

    def intersection(self, geom: BaseGeometry, buffered: bool = True) -> list[BaseGeometry]:
        layer = self.layer(buffered)
        return [layer.geoms[i].intersection(geom) for i in layer.hits(geom)]

    def window_mask(self, grid: LegGrid) -> np.ndarray:
        """Rasterize buffered land onto the leg grid; mask[row, col] is True on land.

        Cells are burned when their centre falls inside land. The mask only
        prunes the search; accepted edges are always checked against vectors.
        """
        window = box(
            grid.lng0 - grid.dlng,
            grid.lat0 - grid.dlat,
            grid.lng1 + grid.dlng,
            grid.lat1 + grid.dlat,
        )
        shapes = [(self.buffered.geoms[i], 1) for i in self.buffered.hits(window)]
        if not shapes:
            return np.zeros((grid.rows, grid.cols), dtype=bool)
        transform = rasterio.transform.from_origin(
            grid.lng0 - grid.dlng / 2.0,
            grid.lat1 + grid.dlat / 2.0,
            grid.dlng,
            grid.dlat,
        )
        raster = features.rasterize(
            shapes,
            out_shape=(grid.rows, grid.cols),
            transform=transform,
            fill=0,
            dtype="uint8",
            all_touched=False,
        )
        # raster row 0 is the northern edge; grid row 0 is the southern one
        return raster[::-1].astype(bool)


def build_land_store(
    polygons_path: Path,
    buffer_km: float = 0.2,
    tile_deg: float = 5.0,
    region_bbox: BBox | None = None,
    cache_path: Path | None = None,
) -> LandGeometryStore:
    """Build the buffered land store from a polygon dataset.

    Uses a cache file (WKB for raw and buffered pieces) to avoid re-parsing and
    re-buffering shapefiles on repeat runs.
    """
    polygons_path = Path(polygons_path)
    if not polygons_path.exists():
        raise LandDataError(f"Land polygon dataset not found: {polygons_path}")

    cache_path = cache_path or polygons_path.with_suffix(".land_store.pkl")
    key = _cache_key(polygons_path, buffer_km, tile_deg, region_bbox)
    payload = _load_cache(cache_path, key)
    if payload is not None:
        raw_pieces = [from_wkb(wkb) for wkb in payload["raw"]]
        buffered_pieces = [from_wkb(wkb) for wkb in payload["buffered"]]
        print(f"[LandStore] Loaded {len(raw_pieces)} land pieces from cache {cache_path}")
        return LandGeometryStore._from_pieces(raw_pieces, buffered_pieces, buffer_km, str(polygons_path))

    print(f"[LandStore] Reading land polygons from {polygons_path}...")
    geoms = _read_polygons(polygons_path)
    if not geoms:
        raise LandDataError(f"No land polygons found in {polygons_path}")

    raw_pieces = _prepare_pieces(geoms, tile_deg, region_bbox, buffer_km)
    if not raw_pieces:
        raise LandDataError(f"No land polygons left in {polygons_path} after clipping to {region_bbox}")
    print(f"[LandStore] Buffering {len(raw_pieces)} pieces by {buffer_km:.3f} km...")
    buffered_pieces = [_buffer_km(piece, buffer_km) for piece in raw_pieces]

    payload = {
        "version": CACHE_VERSION,
        "key": key,
        "raw": [to_wkb(g) for g in raw_pieces],
        "buffered": [to_wkb(g) for g in buffered_pieces],
    }
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        with cache_path.open("wb") as f:
            pickle.dump(payload, f)
        print(f"[LandStore] Cached land store to {cache_path}")
    except OSError as exc:
        print(f"[LandStore] Could not write cache {cache_path}: {exc}")

    return LandGeometryStore._from_pieces(raw_pieces, buffered_pieces, buffer_km, str(polygons_path))


def _read_polygons(path: Path) -> list[BaseGeometry]:
    geoms: list[BaseGeometry] = []
    try:
        with fiona.open(path) as src:
            for feat in src:
                if feat["geometry"] is None:
                    continue
                geom = shape(feat["geometry"])
                if geom.is_empty or geom.geom_type not in POLYGONAL:
                    continue
                if not geom.is_valid:
                    geom = geom.buffer(0)
                geoms.append(geom)
    except (OSError, FionaError) as exc:
        raise LandDataError(f"Failed to read land polygons from {path}: {exc}") from exc
    return geoms


def _prepare_pieces(
    geoms: Iterable[BaseGeometry],
    tile_deg: float,
    region_bbox: BBox | None,
    buffer_km: float,
) -> list[BaseGeometry]:
    region = None
    if region_bbox is not None:
        # keep land just outside the region so its buffer still reaches in
        margin = 2.0 * buffer_km / 111.32 + 0.05
        min_lng, min_lat, max_lng, max_lat = region_bbox
        region = (min_lng - margin, min_lat - margin, max_lng + margin, max_lat + margin)

    pieces: list[BaseGeometry] = []
    for geom in geoms:
        if geom.is_empty:
            continue
        if region is not None:
            geom = clip_by_rect(geom, *region)
            if geom.is_empty or geom.area <= 0:
                continue
        pieces.extend(_tile_geometry(geom, tile_deg))
    return pieces


def _tile_geometry(geom: BaseGeometry, tile_deg: float) -> list[BaseGeometry]:
    """Cut a polygon into tile_deg tiles so each piece can be buffered locally."""
    minx, miny, maxx, maxy = geom.bounds
    if tile_deg <= 0 or (maxx - minx <= tile_deg and maxy - miny <= tile_deg):
        return [geom]
    pieces: list[BaseGeometry] = []
    x = math.floor(minx / tile_deg) * tile_deg
    while x < maxx:
        y = math.floor(miny / tile_deg) * tile_deg
        while y < maxy:
            piece = clip_by_rect(geom, x, y, x + tile_deg, y + tile_deg)
            if not piece.is_empty and piece.area > 0:
                pieces.append(piece)
            y += tile_deg
        x += tile_deg
    return pieces


def _buffer_km(geom: BaseGeometry, buffer_km: float) -> BaseGeometry:
    """Buffer outward by a metric distance in a local azimuthal-equidistant projection."""
    if buffer_km <= 0:
        return geom
    minx, miny, maxx, maxy = geom.bounds
    lon, lat = (minx + maxx) / 2.0, (miny + maxy) / 2.0
    local_crs = CRS.from_proj4(
        f"+proj=aeqd +lat_0={lat} +lon_0={lon} +datum=WGS84 +units=m +no_defs"
    )
    to_local = Transformer.from_crs("EPSG:4326", local_crs, always_xy=True)
    to_wgs84 = Transformer.from_crs(local_crs, "EPSG:4326", always_xy=True)
    projected = shapely_transform(to_local.transform, geom)
    buffered = projected.buffer(buffer_km * 1000.0, quad_segs=4)
    return shapely_transform(to_wgs84.transform, buffered)


def _cache_key(path: Path, buffer_km: float, tile_deg: float, region_bbox: BBox | None) -> str:
    stat = path.stat()
    payload = {
        "source": str(path.resolve()),
        "mtime": stat.st_mtime,
        "size": stat.st_size,
        "buffer_km": buffer_km,
        "tile_deg": tile_deg,
        "region": list(region_bbox) if region_bbox else None,
        "version": CACHE_VERSION,
    }
    raw = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha1(raw).hexdigest()


def _load_cache(cache_path: Path, key: str) -> dict | None:
    if not cache_path.exists():
        return None
    try:
        with cache_path.open("rb") as f:
            payload = pickle.load(f)
    except (OSError, pickle.UnpicklingError, EOFError):
        return None
    if not isinstance(payload, dict) or payload.get("key") != key:
        return None
    return payload
