from __future__ import annotations

from pathlib import Path

import fiona
import pytest
from shapely.geometry import box, mapping

from coastal_router.core.grid import LegGrid
from coastal_router.core.models import GeoPoint
from coastal_router.land.predicates import is_land
from coastal_router.land.store import LandDataError, LandGeometryStore, build_land_store


def _write_land_shapefile(path: Path, geom) -> None:
    schema = {"geometry": "Polygon", "properties": {"id": "int"}}
    with fiona.open(
        path,
        mode="w",
        driver="ESRI Shapefile",
        crs="EPSG:4326",
        schema=schema,
    ) as dst:
        dst.write({"geometry": mapping(geom), "properties": {"id": 1}})


def test_build_from_shapefile_and_reuse_cache(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    shp_path = tmp_path / "land.shp"
    _write_land_shapefile(shp_path, box(0.0, -0.02, 0.02, 0.02))
    cache = tmp_path / "land.pkl"

    store = build_land_store(shp_path, buffer_km=0.2, cache_path=cache)
    assert store.piece_count == 1
    assert cache.exists()
    assert is_land(store, GeoPoint(0.0, 0.01))
    assert not is_land(store, GeoPoint(0.0, 0.05))

    capsys.readouterr()
    cached = build_land_store(shp_path, buffer_km=0.2, cache_path=cache)
    assert "from cache" in capsys.readouterr().out
    assert cached.piece_count == 1
    assert is_land(cached, GeoPoint(0.0, 0.0209))

    # a different buffer invalidates the cache
    rebuilt = build_land_store(shp_path, buffer_km=0.5, cache_path=cache)
    assert "Reading land polygons" in capsys.readouterr().out
    assert is_land(rebuilt, GeoPoint(0.0, 0.0240))


def test_missing_dataset_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(LandDataError):
        build_land_store(tmp_path / "nope.shp")


def test_unreadable_dataset_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "land.geojson"
    path.write_text("this is not geojson", encoding="utf-8")
    with pytest.raises(LandDataError):
        build_land_store(path, cache_path=tmp_path / "cache.pkl")


def test_dataset_without_polygons_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "points.geojson"
    path.write_text(
        '{"type": "FeatureCollection", "features": [{"type": "Feature", "properties": {}, '
        '"geometry": {"type": "Point", "coordinates": [16.3, 43.4]}}]}',
        encoding="utf-8",
    )
    with pytest.raises(LandDataError):
        build_land_store(path, cache_path=tmp_path / "cache.pkl")


def test_buffer_is_metric() -> None:
    store = LandGeometryStore.from_geometries([box(0.0, -0.02, 0.02, 0.02)], buffer_km=0.2)
    near = GeoPoint(0.0, 0.0209)  # ~100 m east of the coast
    far = GeoPoint(0.0, 0.0227)  # ~300 m east of the coast
    assert not is_land(store, near, buffered=False)
    assert is_land(store, near)
    assert not is_land(store, far)
    assert not is_land(store, far, buffered=False)


def test_large_polygons_are_tiled() -> None:
    store = LandGeometryStore.from_geometries([box(0.0, 0.0, 12.0, 3.0)], buffer_km=0.0, tile_deg=5.0)
    assert store.piece_count == 3
    assert is_land(store, GeoPoint(1.5, 11.0))
    assert is_land(store, GeoPoint(1.5, 5.0))


def test_region_bbox_drops_distant_land() -> None:
    store = LandGeometryStore.from_geometries(
        [box(0.0, 0.0, 0.1, 0.1), box(10.0, 10.0, 10.1, 10.1)],
        buffer_km=0.0,
        region_bbox=(-1.0, -1.0, 1.0, 1.0),
    )
    assert store.piece_count == 1
    assert not is_land(store, GeoPoint(10.05, 10.05))


def test_window_mask_rows_run_south_to_north() -> None:
    store = LandGeometryStore.from_geometries([box(0.0, 0.02, 0.02, 0.04)], buffer_km=0.0)
    grid = LegGrid(lat0=-0.05, lng0=-0.05, dlat=0.005, dlng=0.005, rows=21, cols=21, step_km=0.5566)
    mask = store.window_mask(grid)

    assert mask.shape == (21, 21)
    assert mask[grid.snap(GeoPoint(0.03, 0.01))]
    assert not mask[grid.snap(GeoPoint(-0.03, 0.01))]


def test_window_mask_without_land_is_empty(empty_store: LandGeometryStore) -> None:
    grid = LegGrid(lat0=0.0, lng0=0.0, dlat=0.01, dlng=0.01, rows=5, cols=4, step_km=1.1132)
    mask = empty_store.window_mask(grid)
    assert mask.shape == (5, 4)
    assert not mask.any()
