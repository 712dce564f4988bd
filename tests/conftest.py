from __future__ import annotations

from pathlib import Path

import pytest
from shapely.geometry import box

from coastal_router.core.config import RouterConfig
from coastal_router.land.store import LandGeometryStore, build_land_store


FIXTURES = Path(__file__).parent / "fixtures"
DALMATIA = FIXTURES / "central_dalmatia.geojson"


@pytest.fixture(scope="session")
def dalmatia_store(tmp_path_factory: pytest.TempPathFactory) -> LandGeometryStore:
    cache = tmp_path_factory.mktemp("land") / "dalmatia.land_store.pkl"
    return build_land_store(DALMATIA, buffer_km=0.2, cache_path=cache)


@pytest.fixture(scope="session")
def island_store() -> LandGeometryStore:
    """A 2.2 x 4.4 km island on the equator, east of the prime meridian."""
    return LandGeometryStore.from_geometries([box(0.0, -0.02, 0.02, 0.02)], buffer_km=0.2)


@pytest.fixture(scope="session")
def empty_store() -> LandGeometryStore:
    return LandGeometryStore.from_geometries([])


@pytest.fixture
def config() -> RouterConfig:
    return RouterConfig()
