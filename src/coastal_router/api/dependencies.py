"""Dependency wiring for API service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from coastal_router.core.config import RouterConfig, get_config, resolve_path
from coastal_router.land.store import LandGeometryStore, build_land_store
from coastal_router.routing.channels import ChannelGraph


@lru_cache(maxsize=1)
def get_router_config() -> RouterConfig:
    return get_config()


@lru_cache(maxsize=1)
def get_land_store() -> LandGeometryStore:
    """Build the buffered land store once per process.

    Raises LandDataError if the dataset is missing or unreadable.
    """
    cfg = get_router_config()
    cache_path: Optional[Path] = resolve_path(cfg.land.cache_path) if cfg.land.cache_path else None
    return build_land_store(
        resolve_path(cfg.land.polygons_path),
        buffer_km=cfg.land.buffer_km,
        tile_deg=cfg.land.tile_deg,
        region_bbox=cfg.region_bbox(),
        cache_path=cache_path,
    )


@lru_cache(maxsize=1)
def get_channel_graph() -> Optional[ChannelGraph]:
    """Load the curated channel graph if one is configured."""
    cfg = get_router_config()
    if not cfg.channels.graph_path:
        return None
    path = resolve_path(cfg.channels.graph_path)
    if not path.exists():
        print(f"[WARNING] Channel graph {path} not found, grid search only")
        return None
    return ChannelGraph.from_yaml(path)


def clear_caches() -> None:
    get_router_config.cache_clear()
    get_land_store.cache_clear()
    get_channel_graph.cache_clear()
