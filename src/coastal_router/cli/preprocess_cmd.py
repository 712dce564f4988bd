"""Preprocessing commands: build and cache the buffered land store."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from coastal_router.core.config import get_config, resolve_path
from coastal_router.land.store import build_land_store

app = typer.Typer(help="Preprocessing utilities to buffer and cache land polygons")


@app.command()
def land(
    polygons: Optional[Path] = typer.Option(None, help="Land polygon dataset (defaults to config)"),
    buffer_km: Optional[float] = typer.Option(None, help="Safety buffer in km (defaults to config)"),
    cache: Optional[Path] = typer.Option(None, help="Cache file (defaults to <dataset>.land_store.pkl)"),
) -> None:
    """Buffer the land polygons and write the WKB cache used at startup."""
    cfg = get_config()
    polygons = polygons or resolve_path(cfg.land.polygons_path)
    if cache is None and cfg.land.cache_path:
        cache = resolve_path(cfg.land.cache_path)
    store = build_land_store(
        polygons,
        buffer_km=cfg.land.buffer_km if buffer_km is None else buffer_km,
        tile_deg=cfg.land.tile_deg,
        region_bbox=cfg.region_bbox(),
        cache_path=cache,
    )
    typer.echo(f"Land store ready: {store.piece_count} pieces, buffer {store.buffer_km:.3f} km")
