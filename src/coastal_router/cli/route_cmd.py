"""Route commands: plan a batch of legs or check a single coordinate."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from coastal_router.api.dependencies import clear_caches, get_channel_graph, get_land_store, get_router_config
from coastal_router.core.config import reload_config
from coastal_router.core.models import GeoPoint, Vessel
from coastal_router.land.predicates import is_land
from coastal_router.routing.legs import plan_legs

app = typer.Typer(help="Compute safe waypoints for itinerary legs")


def _configure(config: Optional[Path], land: Optional[Path]) -> None:
    if config is None and land is None:
        return
    clear_caches()
    cfg = reload_config(config)
    if land is not None:
        cfg.land.polygons_path = str(land)


@app.command()
def plan(
    legs_file: Path = typer.Argument(..., exists=True, help="JSON file: a list of legs or {days: [...], vessel: {...}}"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Path to save the result JSON"),
    config: Optional[Path] = typer.Option(None, "--config", help="Routing config YAML"),
    land: Optional[Path] = typer.Option(None, "--land", help="Land polygon dataset (overrides config)"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Legs routed in parallel"),
) -> None:
    """Route every leg in LEGS_FILE and print one result per leg."""
    _configure(config, land)
    payload = json.loads(legs_file.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        days, vessel = payload.get("days"), Vessel.from_request(payload)
    else:
        days, vessel = payload, None
    if not isinstance(days, list) or not days:
        typer.echo("days array is required", err=True)
        raise typer.Exit(1)

    results = plan_legs(
        days,
        get_land_store(),
        config=get_router_config(),
        vessel=vessel,
        channels=get_channel_graph(),
        max_workers=workers,
    )
    text = json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False)
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Saved {len(results)} legs to {output}")
    else:
        typer.echo(text)


@app.command()
def check(
    point: str = typer.Argument(..., help="lat,lng"),
    config: Optional[Path] = typer.Option(None, "--config", help="Routing config YAML"),
    land: Optional[Path] = typer.Option(None, "--land", help="Land polygon dataset (overrides config)"),
) -> None:
    """Report whether a coordinate is on raw or buffered land."""
    _configure(config, land)
    lat, lng = map(float, point.split(","))
    store = get_land_store()
    p = GeoPoint(lat, lng)
    typer.echo(f"raw land: {is_land(store, p, buffered=False)}")
    typer.echo(f"buffered land ({store.buffer_km:.3f} km): {is_land(store, p)}")
