"""Typer CLI for preprocessing and safe-route planning."""
from __future__ import annotations

import typer

from coastal_router.cli import preprocess_cmd, route_cmd

app = typer.Typer(help="Land-avoiding waypoint synthesis for coastal voyages")
app.add_typer(route_cmd.app, name="route")
app.add_typer(preprocess_cmd.app, name="preprocess")


@app.command()
def info() -> None:
    """Show the active configuration and whether land data is available."""
    from coastal_router.core.config import get_config, resolve_path

    cfg = get_config()
    polygons = resolve_path(cfg.land.polygons_path)
    typer.echo("=== Coastal Router Configuration ===")
    typer.echo(f"Land polygons: {polygons} ({'found' if polygons.exists() else 'not found'})")
    typer.echo(f"Safety buffer: {cfg.land.buffer_km:.3f} km, tiles {cfg.land.tile_deg}°")
    if cfg.land.region_bbox:
        typer.echo(f"Region: {cfg.land.region_bbox}")
    tiers = ", ".join(f"<{int(max_km)} km: {step} km" for max_km, step in cfg.grid.step_tiers)
    typer.echo(f"Grid steps: {tiers}, else {cfg.grid.max_step_km} km")
    typer.echo(f"Ring search: {cfg.grid.max_rings} rings")
    typer.echo(f"Iterations: {cfg.search.base_iterations} + {cfg.search.iterations_per_km}/km "
               f"(max {cfg.search.max_iterations})")
    typer.echo(f"Simplify tolerance: {cfg.simplify.tolerance_km} km")
    typer.echo(f"Channel graph: {cfg.channels.graph_path or 'disabled'}")


if __name__ == "__main__":
    app()
