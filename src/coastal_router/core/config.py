"""Configuration loader and dataclasses for coastal router settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple
import yaml


CONFIG_ENV = "COASTAL_ROUTER_CONFIG"
LAND_ENV = "COASTAL_ROUTER_LAND"


@dataclass
class LandConfig:
    """Land polygon source and safety buffer."""
    polygons_path: str = "data/land/ne_10m_land.shp"
    buffer_km: float = 0.2
    tile_deg: float = 5.0
    cache_path: Optional[str] = None
    region_bbox: Optional[List[float]] = None  # min_lng, min_lat, max_lng, max_lat


@dataclass
class GridConfig:
    """Per-leg grid sizing and endpoint snapping."""
    step_tiers: List[List[float]] = field(default_factory=lambda: [[20.0, 0.4], [60.0, 0.8], [200.0, 2.0]])
    max_step_km: float = 5.0
    pad_cells: int = 12
    min_pad_km: float = 3.0
    max_rings: int = 6

    def step_km_for(self, leg_km: float) -> float:
        for max_leg_km, step_km in sorted(self.step_tiers):
            if leg_km < max_leg_km:
                return float(step_km)
        return self.max_step_km


@dataclass
class SearchConfig:
    """A* iteration budget."""
    base_iterations: int = 5000
    iterations_per_km: float = 400.0
    max_iterations: int = 250000

    def iteration_cap(self, leg_km: float) -> int:
        return int(min(self.base_iterations + self.iterations_per_km * leg_km, self.max_iterations))


@dataclass
class SimplifyConfig:
    """Path simplification configuration."""
    tolerance_km: float = 0.3
    line_of_sight: bool = True
    max_skip: int = 50


@dataclass
class LegConfig:
    """Per-leg orchestration settings."""
    min_leg_km: float = 0.05
    fast_path_offset_ratio: float = 0.04
    fast_path_max_offset_km: float = 1.0
    max_abs_lat: float = 85.0
    coordinate_precision: int = 6
    max_workers: int = 1


@dataclass
class ChannelConfig:
    """Curated channel graph used when the grid search fails."""
    graph_path: Optional[str] = None


@dataclass
class RouterConfig:
    """Complete router configuration."""
    land: LandConfig = field(default_factory=LandConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    simplify: SimplifyConfig = field(default_factory=SimplifyConfig)
    legs: LegConfig = field(default_factory=LegConfig)
    channels: ChannelConfig = field(default_factory=ChannelConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "RouterConfig":
        """Load configuration from a YAML file."""
        with open(path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            land=LandConfig(**data.get('land', {})),
            grid=GridConfig(**data.get('grid', {})),
            search=SearchConfig(**data.get('search', {})),
            simplify=SimplifyConfig(**data.get('simplify', {})),
            legs=LegConfig(**data.get('legs', {})),
            channels=ChannelConfig(**data.get('channels', {})),
        )

    def region_bbox(self) -> Optional[Tuple[float, float, float, float]]:
        if not self.land.region_bbox:
            return None
        min_lng, min_lat, max_lng, max_lat = (float(v) for v in self.land.region_bbox)
        return (min_lng, min_lat, max_lng, max_lat)


def project_root() -> Path:
    """Project root (three levels up from the package directory)."""
    return Path(__file__).resolve().parents[3]


def resolve_path(path: str | Path) -> Path:
    """Resolve a config-relative path against the project root."""
    path = Path(path)
    if path.is_absolute():
        return path
    return project_root() / path


# Global config instance - lazily loaded
_config: Optional[RouterConfig] = None


def get_config(config_path: Optional[Path] = None) -> RouterConfig:
    """Get the global configuration, loading from file if not already loaded.

    Args:
        config_path: Path to the config file. If None, uses $COASTAL_ROUTER_CONFIG
            or configs/routing_defaults.yaml under the project root.

    Returns:
        The RouterConfig instance.
    """
    global _config

    if _config is None or config_path is not None:
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV)
            config_path = Path(env_path) if env_path else project_root() / "configs" / "routing_defaults.yaml"

        if config_path.exists():
            _config = RouterConfig.from_yaml(config_path)
        else:
            _config = RouterConfig()

        land_override = os.environ.get(LAND_ENV)
        if land_override:
            _config.land.polygons_path = land_override

    return _config


def reload_config(config_path: Optional[Path] = None) -> RouterConfig:
    """Force reload of configuration from file."""
    global _config
    _config = None
    return get_config(config_path)
