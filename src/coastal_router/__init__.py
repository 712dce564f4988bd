"""Coastal safe-route synthesis: land-avoiding waypoints for multi-day itineraries."""

__all__ = [
    "core",
    "land",
    "routing",
    "api",
    "cli",
]
