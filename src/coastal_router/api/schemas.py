"""API request and response models."""
from __future__ import annotations

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SafeRouteRequest(BaseModel):
    """Itinerary legs plus an optional vessel descriptor.

    Days and vessel fields are loosely typed: each leg is parsed on its own by
    the router, so a single malformed leg is reported as failed instead of
    rejecting the whole batch.
    """

    days: Any = Field(None, description="Ordered legs: {day, from, to, fromLat, fromLng, toLat, toLng}")
    vessel: Any = Field(None, description="{draft_m, type, air_draft_m, cruise_speed_kn}; reserved, not used for routing")
    vesselDraft: Any = None
    vesselType: Any = None
    vesselAirDraft: Any = None
    cruiseSpeedKn: Any = None


class WaypointOut(BaseModel):
    lat: float
    lng: float
    note: Optional[str] = None


class LegResultOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: Any = None
    from_: str = Field("", alias="from")
    to: str = ""
    waypoints: List[WaypointOut] = []
    failed: bool = False
    error: Optional[str] = None


class SafeRouteResponse(BaseModel):
    success: bool = True
    safeRoute: List[LegResultOut]
