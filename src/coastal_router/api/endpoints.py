"""API routers."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from coastal_router.api.dependencies import get_channel_graph, get_land_store, get_router_config
from coastal_router.api.schemas import SafeRouteRequest, SafeRouteResponse
from coastal_router.core.config import RouterConfig
from coastal_router.core.models import Vessel
from coastal_router.land.store import LandGeometryStore
from coastal_router.routing.channels import ChannelGraph
from coastal_router.routing.legs import plan_legs


router = APIRouter(prefix="/api/trips")


@router.post("/safe-route", response_model=SafeRouteResponse, response_model_by_alias=True,
             response_model_exclude_none=True)
def safe_route(
    request: SafeRouteRequest,
    store: LandGeometryStore = Depends(get_land_store),
    config: RouterConfig = Depends(get_router_config),
    channels: Optional[ChannelGraph] = Depends(get_channel_graph),
) -> dict:
    """Generate land-avoiding waypoints for every leg of an existing itinerary."""
    if not isinstance(request.days, list) or not request.days:
        raise HTTPException(status_code=400, detail="days array is required")

    vessel = Vessel.from_request(request.model_dump())
    results = plan_legs(
        request.days,
        store,
        config=config,
        vessel=vessel,
        channels=channels,
    )
    return {"success": True, "safeRoute": [r.to_dict() for r in results]}
