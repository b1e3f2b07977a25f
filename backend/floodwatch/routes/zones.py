from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query

from floodwatch.db.dynamo import list_active_sos_requests, list_all_sos_requests
from floodwatch.models.sos import Severity
from floodwatch.services.density import (
    DEFAULT_GRID_SIZE,
    calculate_density_zones,
    filter_zones,
    zones_in_bbox,
)

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("/density")
def density_zones(
    grid_size: float = Query(DEFAULT_GRID_SIZE, description="Degrees per grid cell edge"),
    tier: Literal["all", "high", "medium", "low"] = Query("all", description="Zone filter"),
    severity: Optional[Severity] = Query(None, description="Only pins of this urgency"),
    include_resolved: bool = Query(False, description="Also count resolved requests"),
    min_lat: Optional[float] = Query(None, description="Viewport minimum latitude"),
    max_lat: Optional[float] = Query(None, description="Viewport maximum latitude"),
    min_lng: Optional[float] = Query(None, description="Viewport minimum longitude"),
    max_lng: Optional[float] = Query(None, description="Viewport maximum longitude"),
):
    """
    Density circles for the live map, recomputed from the current SOS rows
    on every call. High tier comes first so it draws on top.
    """
    bbox = (min_lat, max_lat, min_lng, max_lng)
    if any(v is not None for v in bbox) and any(v is None for v in bbox):
        raise HTTPException(status_code=400, detail="Give all of min_lat, max_lat, min_lng, max_lng or none")

    if include_resolved:
        rows = list_all_sos_requests(severity=severity)
    else:
        rows = list_active_sos_requests()
        if severity:
            rows = [r for r in rows if r.get("severity") == severity]

    # InvalidArgument / ValidationError surface as 400 via the app-level handler
    zones = calculate_density_zones(rows, grid_size=grid_size)
    zones = filter_zones(zones, tier)
    if min_lat is not None:
        zones = zones_in_bbox(zones, min_lat, max_lat, min_lng, max_lng)

    data = [z.model_dump() for z in zones]
    return {"success": True, "data": data, "count": len(data)}
