# backend/floodwatch/models/zone.py
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

Tier = Literal["high", "medium", "low"]


class IncidentPoint(BaseModel):
    # only lat/lng matter for aggregation; anything else rides along untouched
    model_config = ConfigDict(extra="allow")

    latitude: float = Field(..., description="Latitude (decimal degrees)")
    longitude: float = Field(..., description="Longitude (decimal degrees)")
    id: Optional[str] = Field(None, description="SOS request id, if any")


class LatLng(BaseModel):
    latitude: float
    longitude: float


class DensityZone(BaseModel):
    center: LatLng = Field(..., description="Centroid of the points in the grid cell")
    radius: float = Field(..., ge=200, le=800, description="Circle radius in meters")
    tier: Tier = Field(..., description="Density tier derived from point count")
    count: int = Field(..., ge=1, description="Number of SOS points in this zone")
    color: str = Field(..., description="Render color for the tier (hex)")
