# backend/floodwatch/services/density.py
"""
Density zones for the live map.

SOS pins are bucketed into a uniform lat/lng grid; every non-empty cell
becomes one circle (center = centroid, radius = spread of the pins) that
the map draws colored by tier. Distances are plain Euclidean in degrees
converted with a flat 111 km/deg factor: good enough at city scale, not
geodesically correct away from the equator.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Tuple

from shapely.geometry import Point, box as make_bbox

from floodwatch.models.zone import DensityZone, LatLng

DEFAULT_GRID_SIZE = 0.01          # degrees per cell edge (~1.1 km at the equator)
METERS_PER_DEGREE = 111000.0
RADIUS_PADDING = 1.5
MIN_RADIUS_M = 200.0
MAX_RADIUS_M = 800.0

HIGH_MIN_COUNT = 5
MEDIUM_MIN_COUNT = 3

TIER_ORDER: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}
TIER_COLORS: Dict[str, str] = {
    "high": "#EF4444",    # red
    "medium": "#F59E0B",  # amber
    "low": "#22C55E",     # green
}
ZONE_FILTERS = ("all", "high", "medium", "low")
COORD_LIMITS: Dict[str, float] = {"latitude": 90.0, "longitude": 180.0}

CellKey = Tuple[int, int]


class InvalidArgument(ValueError):
    """Bad aggregation parameter (grid size, tier filter, bbox)."""


class ValidationError(ValueError):
    """An input point has a missing, non-finite or out-of-range coordinate."""


# ---------- helpers ----------
def tier_for_count(count: int) -> str:
    if count >= HIGH_MIN_COUNT:
        return "high"
    elif count >= MEDIUM_MIN_COUNT:
        return "medium"
    return "low"


def tier_color(tier: str) -> str:
    return TIER_COLORS[tier]


def _coord(point: Any, name: str) -> float:
    """
    Read `name` from a mapping (Dynamo item / dict) or an attribute
    (pydantic model). Decimal and numeric strings are accepted.
    """
    if isinstance(point, dict):
        raw = point.get(name)
    else:
        raw = getattr(point, name, None)
    if raw is None or isinstance(raw, bool):
        raise ValidationError(f"point is missing a numeric {name}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} is not numeric: {raw!r}")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")
    limit = COORD_LIMITS[name]
    if not -limit <= value <= limit:
        raise ValidationError(f"{name} must be within ±{limit:g} degrees, got {value}")
    return value


def _check_grid_size(grid_size: Any) -> float:
    try:
        size = float(grid_size)
    except (TypeError, ValueError):
        raise InvalidArgument(f"grid_size must be a number, got {grid_size!r}")
    if not math.isfinite(size) or size <= 0:
        raise InvalidArgument(f"grid_size must be > 0, got {grid_size!r}")
    return size


def _cell_to_zone(members: List[Tuple[float, float]]) -> DensityZone:
    n = len(members)
    # fsum is exactly rounded, so the centroid does not depend on point order
    center_lat = math.fsum(lat for lat, _ in members) / n
    center_lng = math.fsum(lng for _, lng in members) / n

    max_distance = max(math.hypot(lat - center_lat, lng - center_lng) for lat, lng in members)
    radius = max(MIN_RADIUS_M, min(MAX_RADIUS_M, max_distance * METERS_PER_DEGREE * RADIUS_PADDING))

    tier = tier_for_count(n)
    return DensityZone(
        center=LatLng(latitude=center_lat, longitude=center_lng),
        radius=radius,
        tier=tier,
        count=n,
        color=tier_color(tier),
    )


# ---------- public API ----------
def _cell_index(value: float, size: float) -> int:
    scaled = value / size
    if not math.isfinite(scaled):
        raise InvalidArgument(f"grid_size {size!r} is too small for coordinate {value}")
    return math.floor(scaled)


def density_zones_by_cell(points: Iterable[Any], grid_size: float = DEFAULT_GRID_SIZE) -> Dict[CellKey, DensityZone]:
    """
    One DensityZone per non-empty grid cell, keyed by (lat index, lng index)
    and in sorted key order.

    Raises InvalidArgument for a non-positive (or uselessly tiny) grid size
    and ValidationError for any point without finite in-range coordinates
    (nothing is returned in that case).
    """
    size = _check_grid_size(grid_size)

    grid: Dict[CellKey, List[Tuple[float, float]]] = {}
    for p in points:
        lat = _coord(p, "latitude")
        lng = _coord(p, "longitude")
        key = (_cell_index(lat, size), _cell_index(lng, size))
        grid.setdefault(key, []).append((lat, lng))

    # sorted cell keys keep the output identical for any permutation of the input
    return {key: _cell_to_zone(grid[key]) for key in sorted(grid)}


def calculate_density_zones(points: Iterable[Any], grid_size: float = DEFAULT_GRID_SIZE) -> List[DensityZone]:
    """
    Bucket points into grid cells of `grid_size` degrees and return one
    DensityZone per non-empty cell, high tier first.
    """
    zones = list(density_zones_by_cell(points, grid_size).values())
    zones.sort(key=lambda z: TIER_ORDER[z.tier])
    return zones


def filter_zones(zones: List[DensityZone], tier: str = "all") -> List[DensityZone]:
    """Map 'zone filter' toggle: all / high / medium / low."""
    if tier not in ZONE_FILTERS:
        raise InvalidArgument(f"tier must be one of {', '.join(ZONE_FILTERS)}")
    if tier == "all":
        return list(zones)
    return [z for z in zones if z.tier == tier]


def zones_in_bbox(
    zones: List[DensityZone],
    min_lat: float,
    max_lat: float,
    min_lng: float,
    max_lng: float,
) -> List[DensityZone]:
    """Keep zones whose center falls inside the viewport box."""
    if min_lat > max_lat or min_lng > max_lng:
        raise InvalidArgument("bbox min values must not exceed max values")
    bb = make_bbox(min_lng, min_lat, max_lng, max_lat)  # shapely is (x=lng, y=lat)
    return [z for z in zones if bb.covers(Point(z.center.longitude, z.center.latitude))]
