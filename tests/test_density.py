"""
Unit tests for floodwatch.services.density (grid bucketing of SOS pins).
"""

import math
import random
from decimal import Decimal

import pytest

from floodwatch.models.zone import IncidentPoint
from floodwatch.services.density import (
    InvalidArgument,
    MAX_RADIUS_M,
    MIN_RADIUS_M,
    ValidationError,
    calculate_density_zones,
    density_zones_by_cell,
    filter_zones,
    tier_for_count,
    zones_in_bbox,
)

HAT_YAI = (7.0051, 100.4751)  # comfortably inside one 0.01 cell


def _pts(coords):
    return [{"latitude": lat, "longitude": lng} for lat, lng in coords]


def _scatter(n, seed=7):
    rnd = random.Random(seed)
    return [(7.0 + rnd.uniform(0, 0.08), 100.45 + rnd.uniform(0, 0.08)) for _ in range(n)]


class TestBasics:

    def test_empty_input(self):
        assert calculate_density_zones([]) == []

    def test_single_point(self):
        zones = calculate_density_zones(_pts([HAT_YAI]))
        assert len(zones) == 1
        z = zones[0]
        assert z.count == 1
        assert z.tier == "low"
        assert z.radius == MIN_RADIUS_M
        assert z.center.latitude == HAT_YAI[0]
        assert z.center.longitude == HAT_YAI[1]
        assert z.color == "#22C55E"

    def test_five_close_points_make_one_high_zone(self):
        lat, lng = HAT_YAI
        coords = [(lat, lng), (lat + 0.001, lng), (lat, lng + 0.001),
                  (lat + 0.001, lng + 0.001), (lat + 0.0005, lng + 0.0005)]
        zones = calculate_density_zones(_pts(coords))
        assert len(zones) == 1
        assert zones[0].count == 5
        assert zones[0].tier == "high"
        assert zones[0].color == "#EF4444"

    def test_points_in_different_cells(self):
        lat, lng = HAT_YAI
        zones = calculate_density_zones(_pts([(lat, lng), (lat + 0.02, lng)]))
        assert len(zones) == 2
        assert all(z.count == 1 and z.tier == "low" for z in zones)

    def test_centroid_is_mean(self):
        zones = calculate_density_zones(_pts([(7.001, 100.471), (7.003, 100.475)]))
        assert len(zones) == 1
        assert zones[0].center.latitude == pytest.approx(7.002)
        assert zones[0].center.longitude == pytest.approx(100.473)

    def test_radius_uses_spread(self):
        # two points 0.004 deg apart in latitude -> max distance 0.002 deg
        zones = calculate_density_zones(_pts([(7.001, 100.471), (7.005, 100.471)]))
        expected = 0.002 * 111000 * 1.5  # 333 m, inside the clamp
        assert zones[0].radius == pytest.approx(expected)

    def test_radius_upper_clamp(self):
        # big grid so the far-apart points share a cell
        zones = calculate_density_zones(_pts([(7.0, 100.4), (7.09, 100.49)]), grid_size=1.0)
        assert zones[0].radius == MAX_RADIUS_M

    def test_negative_coordinates_use_floor(self):
        # -0.001 and 0.001 straddle zero -> different cells
        zones = calculate_density_zones(_pts([(-0.001, 10.0), (0.001, 10.0)]))
        assert len(zones) == 2

    def test_accepts_models_and_decimals(self):
        pts = [
            IncidentPoint(latitude=7.0051, longitude=100.4751, id="a", severity="high"),
            {"latitude": Decimal("7.0052"), "longitude": Decimal("100.4752"), "phone": "081"},
        ]
        zones = calculate_density_zones(pts)
        assert len(zones) == 1
        assert zones[0].count == 2

    def test_zones_keyed_by_cell(self):
        by_cell = density_zones_by_cell(_pts([(7.0051, 100.4751), (7.0251, 100.4751), (7.0052, 100.4752)]))
        assert list(by_cell) == [(700, 10047), (702, 10047)]
        assert by_cell[(700, 10047)].count == 2


class TestTiers:

    @pytest.mark.parametrize("count,tier", [
        (1, "low"), (2, "low"), (3, "medium"), (4, "medium"), (5, "high"), (12, "high"),
    ])
    def test_thresholds(self, count, tier):
        assert tier_for_count(count) == tier
        lat, lng = HAT_YAI
        coords = [(lat + i * 0.0001, lng) for i in range(count)]
        zones = calculate_density_zones(_pts(coords))
        assert [(z.count, z.tier) for z in zones] == [(count, tier)]

    def test_sorted_high_medium_low(self):
        coords = []
        coords += [(7.0051 + i * 0.0001, 100.4751) for i in range(1)]    # low
        coords += [(7.0251 + i * 0.0001, 100.4751) for i in range(5)]    # high
        coords += [(7.0451 + i * 0.0001, 100.4751) for i in range(3)]    # medium
        coords += [(7.0651 + i * 0.0001, 100.4751) for i in range(6)]    # high
        zones = calculate_density_zones(_pts(coords))
        assert [z.tier for z in zones] == ["high", "high", "medium", "low"]


class TestProperties:

    def test_every_point_counted_once(self):
        coords = _scatter(200)
        zones = calculate_density_zones(_pts(coords))
        assert sum(z.count for z in zones) == len(coords)
        assert all(z.count >= 1 for z in zones)

    def test_radius_always_clamped(self):
        for grid in (0.001, 0.01, 0.05, 1.0):
            for z in calculate_density_zones(_pts(_scatter(150)), grid_size=grid):
                assert MIN_RADIUS_M <= z.radius <= MAX_RADIUS_M
                assert math.isfinite(z.center.latitude) and math.isfinite(z.center.longitude)

    def test_permutation_invariance(self):
        coords = _scatter(120)
        shuffled = list(coords)
        random.Random(3).shuffle(shuffled)
        a = calculate_density_zones(_pts(coords))
        b = calculate_density_zones(_pts(shuffled))
        assert [z.model_dump() for z in a] == [z.model_dump() for z in b]

    def test_recompute_is_stateless(self):
        pts = _pts(_scatter(40))
        assert calculate_density_zones(pts) == calculate_density_zones(pts)


class TestErrors:

    @pytest.mark.parametrize("grid", [0, -0.01, float("nan"), float("inf"), "abc"])
    def test_bad_grid_size(self, grid):
        with pytest.raises(InvalidArgument):
            calculate_density_zones(_pts([HAT_YAI]), grid_size=grid)

    def test_bad_grid_size_even_when_empty(self):
        with pytest.raises(InvalidArgument):
            calculate_density_zones([], grid_size=0)

    @pytest.mark.parametrize("point", [
        {"latitude": float("nan"), "longitude": 100.0},
        {"latitude": 7.0, "longitude": float("inf")},
        {"latitude": None, "longitude": 100.0},
        {"longitude": 100.0},
        {"latitude": "north", "longitude": 100.0},
    ])
    def test_bad_point(self, point):
        with pytest.raises(ValidationError):
            calculate_density_zones([{"latitude": 7.0, "longitude": 100.0}, point])

    @pytest.mark.parametrize("point", [
        {"latitude": 1e308, "longitude": 100.0},
        {"latitude": 90.5, "longitude": 100.0},
        {"latitude": 7.0, "longitude": -180.01},
    ])
    def test_out_of_range_point(self, point):
        with pytest.raises(ValidationError):
            calculate_density_zones([point])

    def test_huge_coordinates_with_huge_grid(self):
        with pytest.raises(ValidationError):
            calculate_density_zones(_pts([(1e308, 100.0), (1.5e308, 100.0)]), grid_size=1e308)

    def test_grid_too_small_for_coordinates(self):
        # 7.0 / 1e-320 overflows to inf; must not escape as OverflowError
        with pytest.raises(InvalidArgument):
            calculate_density_zones(_pts([(7.0, 100.0)]), grid_size=1e-320)

    def test_extreme_but_valid_input(self):
        zones = calculate_density_zones(_pts([(90.0, 180.0), (-90.0, -180.0)]), grid_size=1e300)
        assert sum(z.count for z in zones) == 2
        assert all(MIN_RADIUS_M <= z.radius <= MAX_RADIUS_M for z in zones)

    def test_errors_are_value_errors(self):
        assert issubclass(InvalidArgument, ValueError)
        assert issubclass(ValidationError, ValueError)


class TestFilters:

    def _zones(self):
        coords = [(7.0051 + i * 0.0001, 100.4751) for i in range(5)]
        coords += [(7.0451 + i * 0.0001, 100.4751) for i in range(3)]
        coords += [(7.0851, 100.4751)]
        return calculate_density_zones(_pts(coords))

    def test_filter_all(self):
        zones = self._zones()
        assert filter_zones(zones, "all") == zones

    def test_filter_tier(self):
        assert [z.tier for z in filter_zones(self._zones(), "medium")] == ["medium"]

    def test_filter_unknown(self):
        with pytest.raises(InvalidArgument):
            filter_zones(self._zones(), "extreme")

    def test_bbox(self):
        kept = zones_in_bbox(self._zones(), 7.0, 7.02, 100.4, 100.5)
        assert [z.tier for z in kept] == ["high"]

    def test_bbox_inverted(self):
        with pytest.raises(InvalidArgument):
            zones_in_bbox(self._zones(), 7.1, 7.0, 100.4, 100.5)
