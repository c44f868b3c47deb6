import math
import pytest
from dataclasses import dataclass
from typing import Optional

from app.core.geo import (
    EARTH_RADIUS_KM, haversine_km, is_valid_latitude, is_valid_longitude, within_radius,
)

@dataclass
class Point:
    id: int
    latitude: Optional[float]
    longitude: Optional[float]

class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(40.0, -75.0, 40.0, -75.0) == 0.0

    def test_one_degree_of_latitude(self):
        # 1 degree of arc on a 6371 km sphere
        expected = EARTH_RADIUS_KM * math.pi / 180
        assert haversine_km(40.0, -75.0, 41.0, -75.0) == pytest.approx(expected, rel=1e-9)
        assert expected == pytest.approx(111.19, abs=0.01)

    def test_symmetric(self):
        a = haversine_km(51.5074, -0.1278, 48.8566, 2.3522)
        b = haversine_km(48.8566, 2.3522, 51.5074, -0.1278)
        assert a == pytest.approx(b)
        # London - Paris
        assert a == pytest.approx(343.5, abs=1.0)

    def test_antipodal_points(self):
        assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)

    def test_across_antimeridian(self):
        assert haversine_km(0.0, 179.5, 0.0, -179.5) == pytest.approx(EARTH_RADIUS_KM * math.pi / 180)

class TestValidation:
    @pytest.mark.parametrize("value", [-90.0, 0.0, 90.0])
    def test_valid_latitude(self, value):
        assert is_valid_latitude(value)

    @pytest.mark.parametrize("value", [-90.0001, 90.5, float("nan"), float("inf")])
    def test_invalid_latitude(self, value):
        assert not is_valid_latitude(value)

    @pytest.mark.parametrize("value", [-180.0, 180.0])
    def test_valid_longitude(self, value):
        assert is_valid_longitude(value)

    @pytest.mark.parametrize("value", [-180.1, 181.0, float("nan")])
    def test_invalid_longitude(self, value):
        assert not is_valid_longitude(value)

class TestWithinRadius:
    def test_filters_and_orders_by_distance(self):
        points = [
            Point(1, 40.5, -75.0),   # ~55 km
            Point(2, 40.0, -75.0),   # 0 km
            Point(3, 45.0, -75.0),   # ~556 km
            Point(4, None, None),
            Point(5, 40.1, -75.0),   # ~11 km
        ]

        matches = within_radius(points, 40.0, -75.0, 100.0)

        assert [p.id for p, _ in matches] == [2, 5, 1]
        distances = [d for _, d in matches]
        assert distances == sorted(distances)

    def test_boundary_is_inclusive(self):
        target = Point(1, 40.3, -74.8)
        exact = haversine_km(40.0, -75.0, target.latitude, target.longitude)

        assert [p.id for p, _ in within_radius([target], 40.0, -75.0, exact)] == [1]
        assert within_radius([target], 40.0, -75.0, exact - 1e-6) == []

    def test_ties_broken_by_id(self):
        points = [Point(9, 41.0, -75.0), Point(3, 39.0, -75.0)]
        matches = within_radius(points, 40.0, -75.0, 200.0)
        assert [p.id for p, _ in matches] == [3, 9]

    def test_zero_radius_matches_exact_point(self):
        points = [Point(1, 40.0, -75.0), Point(2, 40.0001, -75.0)]
        assert [p.id for p, _ in within_radius(points, 40.0, -75.0, 0.0)] == [1]
