"""Unit tests for distance and heading helpers."""

import pytest

from src.domain.distance import (
    bearing_deg,
    haversine_km,
    interpolate,
    location_distance_km,
)
from src.domain.entities import Location


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(-29.41, -66.85, -29.41, -66.85) == 0.0

    def test_known_distance(self):
        # Plaza 25 de Mayo -> Parque de la Ciudad, La Rioja (~4.5 km)
        d = haversine_km(-29.4131, -66.8558, -29.4442, -66.8885)
        assert 4.0 < d < 5.0

    def test_symmetric(self):
        a, b = Location(-29.0, -66.0), Location(-30.0, -67.0)
        assert abs(location_distance_km(a, b) - location_distance_km(b, a)) < 1e-9


class TestBearing:
    origin = Location(-29.4131, -66.8558)

    def test_north_is_zero(self):
        north = Location(self.origin.latitude + 0.001, self.origin.longitude)
        assert bearing_deg(self.origin, north) == pytest.approx(0.0)

    def test_east_is_ninety(self):
        east = Location(self.origin.latitude, self.origin.longitude + 0.001)
        assert bearing_deg(self.origin, east) == pytest.approx(90.0)

    def test_south_is_one_eighty(self):
        south = Location(self.origin.latitude - 0.001, self.origin.longitude)
        assert bearing_deg(self.origin, south) == pytest.approx(180.0)

    def test_west_is_two_seventy(self):
        west = Location(self.origin.latitude, self.origin.longitude - 0.001)
        assert bearing_deg(self.origin, west) == pytest.approx(270.0)

    def test_north_east_diagonal(self):
        ne = Location(self.origin.latitude + 0.001, self.origin.longitude + 0.001)
        assert bearing_deg(self.origin, ne) == pytest.approx(45.0)

    def test_result_in_range(self):
        for dlat, dlng in [(-1, -1), (-1, 1), (1, -1), (0.2, -3), (-0.0001, 0.5)]:
            end = Location(self.origin.latitude + dlat, self.origin.longitude + dlng)
            assert 0.0 <= bearing_deg(self.origin, end) < 360.0

    def test_negligible_move_keeps_previous_heading(self):
        nudge = Location(self.origin.latitude + 1e-9, self.origin.longitude - 1e-9)
        assert bearing_deg(self.origin, nudge, previous=123.0) == 123.0
        assert bearing_deg(self.origin, self.origin, previous=42.0) == 42.0


class TestInterpolate:
    def test_endpoints_and_midpoint(self):
        a, b = Location(0.0, 0.0), Location(2.0, 4.0)
        assert interpolate(a, b, 0.0) == Location(0.0, 0.0)
        assert interpolate(a, b, 1.0) == Location(2.0, 4.0)
        assert interpolate(a, b, 0.5) == Location(1.0, 2.0)
