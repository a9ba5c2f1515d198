"""
Tests for coordinate normalization and planar geometry.
"""

import math

import pytest

from src.fusion_engine.geo import (
    centroid,
    coordinates_from_text,
    normalize,
    planar_distance,
    repair_truncated_latitude,
)
from src.fusion_engine.schemas import Coordinates


class TestNormalize:
    """Accepted coordinate shapes."""

    @pytest.mark.parametrize(
        "raw",
        [
            {"latitude": 49.9, "longitude": 36.4},
            {"lat": 49.9, "lng": 36.4},
            {"lat": 49.9, "lon": 36.4},
            [49.9, 36.4],
            (49.9, 36.4),
            {"coordinates": {"latitude": 49.9, "longitude": 36.4}},
            {"name": "Treeline", "coordinates": [49.9, 36.4]},
            Coordinates(49.9, 36.4),
        ],
    )
    def test_supported_shapes(self, raw):
        assert normalize(raw) == Coordinates(latitude=49.9, longitude=36.4)

    def test_integers_become_floats(self):
        coords = normalize({"lat": 50, "lng": 36})
        assert coords == Coordinates(50.0, 36.0)
        assert isinstance(coords.latitude, float)

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            {},
            {"lat": 49.9},
            {"lat": "49.9", "lng": 36.4},
            {"lat": True, "lng": 36.4},
            {"lat": math.nan, "lng": 36.4},
            {"lat": 49.9, "lng": math.inf},
            [49.9],
            "49.9, 36.4",
            {"coordinates": None},
        ],
    )
    def test_unresolvable_values(self, raw):
        assert normalize(raw) is None

    @pytest.mark.parametrize(
        "raw",
        [
            {"lat": 95.0, "lng": 10.0},
            {"lat": -90.5, "lng": 10.0},
            {"lat": 10.0, "lng": 181.0},
        ],
    )
    def test_out_of_range(self, raw):
        assert normalize(raw) is None

    def test_repair_applied_by_default(self):
        coords = normalize({"lat": 9.92, "lng": 36.42})
        assert coords.latitude == pytest.approx(49.92)
        assert coords.longitude == 36.42

    def test_repair_can_be_disabled(self):
        assert normalize({"lat": 9.92, "lng": 36.42}, repair=False) == Coordinates(9.92, 36.42)


class TestRepairTruncatedLatitude:
    """Leading-digit repair only inside the theatre window."""

    @pytest.mark.parametrize(
        "lat,lng,expected",
        [
            (9.92, 36.42, 49.92),
            (0.0, 35.0, 40.0),
            (5.5, 30.01, 45.5),
            (9.99, 40.99, 49.99),
        ],
    )
    def test_inside_window(self, lat, lng, expected):
        assert repair_truncated_latitude(lat, lng) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "lat,lng",
        [
            (10.0, 36.0),   # latitude upper bound excluded
            (-0.5, 36.0),   # negative latitude
            (5.0, 30.0),    # longitude lower bound excluded
            (5.0, 41.0),    # longitude upper bound excluded
            (5.0, 20.0),
            (49.92, 36.42),
        ],
    )
    def test_outside_window_unchanged(self, lat, lng):
        assert repair_truncated_latitude(lat, lng) == lat


class TestGeometry:

    def test_planar_distance(self):
        assert planar_distance(Coordinates(0.0, 0.0), Coordinates(3.0, 4.0)) == pytest.approx(5.0)

    def test_planar_distance_symmetric(self):
        a, b = Coordinates(49.90, 36.40), Coordinates(49.92, 36.42)
        assert planar_distance(a, b) == pytest.approx(planar_distance(b, a))

    def test_centroid(self):
        points = [Coordinates(0.0, 0.0), Coordinates(2.0, 0.0), Coordinates(1.0, 3.0)]
        assert centroid(points) == Coordinates(1.0, 1.0)


class TestCoordinatesFromText:
    """Coordinate pairs written inside report prose."""

    def test_pair_in_text(self):
        coords = coordinates_from_text("BTR column spotted at 49.98081, 36.25272 moving north")
        assert coords == Coordinates(49.98081, 36.25272)

    def test_no_space_after_comma(self):
        assert coordinates_from_text("grid 50.1,36.2") == Coordinates(50.1, 36.2)

    def test_truncated_latitude_repaired(self):
        coords = coordinates_from_text("Launcher at 9.98081, 36.25272")
        assert coords.latitude == pytest.approx(49.98081)
        assert coords.longitude == 36.25272

    def test_repair_can_be_disabled(self):
        assert coordinates_from_text("at 9.98, 36.25", repair=False) == Coordinates(9.98, 36.25)

    def test_out_of_range_pair_skipped(self):
        coords = coordinates_from_text("bearing 120.5, 200.5 then 49.9, 36.4")
        assert coords == Coordinates(49.9, 36.4)

    @pytest.mark.parametrize(
        "text",
        [None, "", "No grid reference given", "Two BMP-2s and 3 T-72s", 49.9],
    )
    def test_no_coordinates(self, text):
        assert coordinates_from_text(text) is None
