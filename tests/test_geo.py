from __future__ import annotations

import pytest

from profile_detect.geo import InvalidCoordinateError, haversine_m, is_inside_circle, parse_lat_lng


def test_identical_points_are_zero_apart():
    assert haversine_m(59.3293, 18.0686, 59.3293, 18.0686) == 0.0
    assert haversine_m(0.0, 0.0, 0.0, 0.0) == 0.0


def test_stockholm_pair_about_one_km():
    # 0.009 degrees of latitude north of Stockholm city centre
    d = haversine_m(59.3293, 18.0686, 59.3383, 18.0686)
    assert d == pytest.approx(1000.0, rel=0.01)


def test_distance_is_symmetric():
    a = haversine_m(59.3105, 18.1640, 59.3326, 18.0649)
    b = haversine_m(59.3326, 18.0649, 59.3105, 18.1640)
    assert a == pytest.approx(b)
    assert 5000 < a < 7000


def test_circle_boundary_counts_as_inside():
    d = haversine_m(59.3293, 18.0686, 59.3383, 18.0686)
    assert is_inside_circle(59.3383, 18.0686, 59.3293, 18.0686, d)
    assert not is_inside_circle(59.3383, 18.0686, 59.3293, 18.0686, d - 1.0)


def test_parse_lat_lng_accepts_query_text():
    assert parse_lat_lng(" 59.3293", "18.0686 ") == (59.3293, 18.0686)
    assert parse_lat_lng(59, 18) == (59.0, 18.0)


@pytest.mark.parametrize(
    "lat,lng",
    [("abc", "18.0"), ("59.3", ""), ("91", "18"), ("59", "-181"), ("nan", "18"), ("inf", "0")],
)
def test_parse_lat_lng_rejects_malformed(lat, lng):
    with pytest.raises(InvalidCoordinateError):
        parse_lat_lng(lat, lng)


def test_invalid_coordinate_is_a_value_error():
    assert issubclass(InvalidCoordinateError, ValueError)
