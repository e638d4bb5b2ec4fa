import math

import pytest

from safestep.geo import (
    angle_difference,
    bearing_between,
    bearing_to_compass,
    haversine_distance,
    is_valid_coordinate,
    point_to_segment_distance,
)

POINTS = [
    (30.2830, -97.7420),
    (30.2850, -97.7395),
    (51.5074, -0.1278),
    (-33.8688, 151.2093),
    (0.0, 0.0),
]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_haversine_is_symmetric(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))


@pytest.mark.parametrize("a", POINTS)
def test_haversine_zero_for_same_point(a):
    assert haversine_distance(*a, *a) == 0


def test_haversine_one_degree_of_latitude():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)


def test_bearing_cardinal_directions():
    assert bearing_between(30.0, -97.0, 30.1, -97.0) == pytest.approx(0, abs=1e-6)
    assert bearing_between(0.0, 0.0, 0.0, 1.0) == pytest.approx(90)
    assert bearing_between(30.1, -97.0, 30.0, -97.0) == pytest.approx(180)
    assert bearing_between(0.0, 1.0, 0.0, 0.0) == pytest.approx(270)


def test_bearing_same_point_is_zero():
    assert bearing_between(30.2830, -97.7420, 30.2830, -97.7420) == 0


def test_angle_difference_wraps():
    assert angle_difference(350, 10) == pytest.approx(20)
    assert angle_difference(10, 350) == pytest.approx(20)
    assert angle_difference(90, 270) == pytest.approx(180)
    assert angle_difference(45, 45) == 0


def test_segment_distance_degenerate_segment_falls_back_to_haversine():
    d = point_to_segment_distance(30.2840, -97.7420, 30.2830, -97.7420, 30.2830, -97.7420)
    assert d == pytest.approx(haversine_distance(30.2840, -97.7420, 30.2830, -97.7420))


def test_segment_distance_perpendicular_to_middle():
    # 0.0003 deg of longitude west of a north-south segment at ~30N is ~29m
    d = point_to_segment_distance(30.2840, -97.7423, 30.2830, -97.7420, 30.2850, -97.7420)
    assert d == pytest.approx(haversine_distance(30.2840, -97.7423, 30.2840, -97.7420), rel=1e-6)
    assert 25 < d < 33


def test_segment_distance_clamps_past_the_end():
    d = point_to_segment_distance(30.2860, -97.7420, 30.2830, -97.7420, 30.2850, -97.7420)
    assert d == pytest.approx(haversine_distance(30.2860, -97.7420, 30.2850, -97.7420))


def test_point_on_segment_is_zero():
    assert point_to_segment_distance(30.2840, -97.7420, 30.2830, -97.7420, 30.2850, -97.7420) == pytest.approx(0, abs=1e-6)


def test_is_valid_coordinate():
    assert is_valid_coordinate(30.2, -97.7)
    assert not is_valid_coordinate(math.nan, -97.7)
    assert not is_valid_coordinate(30.2, math.inf)
    assert not is_valid_coordinate(91, 0)
    assert not is_valid_coordinate(0, -181)
    assert not is_valid_coordinate(None, None)


def test_bearing_to_compass():
    assert bearing_to_compass(0) == "north"
    assert bearing_to_compass(44) == "northeast"
    assert bearing_to_compass(270) == "west"
    assert bearing_to_compass(359) == "north"
