import math

import numpy as np
import pytest

from config import METERS_PER_MILE
from routing.waypoints import adjust_waypoints, adjusted_radius, base_radius, generate_waypoints
from utils.geo import haversine_distance, point_in_polygon

NYC = (40.7128, -74.0060)
SQUARE = [(40.710, -74.010), (40.710, -74.002), (40.716, -74.002), (40.716, -74.010)]


def mean_spread(waypoints, start=NYC):
    return np.mean([haversine_distance(start, wp) for wp in waypoints])


def test_base_radius_from_circumference():
    assert base_radius(5) == pytest.approx(5 * 1609.34 / (2 * math.pi * 1.3))
    assert base_radius(5) == pytest.approx(985, abs=1)


def test_five_miles_gives_six_finite_points():
    waypoints = generate_waypoints(*NYC, 5)
    assert len(waypoints) == 6
    for lat, lng in waypoints:
        assert math.isfinite(lat) and math.isfinite(lng)


def test_zero_radius_override_uses_model_radius():
    radius = base_radius(5)
    for seed in range(20):
        waypoints = generate_waypoints(*NYC, 5, radius_override=0, random_state=seed)
        assert len(waypoints) == 6
        for wp in waypoints:
            assert haversine_distance(NYC, wp) < 1.5 * radius
            assert haversine_distance(NYC, wp) > 0.8 * radius


def test_waypoints_follow_the_rotation_in_order():
    waypoints = generate_waypoints(*NYC, 3, random_state=7)
    bearings = [math.atan2(lng - NYC[1], lat - NYC[0]) for lat, lng in waypoints]
    steps = [(b - a) % (2 * math.pi) for a, b in zip(bearings, bearings[1:])]
    # four waypoints a quarter turn apart; longitude compression only bends the angles slightly
    for step in steps:
        assert step == pytest.approx(math.pi / 2, abs=0.5)


def test_seeded_generation_is_reproducible():
    assert generate_waypoints(*NYC, 8, random_state=42) == generate_waypoints(*NYC, 8, random_state=42)


def test_successive_calls_differ():
    assert generate_waypoints(*NYC, 5) != generate_waypoints(*NYC, 5)


def test_shared_generator_advances_between_calls():
    rng = np.random.default_rng(3)
    assert generate_waypoints(*NYC, 5, random_state=rng) != generate_waypoints(*NYC, 5, random_state=rng)


def test_larger_radius_is_farther_on_average():
    rng = np.random.default_rng(0)
    small = [mean_spread(generate_waypoints(*NYC, 5, radius_override=500, random_state=rng)) for _ in range(100)]
    large = [mean_spread(generate_waypoints(*NYC, 5, radius_override=1500, random_state=rng)) for _ in range(100)]
    assert np.mean(large) > np.mean(small)


def test_count_depends_on_distance_only():
    for radius in (None, 50, 5000):
        assert len(generate_waypoints(*NYC, 4, radius_override=radius, boundary=SQUARE)) == 4
        assert len(generate_waypoints(*NYC, 10, radius_override=radius, boundary=SQUARE)) == 6
        assert len(generate_waypoints(*NYC, 20, radius_override=radius, boundary=SQUARE)) == 8


def test_waypoints_stay_inside_boundary():
    rng = np.random.default_rng(2024)
    for _ in range(60):
        miles = rng.uniform(0.5, 20)
        for lat, lng in generate_waypoints(*NYC, miles, boundary=SQUARE, random_state=rng):
            assert point_in_polygon(lat, lng, SQUARE)


def test_waypoints_inside_concave_boundary():
    # L-shaped park around the start; its vertex centroid is inside the L
    l_shape = [(40.700, -74.020), (40.700, -73.990), (40.710, -73.990),
               (40.710, -74.000), (40.725, -74.000), (40.725, -74.020)]
    rng = np.random.default_rng(11)
    for _ in range(50):
        for lat, lng in generate_waypoints(40.705, -74.005, 3, boundary=l_shape, random_state=rng):
            assert point_in_polygon(lat, lng, l_shape)


def test_short_boundary_is_ignored():
    two_points = [(40.710, -74.010), (40.716, -74.002)]
    assert generate_waypoints(*NYC, 5, boundary=two_points, random_state=9) == \
        generate_waypoints(*NYC, 5, random_state=9)


def test_adjusted_radius_shrinks_when_route_too_long():
    target_m = 5 * METERS_PER_MILE
    radius = adjusted_radius(5, 9000)
    assert radius < base_radius(5)
    assert radius == pytest.approx(base_radius(5) * math.sqrt(target_m / 9000))


def test_adjusted_radius_scales_previous_radius_with_bias():
    target_m = 5 * METERS_PER_MILE
    radius = adjusted_radius(5, 7000, previous_radius=1200, overshoot_bias=1.05)
    assert radius == pytest.approx(1200 * math.sqrt(target_m * 1.05 / 7000))


def test_adjust_waypoints_regenerates_at_corrected_radius():
    waypoints = adjust_waypoints(*NYC, 5, 16000, random_state=1)
    assert len(waypoints) == 6
    corrected = base_radius(5) * math.sqrt(5 * METERS_PER_MILE / 16000)
    for wp in waypoints:
        assert haversine_distance(NYC, wp) < 1.2 * corrected


def test_waypoints_inside_concave_boundary_near_reentrant_edge():
    # start just below the notch so northbound waypoints land in it
    l_shape = [(40.700, -74.020), (40.700, -73.990), (40.710, -73.990),
               (40.710, -74.000), (40.725, -74.000), (40.725, -74.020)]
    rng = np.random.default_rng(5)
    for _ in range(50):
        for lat, lng in generate_waypoints(40.709, -73.994, 3, radius_override=800, boundary=l_shape,
                                           random_state=rng):
            assert point_in_polygon(lat, lng, l_shape)
