import math
from typing import List, Optional, Sequence

import numpy as np

from config import METERS_PER_DEGREE_LAT, METERS_PER_MILE, RADIUS_JITTER, ROAD_WINDING_FACTOR
from utils.geo import (
    LatLng,
    get_waypoint_count,
    interior_point,
    is_active_boundary,
    nearest_point_on_polygon,
    point_in_polygon,
)


def base_radius(distance_miles: float, winding_factor: float = ROAD_WINDING_FACTOR) -> float:
    """Loop radius in meters whose circumference, after road winding, matches the target distance."""
    return distance_miles * METERS_PER_MILE / (2 * math.pi * winding_factor)


def adjusted_radius(distance_miles: float, observed_m: float, previous_radius: Optional[float] = None,
                    overshoot_bias: float = 1.0) -> float:
    """
    Correct a radius from an observed route distance.

    Scales the previous radius (or the model radius if there is none) by
    sqrt(biased target / observed).
    """
    target_m = distance_miles * METERS_PER_MILE * overshoot_bias
    ratio = target_m / observed_m
    return (previous_radius or base_radius(distance_miles)) * math.sqrt(ratio)


def generate_waypoints(
    start_lat: float,
    start_lng: float,
    distance_miles: float,
    radius_override: Optional[float] = None,
    boundary: Optional[Sequence[LatLng]] = None,
    random_state=None,
) -> List[LatLng]:
    """
    Place waypoints on a rough circle around the start.

    All waypoints share one random rotation; each gets its own radius jitter.
    With an active boundary, points falling outside it are pulled back onto
    (just inside) its nearest edge.

    Args:
        radius_override: Loop radius in meters. None or 0 derives it from the distance.
        boundary: Polygon vertices as (lat, lng). Fewer than 3 vertices is ignored.
        random_state: Seed or numpy Generator.
    """
    rng = np.random.default_rng(random_state)

    count = get_waypoint_count(distance_miles)
    radius = radius_override or base_radius(distance_miles)
    constrained = is_active_boundary(boundary)

    offset = rng.uniform(0, 2 * math.pi)
    meters_per_degree_lng = METERS_PER_DEGREE_LAT * math.cos(math.radians(start_lat))

    waypoints = []
    for i in range(count):
        angle = offset + 2 * math.pi * i / count
        r = radius * rng.uniform(*RADIUS_JITTER)

        lat = start_lat + r * math.cos(angle) / METERS_PER_DEGREE_LAT
        lng = start_lng + r * math.sin(angle) / meters_per_degree_lng

        if constrained and not point_in_polygon(lat, lng, boundary):
            lat, lng = nearest_point_on_polygon(lat, lng, boundary)
            # the inward nudge can miss at a re-entrant edge of a concave boundary
            if not point_in_polygon(lat, lng, boundary):
                lat, lng = interior_point(boundary)

        waypoints.append((float(lat), float(lng)))

    return waypoints


def adjust_waypoints(
    start_lat: float,
    start_lng: float,
    distance_miles: float,
    actual_distance_m: float,
    boundary: Optional[Sequence[LatLng]] = None,
    random_state=None,
) -> List[LatLng]:
    """Regenerate waypoints from the model radius corrected by one observed route distance."""
    radius = adjusted_radius(distance_miles, actual_distance_m)
    return generate_waypoints(start_lat, start_lng, distance_miles, radius, boundary, random_state)
