import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from config import MAX_ATTEMPTS, METERS_PER_MILE, TOLERANCE_POLICY
from routing.waypoints import adjusted_radius, base_radius, generate_waypoints
from utils.geo import LatLng, haversine_distance

logger = logging.getLogger(__name__)

RouteFetcher = Callable[[LatLng, List[LatLng]], Dict[str, Any]]


class NoRouteFoundError(Exception):
    """The routing provider found no route through the waypoints."""

    def __init__(self, message: str = "No route found. Try a different starting location."):
        super().__init__(message)


@dataclass(frozen=True)
class TolerancePolicy:
    """
    When an observed route distance is close enough to the target.

    max_over / max_under are fractions of the target; overshoot_bias scales the
    target used for radius correction (not for acceptance).
    """
    name: str
    max_over: float
    max_under: float
    overshoot_bias: float = 1.0

    def accepts(self, pct_diff: float) -> bool:
        return -self.max_under <= pct_diff <= self.max_over


ASYMMETRIC = TolerancePolicy("asymmetric", max_over=0.10, max_under=0.03, overshoot_bias=1.05)
SYMMETRIC = TolerancePolicy("symmetric", max_over=0.10, max_under=0.10)

TOLERANCE_POLICIES = {p.name: p for p in (ASYMMETRIC, SYMMETRIC)}


def get_tolerance_policy(name: str = TOLERANCE_POLICY) -> TolerancePolicy:
    try:
        return TOLERANCE_POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown tolerance policy '{name}'") from None


@dataclass(frozen=True)
class RefinementState:
    attempt: int = 0
    last_radius: Optional[float] = None
    last_observed_m: Optional[float] = None


@dataclass
class LoopRoute:
    waypoints: List[LatLng]
    route: Dict[str, Any]
    distance_m: float
    target_m: float
    pct_diff: float
    attempts: int
    radius_m: float
    within_tolerance: bool
    policy: TolerancePolicy = field(default=ASYMMETRIC)


def next_radius(state: RefinementState, distance_miles: float, policy: TolerancePolicy) -> Optional[float]:
    """Radius for the next attempt; None means use the model radius."""
    if state.attempt == 0 or not state.last_observed_m:
        return None
    return adjusted_radius(distance_miles, state.last_observed_m, state.last_radius, policy.overshoot_bias)


def generate_loop_route(
    start: LatLng,
    distance_miles: float,
    fetch_route: RouteFetcher,
    boundary: Optional[Sequence[LatLng]] = None,
    policy: Optional[TolerancePolicy] = None,
    max_attempts: int = MAX_ATTEMPTS,
    random_state=None,
) -> LoopRoute:
    """
    Generate waypoints, route them, and correct the radius until the route
    distance is within tolerance or the attempt budget runs out.

    fetch_route(origin, waypoints) must return the provider JSON with a
    "routes" list. Each attempt waits for its route before the next radius is
    computed. The last route is accepted when the budget is spent.

    Raises:
        NoRouteFoundError: the provider returned zero routes.
    """
    policy = policy or get_tolerance_policy()
    rng = np.random.default_rng(random_state)
    target_m = distance_miles * METERS_PER_MILE
    start_lat, start_lng = start

    state = RefinementState()
    while True:
        radius = next_radius(state, distance_miles, policy)
        used_radius = radius or base_radius(distance_miles)
        waypoints = generate_waypoints(start_lat, start_lng, distance_miles, radius, boundary, rng)

        data = fetch_route(start, waypoints)
        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFoundError()

        route = routes[0]
        observed_m = float(route.get("distanceMeters", 0))
        state = replace(state, attempt=state.attempt + 1, last_radius=used_radius, last_observed_m=observed_m)

        pct_diff = (observed_m - target_m) / target_m
        within = policy.accepts(pct_diff)
        spread = max(haversine_distance(start, wp) for wp in waypoints)
        logger.info(
            "Attempt %d/%d | radius %.0f m | max spread %.0f m | route %.0f m vs target %.0f m (%+.1f%%)",
            state.attempt, max_attempts, used_radius, spread, observed_m, target_m, pct_diff * 100,
        )

        if within or state.attempt >= max_attempts:
            if not within:
                logger.warning(
                    "Attempt budget spent; accepting %.0f m route (%+.1f%% off target, %s policy)",
                    observed_m, pct_diff * 100, policy.name,
                )
            return LoopRoute(
                waypoints=waypoints,
                route=route,
                distance_m=observed_m,
                target_m=target_m,
                pct_diff=pct_diff,
                attempts=state.attempt,
                radius_m=used_radius,
                within_tolerance=within,
                policy=policy,
            )

