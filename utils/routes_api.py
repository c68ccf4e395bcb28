import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence

import requests

from config import LANGUAGE_CODE, ROUTES_API_TIMEOUT_S, ROUTES_API_URL, TRAVEL_MODE, UNITS

logger = logging.getLogger(__name__)

FIELD_MASK = ",".join([
    "routes.distanceMeters",
    "routes.duration",
    "routes.polyline.encodedPolyline",
    "routes.legs.distanceMeters",
    "routes.legs.duration",
    "routes.legs.polyline.encodedPolyline",
    "routes.legs.steps.navigationInstruction",
    "routes.legs.steps.distanceMeters",
    "routes.legs.steps.staticDuration",
])


class RoutesAPIError(Exception):
    """The routing provider answered with a non-2xx status."""

    def __init__(self, status_code: int, details: str):
        super().__init__(f"Routes API error ({status_code}): {details}")
        self.status_code = status_code
        self.details = details


def _location(point: Mapping[str, float]) -> Dict[str, Any]:
    return {"location": {"latLng": {"latitude": point["lat"], "longitude": point["lng"]}}}


def build_routes_request(origin: Mapping[str, float], waypoints: Sequence[Mapping[str, float]]) -> Dict[str, Any]:
    """
    Build a computeRoutes body for a loop: destination is the origin and the
    waypoints become ordered intermediates.

    Points are dicts with 'lat' and 'lng'.
    """
    return {
        "origin": _location(origin),
        "destination": _location(origin),
        "intermediates": [_location(wp) for wp in waypoints],
        "travelMode": TRAVEL_MODE,
        "units": UNITS,
        "languageCode": LANGUAGE_CODE,
    }


def fetch_route(origin: Mapping[str, float],
                waypoints: Sequence[Mapping[str, float]],
                api_key: str,
                url: str = ROUTES_API_URL,
                timeout: float = ROUTES_API_TIMEOUT_S,
                session: requests.Session = None) -> Dict[str, Any]:
    """
    Ask the Routes API for a loop through the waypoints and return its JSON.

    Raises:
        RoutesAPIError: the provider rejected the request.
        requests.RequestException: transport failure (not retried here).
    """
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": FIELD_MASK,
    }
    body = build_routes_request(origin, waypoints)

    http = session or requests
    response = http.post(url, json=body, headers=headers, timeout=timeout)

    try:
        data = response.json()
    except ValueError:
        data = {}

    if not response.ok:
        logger.error("Routes API error: %s", data or response.text)
        error = data.get("error") if isinstance(data, dict) else None
        details = error.get("message") if isinstance(error, dict) else error
        raise RoutesAPIError(response.status_code, details or response.text or str(data))

    routes = data.get("routes") or []
    if routes:
        logger.debug("Route fetched | Distance: %s m | Waypoints: %d", routes[0].get("distanceMeters"), len(waypoints))
    return data


def make_route_fetcher(api_key: str, url: str = ROUTES_API_URL, timeout: float = ROUTES_API_TIMEOUT_S,
                       session: requests.Session = None) -> Callable[[tuple, List[tuple]], Dict[str, Any]]:
    """Adapt fetch_route to the (origin, waypoints) collaborator the refinement loop calls with (lat, lng) tuples."""

    def _fetch(origin, waypoints):
        return fetch_route(
            {"lat": origin[0], "lng": origin[1]},
            [{"lat": lat, "lng": lng} for lat, lng in waypoints],
            api_key=api_key,
            url=url,
            timeout=timeout,
            session=session,
        )

    return _fetch
