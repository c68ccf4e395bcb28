from typing import List, Optional, Tuple

routes_to_gmaps = {
    "DRIVE": "driving",
    "BICYCLE": "bicycling",
    "WALK": "walking",
}


def build_google_maps_url(
        start: Optional[Tuple[float, float]],
        waypoints: List[Tuple[float, float]],
        travel_mode: str = "WALK",
) -> Optional[str]:
    """Google Maps directions link for the loop start -> waypoints -> start."""
    if travel_mode not in routes_to_gmaps:
        raise ValueError(f"Unsupported travel mode '{travel_mode}'")
    if not start or not waypoints:
        return None

    points = [start, *waypoints, start]
    path = "/".join(f"{lat:.6f},{lng:.6f}" for lat, lng in points)

    return f"https://www.google.com/maps/dir/{path}?travelmode={routes_to_gmaps[travel_mode]}"
