from typing import Any, Dict, List, Tuple

import polyline

from config import METERS_PER_MILE

FEET_PER_METER = 3.28084
MILES_DISPLAY_THRESHOLD_M = 161  # ~0.1 mi; shorter steps are shown in feet


def parse_steps(route: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Flatten turn-by-turn steps across all legs, numbered from 1.

    Steps without an instruction read "Continue"; missing distances count as 0.
    """
    steps = []
    number = 0
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            number += 1
            instruction = (step.get("navigationInstruction") or {}).get("instructions") or "Continue"
            steps.append({
                "number": number,
                "instruction": instruction,
                "distance_m": step.get("distanceMeters") or 0,
            })
    return steps


def format_step_distance(meters: float) -> str:
    if meters >= MILES_DISPLAY_THRESHOLD_M:
        return f"{meters / METERS_PER_MILE:.2f} mi"
    # round half up
    return f"{int(meters * FEET_PER_METER + 0.5)} ft"


def parse_duration_s(duration: str) -> int:
    """Routes API durations are strings like '5400s'."""
    if not duration:
        return 0
    return int(float(duration.rstrip("s")))


def format_duration(seconds: int) -> str:
    hours, rem = divmod(int(seconds), 3600)
    minutes = rem // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def decode_route_path(route: Dict[str, Any]) -> List[Tuple[float, float]]:
    """Decode the route's overview polyline into (lat, lng) points."""
    encoded = (route.get("polyline") or {}).get("encodedPolyline")
    if not encoded:
        return []
    return [(lat, lng) for lat, lng in polyline.decode(encoded)]


def summarize_route(route: Dict[str, Any]) -> Dict[str, Any]:
    distance_m = route.get("distanceMeters") or 0
    duration_s = parse_duration_s(route.get("duration", ""))
    return {
        "distance_m": distance_m,
        "distance_miles": round(distance_m / METERS_PER_MILE, 2),
        "duration_s": duration_s,
        "duration_text": format_duration(duration_s),
        "steps": [dict(s, distance_text=format_step_distance(s["distance_m"])) for s in parse_steps(route)],
    }
