import math
from typing import Optional, Sequence, Tuple

from shapely import make_valid
from shapely.geometry import Point, Polygon

from config import BOUNDARY_NUDGE, WAYPOINT_COUNT_BANDS

LatLng = Tuple[float, float]


def get_waypoint_count(distance_miles: float) -> int:
    """Number of loop waypoints for a target distance. Depends on distance only."""
    for upper_miles, count in WAYPOINT_COUNT_BANDS:
        if distance_miles < upper_miles:
            return count
    return WAYPOINT_COUNT_BANDS[-1][1]


def is_active_boundary(polygon: Optional[Sequence[LatLng]]) -> bool:
    """A boundary only constrains waypoints once it has at least 3 vertices."""
    return polygon is not None and len(polygon) >= 3


def _to_shape(polygon: Sequence[LatLng]):
    # shapely works in (x, y) = (lng, lat)
    shape = Polygon([(lng, lat) for lat, lng in polygon])
    if not shape.is_valid:
        # self-intersecting rings split into their even-odd regions
        shape = make_valid(shape)
    return shape


def point_in_polygon(lat: float, lng: float, polygon: Sequence[LatLng]) -> bool:
    """
    Return True if (lat, lng) lies inside the polygon.

    The ring is implicitly closed (last vertex connects back to the first).
    Points exactly on an edge may go either way.
    """
    return _to_shape(polygon).contains(Point(lng, lat))


def project_to_segment(lat: float, lng: float, a: LatLng, b: LatLng) -> LatLng:
    """Closest point to (lat, lng) on the segment a-b, in planar degree space."""
    dy = b[0] - a[0]
    dx = b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return a[0], a[1]

    t = ((lng - a[1]) * dx + (lat - a[0]) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    return a[0] + t * dy, a[1] + t * dx


def polygon_centroid(polygon: Sequence[LatLng]) -> LatLng:
    """Unweighted mean of the polygon's vertices."""
    n = len(polygon)
    return sum(p[0] for p in polygon) / n, sum(p[1] for p in polygon) / n


def nearest_point_on_polygon(lat: float, lng: float, polygon: Sequence[LatLng],
                             nudge: float = BOUNDARY_NUDGE) -> LatLng:
    """
    Pull an outside point back into the polygon.

    Projects the point onto every edge, keeps the closest projection, then moves
    it `nudge` of the way toward the vertex centroid so it tests as interior
    rather than sitting on the edge.
    """
    best_dist = math.inf
    best_point = (lat, lng)

    for i in range(len(polygon)):
        proj = project_to_segment(lat, lng, polygon[i - 1], polygon[i])
        d = (proj[0] - lat) ** 2 + (proj[1] - lng) ** 2
        if d < best_dist:
            best_dist = d
            best_point = proj

    c_lat, c_lng = polygon_centroid(polygon)
    return (best_point[0] + (c_lat - best_point[0]) * nudge,
            best_point[1] + (c_lng - best_point[1]) * nudge)


def haversine_distance(coord1: LatLng, coord2: LatLng) -> float:
    """Return distance in meters between two (lat, lon) coordinates."""
    R = 6371000
    lat1, lon1 = map(math.radians, coord1)
    lat2, lon2 = map(math.radians, coord2)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return R * c


def interior_point(polygon: Sequence[LatLng]) -> LatLng:
    """A point guaranteed to lie inside the polygon (not necessarily its centroid)."""
    p = _to_shape(polygon).representative_point()
    return p.y, p.x
