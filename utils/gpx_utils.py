import os
import uuid
from typing import List, Tuple

import gpxpy
import gpxpy.gpx

from config import GPX_DIR


def create_gpx_file(route_coords: List[Tuple[float, float]], output_dir: str = GPX_DIR,
                    name: str = "Loop route") -> str:
    """
    Create a GPX track from a list of (lat, lon) tuples and return its file path.
    """
    os.makedirs(output_dir, exist_ok=True)

    gpx = gpxpy.gpx.GPX()
    gpx_track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(gpx_track)
    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    for lat, lon in route_coords:
        gpx_segment.points.append(gpxpy.gpx.GPXTrackPoint(lat, lon))

    filename = f"route_{uuid.uuid4().hex[:8]}.gpx"
    filepath = os.path.join(output_dir, filename)

    with open(filepath, "w", encoding="utf-8") as f:
        f.write(gpx.to_xml())

    return filepath
