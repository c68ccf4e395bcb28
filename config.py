import os

METERS_PER_MILE = 1609.34  # statute mile
METERS_PER_DEGREE_LAT = 111320  # meters per degree of latitude (longitude scales by cos(lat))
ROAD_WINDING_FACTOR = 1.3  # how much longer real paths are than the straight chords between waypoints

RADIUS_JITTER = (0.85, 1.15)  # per-waypoint radius multiplier range
BOUNDARY_NUDGE = 0.02  # fraction of the way from the boundary point toward the polygon centroid

# (upper bound in miles, waypoint count); the last band has no upper bound
WAYPOINT_COUNT_BANDS = [(5, 4), (13, 6), (float("inf"), 8)]

MAX_ATTEMPTS = 3  # routing calls per refinement run
TOLERANCE_POLICY = "asymmetric"  # asymmetric (+10% / -3%, 5% overshoot bias) or symmetric (+/-10%)

MIN_DISTANCE_MILES = 0.5
MAX_DISTANCE_MILES = 50

TRAVEL_MODE = "WALK"
UNITS = "IMPERIAL"
LANGUAGE_CODE = "en-US"

ROUTES_API_URL = os.environ.get("ROUTES_API_URL", "https://routes.googleapis.com/directions/v2:computeRoutes")
ROUTES_API_TIMEOUT_S = float(os.environ.get("ROUTES_API_TIMEOUT_S", "20"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
GPX_DIR = os.environ.get("GPX_DIR", "gpx")
