import logging
import os
from typing import List, Optional

import requests
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from config import GPX_DIR, LOG_LEVEL, MAX_DISTANCE_MILES, MIN_DISTANCE_MILES, TRAVEL_MODE
from route_generator import NoRouteFoundError, generate_loop_route, get_tolerance_policy
from routing.postprocessing import decode_route_path, summarize_route
from utils.gmaps_link import build_google_maps_url
from utils.gpx_utils import create_gpx_file
from utils.logging_config import configure
from utils.routes_api import RoutesAPIError, make_route_fetcher

configure(LOG_LEVEL)
logger = logging.getLogger(__name__)

# --- FastAPI setup ---
app = FastAPI(title="Loop Route API", version="1.0")

# Serve GPX files as static files
os.makedirs(GPX_DIR, exist_ok=True)
app.mount("/gpx", StaticFiles(directory=GPX_DIR), name="gpx")


class APIError(Exception):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None):
        self.status_code = status_code
        self.error = error
        self.details = details


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    body = {"error": exc.error}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    if request.url.path == "/api/route":
        return JSONResponse(status_code=400, content={"error": "origin and waypoints array are required"})
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())})


# --- Data Models ---
class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class RouteProxyRequest(BaseModel):
    origin: Optional[Coordinate] = None
    waypoints: Optional[List[Coordinate]] = None


class GenerateRouteRequest(BaseModel):
    start: Coordinate
    distance_miles: float = Field(..., ge=MIN_DISTANCE_MILES, le=MAX_DISTANCE_MILES,
                                  description="Target loop distance in miles")
    boundary: List[Coordinate] = Field(default_factory=list,
                                       description="Polygon the waypoints must stay in; ignored below 3 vertices")
    seed: Optional[int] = Field(None, description="Seed for reproducible waypoint placement")


class Step(BaseModel):
    number: int
    instruction: str
    distance_m: float
    distance_text: str


class GenerateRouteResponse(BaseModel):
    waypoints: List[Coordinate]
    distance_m: float
    distance_miles: float
    target_m: float
    duration_s: int
    duration_text: str
    attempts: int
    within_tolerance: bool
    tolerance_policy: str
    encoded_polyline: Optional[str] = None
    steps: List[Step]
    gmaps_url: Optional[str] = None
    gpx_file_url: Optional[str] = None


# --- Dependencies ---
def require_api_key() -> str:
    api_key = os.environ.get("GOOGLE_MAPS_API_KEY")
    if not api_key:
        raise APIError(500, "Server misconfiguration: API key not set")
    return api_key


def get_route_fetcher(api_key: str = Depends(require_api_key)):
    return make_route_fetcher(api_key)


# --- API Endpoints ---
@app.get("/api/config")
def api_config(api_key: str = Depends(require_api_key)):
    return {"apiKey": api_key}


@app.post("/api/route")
def route_proxy(req: RouteProxyRequest, fetch_route=Depends(get_route_fetcher)):
    """Relay an origin and ordered waypoints to the routing provider as a loop."""
    if req.origin is None or req.waypoints is None:
        raise APIError(400, "origin and waypoints array are required")

    try:
        return fetch_route((req.origin.lat, req.origin.lng), [(wp.lat, wp.lng) for wp in req.waypoints])
    except RoutesAPIError as e:
        raise APIError(e.status_code, "Routes API error", e.details)
    except requests.RequestException as e:
        logger.error("Failed to call Routes API: %s", e)
        raise APIError(500, "Failed to compute route")


@app.post("/generate-route", response_model=GenerateRouteResponse)
def generate_route_endpoint(req: GenerateRouteRequest, fetch_route=Depends(get_route_fetcher)):
    """
    Generate a loop of roughly distance_miles starting and ending at start,
    refining the waypoint radius against the provider's measured distance.
    """
    start = (req.start.lat, req.start.lng)
    boundary = [(p.lat, p.lng) for p in req.boundary]

    try:
        result = generate_loop_route(
            start,
            req.distance_miles,
            fetch_route,
            boundary=boundary,
            policy=get_tolerance_policy(),
            random_state=req.seed,
        )
    except NoRouteFoundError as e:
        raise APIError(422, str(e))
    except RoutesAPIError as e:
        raise APIError(e.status_code, "Routes API error", e.details)
    except requests.RequestException as e:
        logger.error("Failed to call Routes API: %s", e)
        raise APIError(500, "Failed to compute route")

    summary = summarize_route(result.route)

    gpx_file_url = None
    path = decode_route_path(result.route)
    if path:
        gpx_path = create_gpx_file(path, output_dir=GPX_DIR)
        gpx_file_url = f"/gpx/{os.path.basename(gpx_path)}"

    return {
        "waypoints": [{"lat": lat, "lng": lng} for lat, lng in result.waypoints],
        "distance_m": result.distance_m,
        "distance_miles": summary["distance_miles"],
        "target_m": result.target_m,
        "duration_s": summary["duration_s"],
        "duration_text": summary["duration_text"],
        "attempts": result.attempts,
        "within_tolerance": result.within_tolerance,
        "tolerance_policy": result.policy.name,
        "encoded_polyline": (result.route.get("polyline") or {}).get("encodedPolyline"),
        "steps": summary["steps"],
        "gmaps_url": build_google_maps_url(start, result.waypoints, TRAVEL_MODE),
        "gpx_file_url": gpx_file_url,
    }


@app.get("/health")
def health():
    return {"status": "ok"}
