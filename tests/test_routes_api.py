import pytest

from utils.routes_api import FIELD_MASK, RoutesAPIError, build_routes_request, fetch_route, make_route_fetcher

ORIGIN = {"lat": 40.7128, "lng": -74.006}
WAYPOINTS = [{"lat": 40.72, "lng": -73.99}, {"lat": 40.71, "lng": -73.98}]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.response


def test_request_body_is_a_loop():
    body = build_routes_request(ORIGIN, WAYPOINTS)

    assert body["origin"] == body["destination"]
    assert body["origin"]["location"]["latLng"] == {"latitude": 40.7128, "longitude": -74.006}
    assert body["travelMode"] == "WALK"
    assert body["units"] == "IMPERIAL"
    assert body["languageCode"] == "en-US"


def test_request_body_keeps_waypoint_order():
    body = build_routes_request(ORIGIN, WAYPOINTS)
    coords = [i["location"]["latLng"] for i in body["intermediates"]]
    assert coords == [{"latitude": 40.72, "longitude": -73.99}, {"latitude": 40.71, "longitude": -73.98}]


def test_request_body_with_no_waypoints():
    assert build_routes_request(ORIGIN, [])["intermediates"] == []


def test_fetch_route_sends_key_and_field_mask():
    payload = {"routes": [{"distanceMeters": 8046}]}
    session = FakeSession(FakeResponse(200, payload))

    data = fetch_route(ORIGIN, WAYPOINTS, api_key="secret", url="http://routes.test", timeout=5, session=session)

    assert data == payload
    sent = session.requests[0]
    assert sent["url"] == "http://routes.test"
    assert sent["timeout"] == 5
    assert sent["headers"]["X-Goog-Api-Key"] == "secret"
    assert sent["headers"]["X-Goog-FieldMask"] == FIELD_MASK
    assert "routes.legs.steps.navigationInstruction" in FIELD_MASK
    assert len(sent["json"]["intermediates"]) == 2


def test_fetch_route_returns_empty_routes_untouched():
    session = FakeSession(FakeResponse(200, {}))
    assert fetch_route(ORIGIN, WAYPOINTS, api_key="k", session=session) == {}


def test_fetch_route_raises_on_provider_error():
    payload = {"error": {"code": 403, "message": "API key not valid"}}
    session = FakeSession(FakeResponse(403, payload))

    with pytest.raises(RoutesAPIError) as excinfo:
        fetch_route(ORIGIN, WAYPOINTS, api_key="bad", session=session)

    assert excinfo.value.status_code == 403
    assert excinfo.value.details == "API key not valid"


def test_fetch_route_error_without_json_body():
    session = FakeSession(FakeResponse(502, None, text="Bad Gateway"))

    with pytest.raises(RoutesAPIError) as excinfo:
        fetch_route(ORIGIN, WAYPOINTS, api_key="k", session=session)

    assert excinfo.value.status_code == 502
    assert excinfo.value.details == "Bad Gateway"


def test_make_route_fetcher_takes_tuples():
    session = FakeSession(FakeResponse(200, {"routes": []}))
    fetch = make_route_fetcher("k", url="http://routes.test", session=session)

    fetch((40.7128, -74.006), [(40.72, -73.99)])

    body = session.requests[0]["json"]
    assert body["destination"]["location"]["latLng"] == {"latitude": 40.7128, "longitude": -74.006}
    assert body["intermediates"][0]["location"]["latLng"] == {"latitude": 40.72, "longitude": -73.99}
