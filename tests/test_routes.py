from unittest.mock import MagicMock, patch

import pytest
import requests

from orsmap import create_app


@pytest.fixture
def client():
    app = create_app({"TESTING": True, "ORS_API_KEY": "secret", "ORS_BASE_URL": "https://ors.example"})
    return app.test_client()


def _response(json_payload=None, text=""):
    response = MagicMock()
    response.json.return_value = json_payload
    response.text = text
    response.raise_for_status.return_value = None
    return response


def test_route_returns_geojson_with_summary(client):
    geojson = {"type": "FeatureCollection", "features": [{"properties": {"summary": {"distance": 900.0, "duration": 120.0}}}]}
    with patch("orsmap.ors_client.requests.request", return_value=_response(geojson)):
        response = client.post("/api/route", json={"start": {"lat": 36.8, "lng": 10.1}, "end": {"lat": 36.9, "lng": 10.2}})

    assert response.status_code == 200
    assert response.get_json()["summary"] == {"distance": 900.0, "duration": 120.0}


def test_route_backend_failure_is_reported(client):
    with patch("orsmap.ors_client.requests.request", side_effect=requests.ConnectionError("down")):
        response = client.post("/api/route", json={"start": {"lat": 36.8, "lng": 10.1}, "end": {"lat": 36.9, "lng": 10.2}})

    assert response.status_code == 502
    assert response.get_json() == {"error": "Route calculation failed."}


def test_invalid_payload_is_rejected(client):
    response = client.post("/api/route", json={"start": {"lat": 36.8}})
    assert response.status_code == 400
    assert response.get_json()["error"]


def test_skipped_poi_request(client):
    with patch("orsmap.ors_client.requests.request") as mock_request:
        response = client.post("/api/pois", json={"mode": "area"})

    mock_request.assert_not_called()
    assert response.status_code == 200
    assert response.get_json() == {"type": "FeatureCollection", "features": [], "markers": [], "view_bounds": None, "skipped": True}


def test_pois_return_markers(client):
    raw = '{"type": "FeatureCollection", "bbox": [NaN, 1, 2, 3], "features": [{"geometry": {"type": "Point", "coordinates": [10, 50]}, "properties": {"name": "A"}}, {"geometry": {"type": "Point", "coordinates": [12, 48]}, "properties": {}}]}'
    with patch("orsmap.ors_client.requests.request", return_value=_response(text=raw)):
        response = client.post(
            "/api/pois",
            json={"mode": "area", "bounds": {"south": 48, "west": 10, "north": 50, "east": 12}, "category_ids": [561]},
        )

    body = response.get_json()
    assert response.status_code == 200
    assert body["bbox"] == [10, 48, 12, 50]
    assert body["markers"] == [{"lat": 50, "lng": 10, "label": "A"}, {"lat": 48, "lng": 12, "label": "POI"}]


def test_malformed_poi_response_is_reported(client):
    with patch("orsmap.ors_client.requests.request", return_value=_response(text="not json")):
        response = client.post("/api/pois", json={"mode": "point", "center": {"lat": 36.8, "lng": 10.1}})

    assert response.status_code == 502
    assert response.get_json()["error"].startswith("POI lookup failed")


def test_isochrones_include_view_bounds(client):
    geojson = {"features": [{"geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}}]}
    with patch("orsmap.ors_client.requests.request", return_value=_response(geojson)) as mock_request:
        response = client.post(
            "/api/isochrones",
            json={"profile": "cycling-regular", "center": {"lat": 36.8, "lng": 10.1}, "unit": "time", "range": 20, "interval": 5},
        )

    assert response.status_code == 200
    assert response.get_json()["view_bounds"] == pytest.approx([-0.2, -0.2, 1.2, 1.2])
    assert mock_request.call_args.kwargs["json"]["range"] == [300, 600, 900, 1200]


def test_missing_api_key_fails_cleanly():
    app = create_app({"TESTING": True, "ORS_API_KEY": ""})
    response = app.test_client().post("/api/snap", json={"points": [{"lat": 36.8, "lng": 10.1}]})
    assert response.status_code == 502


def test_search_downgrades_failures_to_empty(client):
    with patch("orsmap.geocoder.requests.get", side_effect=requests.ConnectionError("down")):
        response = client.get("/api/search?q=tunis")

    assert response.status_code == 200
    assert response.get_json() == {"results": []}


def test_blank_search_makes_no_request(client):
    with patch("orsmap.geocoder.requests.get") as mock_get:
        response = client.get("/api/search?q=%20%20")

    mock_get.assert_not_called()
    assert response.get_json() == {"results": []}


def test_search_passes_visible_bounds(client):
    items = [{"place_id": 1, "display_name": "Tunis", "lat": "36.8", "lon": "10.18"}]
    response_mock = _response(items)
    with patch("orsmap.geocoder.requests.get", return_value=response_mock) as mock_get:
        response = client.get("/api/search?q=tunis&south=36.7&west=10.1&north=36.9&east=10.3")

    assert response.get_json()["results"] == [{"place_id": "1", "display_name": "Tunis", "lat": 36.8, "lng": 10.18}]
    assert mock_get.call_args.kwargs["params"]["viewbox"] == "10.1,36.9,10.3,36.7"


def test_unknown_profile_is_rejected_before_any_request(client):
    with patch("orsmap.ors_client.requests.request") as mock_request:
        response = client.post(
            "/api/route",
            json={"start": {"lat": 36.8, "lng": 10.1}, "end": {"lat": 36.9, "lng": 10.2}, "profile": "../../pois?x="},
        )

    assert response.status_code == 400
    mock_request.assert_not_called()


def test_isochrone_with_too_many_steps_is_rejected(client):
    with patch("orsmap.ors_client.requests.request") as mock_request:
        response = client.post(
            "/api/isochrones",
            json={"center": {"lat": 36.8, "lng": 10.1}, "unit": "distance", "range": 2000000, "interval": 1},
        )

    assert response.status_code == 400
    mock_request.assert_not_called()
