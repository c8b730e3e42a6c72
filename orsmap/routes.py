"""REST API blueprint exposing routing, snapping, POI, isochrone and search endpoints."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict
from http import HTTPStatus
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from .coordinates import MapBounds
from .geocoder import GeocodingError, NominatimGeocoder
from .models import IsochroneSpec, PoiRequest, RouteQuery, SnapQuery
from .normalizer import MalformedResponseError, UnexpectedShapeError, extract_route_summary, geometry_bounds
from .ors_client import OrsClient, OrsRequestError

api_bp = Blueprint("api", __name__)
logger = logging.getLogger(__name__)


def _ors_client() -> OrsClient:
    return OrsClient(
        api_key=current_app.config.get("ORS_API_KEY", ""),
        base_url=current_app.config.get("ORS_BASE_URL"),
        timeout=current_app.config.get("ORS_TIMEOUT"),
    )


def _geocoder() -> NominatimGeocoder:
    return NominatimGeocoder(
        base_url=current_app.config.get("NOMINATIM_URL"),
        user_agent=current_app.config.get("NOMINATIM_USER_AGENT"),
    )


def _invalid(exc: ValidationError):
    return jsonify({"error": json.loads(exc.json())}), HTTPStatus.BAD_REQUEST


def _backend_failure(message: str):
    return jsonify({"error": message}), HTTPStatus.BAD_GATEWAY


def _read_bounds() -> Optional[MapBounds]:
    names = ("south", "west", "north", "east")
    raw = [request.args.get(name) for name in names]
    if any(value is None for value in raw):
        return None
    try:
        south, west, north, east = (float(value) for value in raw)
    except ValueError:
        return None
    return MapBounds(south=south, west=west, north=north, east=east)


@api_bp.post("/route")
def route():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "invalid or missing JSON"}), HTTPStatus.BAD_REQUEST
    try:
        query = RouteQuery.model_validate(payload)
    except ValidationError as exc:
        return _invalid(exc)

    try:
        geojson = _ors_client().route(query.start.to_coordinate(), query.end.to_coordinate(), query.profile)
    except OrsRequestError:
        return _backend_failure("Route calculation failed.")

    response: Dict[str, Any] = dict(geojson)
    response["summary"] = asdict(extract_route_summary(geojson))
    return jsonify(response)


@api_bp.post("/snap")
def snap():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "invalid or missing JSON"}), HTTPStatus.BAD_REQUEST
    try:
        query = SnapQuery.model_validate(payload)
    except ValidationError as exc:
        return _invalid(exc)

    try:
        geojson = _ors_client().snap([point.to_coordinate() for point in query.points], query.profile, query.radius)
    except OrsRequestError:
        return _backend_failure("Snapping points failed.")
    return jsonify(geojson)


@api_bp.post("/pois")
def pois():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "invalid or missing JSON"}), HTTPStatus.BAD_REQUEST
    try:
        poi_request = PoiRequest.model_validate(payload)
    except ValidationError as exc:
        return _invalid(exc)

    try:
        collection = _ors_client().pois(poi_request)
    except (OrsRequestError, MalformedResponseError, UnexpectedShapeError) as exc:
        logger.error("POI lookup failed: %s", exc)
        return _backend_failure(f"POI lookup failed: {exc}")

    if collection is None:
        return jsonify({"type": "FeatureCollection", "features": [], "markers": [], "view_bounds": None, "skipped": True})

    response = collection.to_geojson()
    response["markers"] = [asdict(marker) for marker in collection.markers()]
    response["view_bounds"] = collection.view_bounds()
    return jsonify(response)


@api_bp.post("/isochrones")
def isochrones():
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "invalid or missing JSON"}), HTTPStatus.BAD_REQUEST
    try:
        spec = IsochroneSpec.model_validate(payload)
    except ValidationError as exc:
        return _invalid(exc)

    try:
        geojson = _ors_client().isochrones(spec)
    except OrsRequestError as exc:
        return _backend_failure(f"Isochrone request failed: {exc}")

    response: Dict[str, Any] = dict(geojson)
    response["view_bounds"] = geometry_bounds(geojson)
    return jsonify(response)


@api_bp.get("/search")
def search():
    query = (request.args.get("q") or "").strip()
    if not query:
        return jsonify({"results": []})

    try:
        results = _geocoder().search(query, _read_bounds())
    except GeocodingError as exc:
        logger.warning("Place search failed for %s: %s", query, exc)
        results = []
    return jsonify({"results": [result.to_dict() for result in results]})
