"""Repair and validation of openrouteservice responses."""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shapely.geometry import MultiPoint, shape
from shapely.errors import GeometryTypeError

from .coordinates import FlatBBox, is_valid_flat_bbox, pad_bounds

logger = logging.getLogger(__name__)

# String literals are matched first so tokens inside them are left alone.
_NON_FINITE_TOKEN = re.compile(r'"(?:\\.|[^"\\])*"|-?\bInfinity\b|-?\bNaN\b')

VIEW_PADDING = 0.2


class MalformedResponseError(ValueError):
    """Raised when a response cannot be parsed even after repair."""


class UnexpectedShapeError(ValueError):
    """Raised when a response lacks the expected feature collection shape."""


@dataclass(frozen=True)
class PoiMarker:
    lat: float
    lng: float
    label: str


@dataclass(frozen=True)
class RouteSummary:
    distance: Optional[float]
    duration: Optional[float]


@dataclass
class PoiFeatureCollection:
    features: List[Dict[str, Any]]
    bbox: Optional[FlatBBox] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_geojson(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.setdefault("type", "FeatureCollection")
        data["features"] = self.features
        if self.bbox is not None:
            data["bbox"] = self.bbox
        return data

    def markers(self) -> List[PoiMarker]:
        markers: List[PoiMarker] = []
        for feature in self.features:
            point = _point_coordinates(feature)
            if point is None:
                continue
            lng, lat = point
            markers.append(PoiMarker(lat=lat, lng=lng, label=_poi_label(feature)))
        return markers

    def view_bounds(self) -> Optional[FlatBBox]:
        bbox = compute_bbox_from_features(self.features)
        if bbox is None:
            return None
        return pad_bounds(bbox, VIEW_PADDING)


def repair_non_finite_tokens(text: str) -> str:
    """Replace bare NaN/Infinity tokens with ``null`` outside of string literals."""

    def _replace(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token.startswith('"'):
            return token
        return "null"

    return _NON_FINITE_TOKEN.sub(_replace, text)


def compute_bbox_from_features(features: List[Any]) -> Optional[FlatBBox]:
    points = [point for point in (_point_coordinates(f) for f in features) if point is not None]
    if not points:
        return None
    min_lon, min_lat, max_lon, max_lat = MultiPoint(points).bounds
    return [min_lon, min_lat, max_lon, max_lat]


def normalize_poi_response(text: str) -> PoiFeatureCollection:
    fixed = repair_non_finite_tokens(text)
    try:
        data = json.loads(fixed)
    except ValueError as exc:
        raise MalformedResponseError(f"POI response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise UnexpectedShapeError("POI response is not an object")

    features = data.get("features")
    bbox = data.get("bbox")
    if "bbox" in data and not is_valid_flat_bbox(bbox):
        repaired = compute_bbox_from_features(features) if isinstance(features, list) and features else None
        if repaired is None:
            logger.warning("Dropping invalid POI bbox %s", bbox)
        else:
            logger.info("Recomputed POI bbox from features: %s", repaired)
        bbox = repaired

    if not isinstance(features, list):
        raise UnexpectedShapeError("POI response has no feature list")

    extra = {key: value for key, value in data.items() if key not in {"features", "bbox"}}
    return PoiFeatureCollection(features=features, bbox=bbox, extra=extra)


def extract_route_summary(geojson: Any) -> RouteSummary:
    """Distance/duration of the first route feature, if present."""
    features = geojson.get("features") if isinstance(geojson, dict) else None
    if not features or not isinstance(features, list):
        return RouteSummary(distance=None, duration=None)
    first = features[0] if isinstance(features[0], dict) else {}
    summary = (first.get("properties") or {}).get("summary") or {}
    return RouteSummary(distance=summary.get("distance"), duration=summary.get("duration"))


def geometry_bounds(geojson: Any, ratio: float = VIEW_PADDING) -> Optional[FlatBBox]:
    """Padded bounds over every feature geometry of a GeoJSON collection."""
    features = geojson.get("features") if isinstance(geojson, dict) else None
    if not isinstance(features, list):
        return None

    boxes: List[FlatBBox] = []
    for feature in features:
        geometry = feature.get("geometry") if isinstance(feature, dict) else None
        if not geometry:
            continue
        try:
            geom = shape(geometry)
        except (GeometryTypeError, ValueError, TypeError, KeyError) as exc:
            logger.debug("Skipping unreadable geometry: %s", exc)
            continue
        if geom.is_empty:
            continue
        boxes.append(list(geom.bounds))

    boxes = [box for box in boxes if is_valid_flat_bbox(box)]
    if not boxes:
        return None
    merged = [
        min(box[0] for box in boxes),
        min(box[1] for box in boxes),
        max(box[2] for box in boxes),
        max(box[3] for box in boxes),
    ]
    return pad_bounds(merged, ratio)


def _point_coordinates(feature: Any) -> Optional[List[float]]:
    if not isinstance(feature, dict):
        return None
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != "Point":
        return None
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        return None
    lon, lat = coordinates[0], coordinates[1]
    if not (_finite(lon) and _finite(lat)):
        return None
    return [lon, lat]


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _poi_label(feature: Dict[str, Any]) -> str:
    properties = feature.get("properties") or {}
    osm_tags = properties.get("osm_tags") or {}
    return properties.get("name") or osm_tags.get("name") or "POI"
