"""Builds openrouteservice request payloads from UI-level intents.

Builders never talk to the network. They return a :class:`BackendRequest`
describing the call, or ``None`` when the input cannot produce a valid
request (the caller then skips the call entirely).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .coordinates import Coordinate, to_backend_order
from .isochrone import plan_thresholds
from .models import (
    DEFAULT_PROFILE,
    BBoxGeometry,
    IsochroneSpec,
    PoiGeometry,
    PoiMode,
    PoiRequest,
    PointGeometry,
    normalize_profile,
)

logger = logging.getLogger(__name__)

POI_LIMIT = 100
MIN_BUFFER_METERS = 50
MAX_BUFFER_METERS = 5000
DEFAULT_BUFFER_METERS = 500
DEFAULT_SNAP_RADIUS = 300


@dataclass(frozen=True)
class BackendRequest:
    """A fully-shaped call against the routing backend."""

    method: str
    path: str
    json: Dict[str, Any] = field(default_factory=dict)
    expects_text: bool = False


def clamp_buffer(value: Optional[float]) -> float:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return DEFAULT_BUFFER_METERS
    return max(MIN_BUFFER_METERS, min(value, MAX_BUFFER_METERS))


def build_route(start: Coordinate, end: Coordinate, profile: str = DEFAULT_PROFILE) -> BackendRequest:
    body = {"coordinates": [to_backend_order(start), to_backend_order(end)]}
    return BackendRequest("POST", f"v2/directions/{normalize_profile(profile)}/geojson", body)


def build_snap(
    points: Iterable[Coordinate],
    profile: str = DEFAULT_PROFILE,
    radius: float = DEFAULT_SNAP_RADIUS,
) -> BackendRequest:
    body = {"locations": [to_backend_order(point) for point in points], "radius": radius}
    return BackendRequest("POST", f"v2/snap/{normalize_profile(profile)}/geojson", body)


def resolve_poi_geometry(request: PoiRequest) -> Optional[PoiGeometry]:
    if request.mode is PoiMode.POINT:
        center = request.center.to_coordinate() if request.center else None
        if center is None or not center.is_finite():
            logger.warning("Invalid center for POI search, skipping request")
            return None
        return PointGeometry(center=center, buffer=clamp_buffer(request.buffer))

    if request.bbox is None:
        logger.warning("Missing bbox for POI search, skipping request")
        return None
    return BBoxGeometry(bbox=request.bbox)


def build_poi(request: PoiRequest) -> Optional[BackendRequest]:
    geometry = resolve_poi_geometry(request)
    if geometry is None:
        return None

    body: Dict[str, Any] = {
        "request": "pois",
        "limit": POI_LIMIT,
        "geometry": geometry.to_payload(),
    }
    if request.category_ids:
        body["filters"] = {"category_ids": list(request.category_ids)}
    return BackendRequest("POST", "pois", body, expects_text=True)


def build_isochrone(spec: IsochroneSpec) -> BackendRequest:
    body = {
        "locations": [to_backend_order(spec.center.to_coordinate())],
        "range_type": spec.unit,
        "range": plan_thresholds(spec.range, spec.interval, spec.unit),
    }
    return BackendRequest("POST", f"v2/isochrones/{spec.profile}", body)
