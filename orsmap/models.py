"""Request models for routing, snapping, POI and isochrone queries."""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from .coordinates import Coordinate, MapBounds, NestedBBox, nested_to_flat, to_backend_order
from .isochrone import MAX_RANGE_VALUES, step_count

DEFAULT_PROFILE = "driving-car"

_TRANSPORT_TO_PROFILE = {
    "car": "driving-car",
    "driving": "driving-car",
    "taxi": "driving-car",
    "truck": "driving-hgv",
    "hgv": "driving-hgv",
    "walking": "foot-walking",
    "pedestrian": "foot-walking",
    "foot": "foot-walking",
    "hiking": "foot-hiking",
    "bicycle": "cycling-regular",
    "bike": "cycling-regular",
    "cycling": "cycling-regular",
    "wheelchair": "wheelchair",
}

ORS_PROFILES = frozenset(_TRANSPORT_TO_PROFILE.values()) | {
    "cycling-road",
    "cycling-mountain",
    "cycling-electric",
}


def normalize_profile(value: Optional[str]) -> str:
    """Map a loose transport name onto an openrouteservice profile id.

    Anything that is not a known profile is rejected, since the profile ends
    up in the backend URL path.
    """
    if not value:
        return DEFAULT_PROFILE
    cleaned = value.strip().lower()
    profile = _TRANSPORT_TO_PROFILE.get(cleaned, cleaned)
    if profile not in ORS_PROFILES:
        raise ValueError(f"unknown routing profile {value!r}")
    return profile


class LatLng(BaseModel):
    """A point as sent by the map UI."""

    lat: float
    lng: float

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class Bounds(BaseModel):
    south: float
    west: float
    north: float
    east: float

    def to_map_bounds(self) -> MapBounds:
        return MapBounds(south=self.south, west=self.west, north=self.north, east=self.east)


class PoiMode(str, Enum):
    POINT = "point"
    AREA = "area"


class PointGeometry(BaseModel):
    """Buffered point geometry for a POI search."""

    kind: Literal["point"] = "point"
    center: Coordinate
    buffer: float

    def to_payload(self) -> Dict[str, Any]:
        return {
            "geojson": {"type": "Point", "coordinates": to_backend_order(self.center)},
            "buffer": self.buffer,
        }


class BBoxGeometry(BaseModel):
    """Rectangular geometry for a POI search."""

    kind: Literal["bbox"] = "bbox"
    bbox: NestedBBox

    def to_payload(self) -> Dict[str, Any]:
        return {"bbox": self.bbox}


PoiGeometry = Union[PointGeometry, BBoxGeometry]


class PoiRequest(BaseModel):
    """POI search options.

    Point mode needs ``center`` (``buffer`` is optional), area mode needs
    ``bbox`` or the visible ``bounds``. Missing or non-finite values are not
    rejected here: the query builder turns them into a skipped request.
    """

    mode: PoiMode = PoiMode.POINT
    center: Optional[LatLng] = None
    buffer: Optional[float] = None
    bbox: Optional[NestedBBox] = None
    category_ids: Optional[List[int]] = None

    @model_validator(mode="before")
    @classmethod
    def resolve_area(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        if values.get("mode") == "bbox":
            values["mode"] = PoiMode.AREA.value
        bounds = values.pop("bounds", None)
        if values.get("bbox") is None and bounds is not None:
            if isinstance(bounds, dict):
                bounds = Bounds(**bounds)
            if isinstance(bounds, Bounds):
                bounds = bounds.to_map_bounds()
            if not isinstance(bounds, MapBounds):
                raise ValueError("bounds must provide south, west, north and east")
            values["bbox"] = bounds.to_nested_bbox()
        return values

    @field_validator("bbox")
    @classmethod
    def validate_bbox(cls, value: Optional[NestedBBox]) -> Optional[NestedBBox]:
        if value is not None:
            nested_to_flat(value)
        return value


class IsochroneSpec(BaseModel):
    """Reachability zone request in user units (kilometers or minutes)."""

    profile: str = "cycling-regular"
    center: LatLng
    unit: Literal["distance", "time"] = Field(
        default="distance", validation_alias=AliasChoices("unit", "method")
    )
    range: float = 1
    interval: float = 1

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: str) -> str:
        return normalize_profile(value)

    @field_validator("range", "interval")
    @classmethod
    def validate_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("center")
    @classmethod
    def validate_center(cls, value: LatLng) -> LatLng:
        if not value.to_coordinate().is_finite():
            raise ValueError("center must have finite coordinates")
        return value

    @model_validator(mode="after")
    def validate_step_count(self) -> "IsochroneSpec":
        if step_count(self.range, self.interval) > MAX_RANGE_VALUES:
            raise ValueError(f"range / interval must yield at most {MAX_RANGE_VALUES} steps")
        return self


class RouteQuery(BaseModel):
    start: LatLng
    end: LatLng
    profile: str = DEFAULT_PROFILE

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: str) -> str:
        return normalize_profile(value)


class SnapQuery(BaseModel):
    points: List[LatLng]
    profile: str = DEFAULT_PROFILE
    radius: float = 300

    @field_validator("points")
    @classmethod
    def validate_points(cls, value: List[LatLng]) -> List[LatLng]:
        if not value:
            raise ValueError("at least one point is required")
        return value

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: str) -> str:
        return normalize_profile(value)
