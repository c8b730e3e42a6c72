"""Coordinate ordering and bounding-box helpers.

The map speaks (lat, lng) while openrouteservice speaks [lng, lat]. Every
crossing between the two goes through this module.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

NestedBBox = List[List[float]]
FlatBBox = List[float]


class ShapeError(ValueError):
    """Raised when a bounding box does not have the expected structure."""


@dataclass(frozen=True)
class Coordinate:
    """A position in UI order."""

    lat: float
    lng: float

    def is_finite(self) -> bool:
        return _is_finite_number(self.lat) and _is_finite_number(self.lng)


@dataclass(frozen=True)
class MapBounds:
    """The visible map rectangle as reported by the map widget."""

    south: float
    west: float
    north: float
    east: float

    def to_nested_bbox(self) -> NestedBBox:
        return [[self.west, self.south], [self.east, self.north]]

    def to_viewbox(self) -> str:
        return f"{self.west},{self.north},{self.east},{self.south}"

    def center(self) -> Coordinate:
        return Coordinate(lat=(self.south + self.north) / 2, lng=(self.west + self.east) / 2)


def to_backend_order(coordinate: Coordinate) -> List[float]:
    return [coordinate.lng, coordinate.lat]


def to_ui_order(pair: Sequence[float]) -> Coordinate:
    lng, lat = pair[0], pair[1]
    return Coordinate(lat=lat, lng=lng)


def nested_to_flat(box: Sequence[Sequence[float]]) -> FlatBBox:
    """[[minLon, minLat], [maxLon, maxLat]] -> [minLon, minLat, maxLon, maxLat]."""
    try:
        corners = [list(corner) for corner in box]
    except TypeError as exc:
        raise ShapeError("bbox corners must be sequences") from exc
    if len(corners) != 2 or any(len(corner) != 2 for corner in corners):
        raise ShapeError("nested bbox must be two [lon, lat] corners")
    flat = corners[0] + corners[1]
    _require_finite(flat)
    return flat


def flat_to_nested(box: Sequence[float]) -> NestedBBox:
    """[minLon, minLat, maxLon, maxLat] -> [[minLon, minLat], [maxLon, maxLat]]."""
    values = list(box)
    if len(values) != 4:
        raise ShapeError("flat bbox must have four components")
    _require_finite(values)
    return [[values[0], values[1]], [values[2], values[3]]]


def is_valid_flat_bbox(box: object) -> bool:
    if not isinstance(box, (list, tuple)) or len(box) != 4:
        return False
    if not all(_is_finite_number(value) for value in box):
        return False
    return box[0] <= box[2] and box[1] <= box[3]


def pad_bounds(box: Sequence[float], ratio: float = 0.2) -> FlatBBox:
    """Grow a flat bbox by ``ratio`` of its span on every side."""
    if not is_valid_flat_bbox(list(box)):
        raise ShapeError("cannot pad an invalid bbox")
    min_lon, min_lat, max_lon, max_lat = box
    pad_lon = abs(max_lon - min_lon) * ratio
    pad_lat = abs(max_lat - min_lat) * ratio
    return [min_lon - pad_lon, min_lat - pad_lat, max_lon + pad_lon, max_lat + pad_lat]


def _require_finite(values: Sequence[object]) -> None:
    if not all(_is_finite_number(value) for value in values):
        raise ShapeError("bbox components must be finite numbers")


def _is_finite_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
