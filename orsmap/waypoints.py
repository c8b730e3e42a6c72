"""Two-click route selection."""
from __future__ import annotations

from typing import List, Optional

from .coordinates import Coordinate
from .models import normalize_profile
from .query_builder import BackendRequest, build_route


class WaypointPair:
    """Collects a start and an end point from map clicks.

    A click after the pair is complete starts a new pair with that click as
    its start. A route request is produced whenever the pair is complete.
    """

    def __init__(self, profile: Optional[str] = None) -> None:
        self.profile = normalize_profile(profile)
        self.points: List[Coordinate] = []

    @property
    def complete(self) -> bool:
        return len(self.points) == 2

    def add(self, coordinate: Coordinate) -> Optional[BackendRequest]:
        if self.complete:
            self.clear()
        self.points.append(coordinate)
        return self.route_request()

    def set_profile(self, profile: str) -> Optional[BackendRequest]:
        self.profile = normalize_profile(profile)
        return self.route_request()

    def route_request(self) -> Optional[BackendRequest]:
        if not self.complete:
            return None
        start, end = self.points
        return build_route(start, end, self.profile)

    def clear(self) -> None:
        self.points = []
