"""Free-text place search against a Nominatim-compatible geocoder."""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import requests

from .coordinates import Coordinate, MapBounds

DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "orsmap/1.0"
RESULT_LIMIT = 8
REQUEST_TIMEOUT = 10

logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    """Raised when the geocoder cannot be reached or returns garbage."""


@dataclass(frozen=True)
class GeocodeResult:
    place_id: str
    display_name: str
    lat: float
    lng: float

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "GeocodeResult":
        """Build a result from a geocoder item whose lat/lon are numeric strings."""
        try:
            lat = float(item["lat"])
            lng = float(item["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError("geocode item has no usable coordinates") from exc
        if not (math.isfinite(lat) and math.isfinite(lng)):
            raise ValueError("geocode item has non-finite coordinates")
        return cls(
            place_id=str(item.get("place_id", "")),
            display_name=str(item.get("display_name") or ""),
            lat=lat,
            lng=lng,
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    def to_dict(self) -> Dict[str, Any]:
        return {"place_id": self.place_id, "display_name": self.display_name, "lat": self.lat, "lng": self.lng}


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str = DEFAULT_NOMINATIM_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout

    def build_params(self, query: str, bounds: Optional[MapBounds] = None) -> Dict[str, str]:
        params = {
            "q": query,
            "format": "jsonv2",
            "addressdetails": "0",
            "limit": str(RESULT_LIMIT),
        }
        if bounds is not None:
            params["viewbox"] = bounds.to_viewbox()
            params["bounded"] = "1"
        return params

    def search(self, query: str, bounds: Optional[MapBounds] = None) -> List[GeocodeResult]:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        try:
            response = requests.get(
                f"{self.base_url}/search",
                params=self.build_params(query, bounds),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            items = response.json()
        except requests.RequestException as exc:
            raise GeocodingError(f"search failed for {query!r}: {exc}") from exc
        except ValueError as exc:
            raise GeocodingError(f"invalid JSON for {query!r}") from exc

        if not isinstance(items, list):
            raise GeocodingError("geocoder response is not a list")

        results: List[GeocodeResult] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                results.append(GeocodeResult.from_item(item))
            except ValueError as exc:
                logger.debug("Skipping geocode item %s: %s", item.get("place_id"), exc)
        return results

    async def asearch(self, query: str, bounds: Optional[MapBounds] = None) -> List[GeocodeResult]:
        return await asyncio.to_thread(self.search, query, bounds)

    def searcher(
        self, bounds_provider: Optional[Callable[[], Optional[MapBounds]]] = None
    ) -> Callable[[str], Awaitable[List[GeocodeResult]]]:
        """Return a fetch callable that reads the current map bounds on every call."""

        async def _fetch(query: str) -> List[GeocodeResult]:
            bounds = bounds_provider() if bounds_provider else None
            return await self.asearch(query, bounds)

        return _fetch
