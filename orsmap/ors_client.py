"""Thin wrapper around the openrouteservice HTTP API."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, Optional

import requests

from .coordinates import Coordinate
from .models import DEFAULT_PROFILE, IsochroneSpec, PoiRequest
from .normalizer import PoiFeatureCollection, normalize_poi_response
from .query_builder import (
    DEFAULT_SNAP_RADIUS,
    BackendRequest,
    build_isochrone,
    build_poi,
    build_route,
    build_snap,
)

DEFAULT_BASE_URL = "https://api.openrouteservice.org"
REQUEST_TIMEOUT = 10

logger = logging.getLogger(__name__)


class OrsRequestError(RuntimeError):
    """Raised when the routing backend cannot be reached or answers with an error."""


class OrsClient:
    """Executes :class:`BackendRequest` values against openrouteservice."""

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, timeout: float = REQUEST_TIMEOUT) -> None:
        if not api_key:
            logger.info("ORS_API_KEY missing, routing backend unavailable")
            raise OrsRequestError("ORS_API_KEY is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "OrsClient":
        return cls(
            api_key=os.getenv("ORS_API_KEY", "").strip(),
            base_url=os.getenv("ORS_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL,
        )

    def _headers(self, content_type: str = "application/json") -> Dict[str, str]:
        return {"Authorization": self.api_key, "Content-Type": content_type}

    def execute(self, backend_request: BackendRequest) -> Any:
        """Send the request and return parsed JSON, or raw text for text responses."""
        url = f"{self.base_url}/{backend_request.path}"
        try:
            response = requests.request(
                backend_request.method,
                url,
                json=backend_request.json,
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            if backend_request.expects_text:
                return response.text
            return response.json()
        except requests.RequestException as exc:
            logger.warning("ORS %s %s failed: %s", backend_request.method, backend_request.path, exc)
            raise OrsRequestError(str(exc)) from exc
        except ValueError as exc:
            logger.warning("ORS %s returned invalid JSON: %s", backend_request.path, exc)
            raise OrsRequestError("invalid JSON from routing backend") from exc

    def route(self, start: Coordinate, end: Coordinate, profile: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        return self.execute(build_route(start, end, profile))

    def snap(
        self,
        points: Iterable[Coordinate],
        profile: str = DEFAULT_PROFILE,
        radius: float = DEFAULT_SNAP_RADIUS,
    ) -> Dict[str, Any]:
        return self.execute(build_snap(points, profile, radius))

    def pois(self, request: PoiRequest) -> Optional[PoiFeatureCollection]:
        """Run a POI search. ``None`` means the request was skipped as invalid."""
        backend_request = build_poi(request)
        if backend_request is None:
            return None
        text = self.execute(backend_request)
        logger.debug("POIs raw text: %s", text)
        return normalize_poi_response(text)

    def isochrones(self, spec: IsochroneSpec) -> Dict[str, Any]:
        return self.execute(build_isochrone(spec))
