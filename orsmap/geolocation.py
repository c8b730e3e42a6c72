"""Current-position lookup with a low-accuracy attempt followed by a high-accuracy one."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .coordinates import Coordinate

logger = logging.getLogger(__name__)

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class GeolocationError(RuntimeError):
    """Raised by a position provider. ``code`` follows the browser geolocation codes."""

    def __init__(self, code: int = 0, message: str = "") -> None:
        super().__init__(message or f"geolocation error {code}")
        self.code = code


class LocationFailure(Enum):
    PERMISSION_DENIED = "Location access was denied. Allow access and try again."
    POSITION_UNAVAILABLE = "Position is currently unavailable."
    TIMEOUT = "Location lookup timed out."
    UNKNOWN = "Could not determine your location."

    @classmethod
    def from_code(cls, code: int) -> "LocationFailure":
        return {
            PERMISSION_DENIED: cls.PERMISSION_DENIED,
            POSITION_UNAVAILABLE: cls.POSITION_UNAVAILABLE,
            TIMEOUT: cls.TIMEOUT,
        }.get(code, cls.UNKNOWN)


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool
    timeout_s: float
    maximum_age_s: float = 0


@dataclass(frozen=True)
class Position:
    coordinate: Coordinate
    accuracy_m: float


@dataclass(frozen=True)
class LocateResult:
    position: Optional[Position] = None
    failure: Optional[LocationFailure] = None

    @property
    def ok(self) -> bool:
        return self.position is not None


DEFAULT_ATTEMPTS = (
    PositionOptions(enable_high_accuracy=False, timeout_s=8),
    PositionOptions(enable_high_accuracy=True, timeout_s=12),
)


def locate(
    get_position: Callable[[PositionOptions], Position],
    attempts: Sequence[PositionOptions] = DEFAULT_ATTEMPTS,
) -> LocateResult:
    """Try each attempt in order and stop at the first success."""
    code = 0
    for options in attempts:
        try:
            return LocateResult(position=get_position(options))
        except GeolocationError as exc:
            logger.info("Position attempt failed (high_accuracy=%s): %s", options.enable_high_accuracy, exc)
            code = exc.code
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Position provider error (high_accuracy=%s): %s", options.enable_high_accuracy, exc)
            code = 0

    return LocateResult(failure=LocationFailure.from_code(code))
