"""Device position acquisition with a bounded wait and a cached-fix allowance."""

import asyncio
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from dotenv import load_dotenv

from delivery_location.config import POSITION_MAX_AGE_S, POSITION_TIMEOUT_S
from delivery_location.errors import PermissionDenied, PositionTimeout
from delivery_location.logging_config import get_logger
from delivery_location.models import Coordinate

load_dotenv()

logger = get_logger(module="position")


@dataclass(frozen=True)
class PositionFix:
    """A coordinate reported by the device, stamped with ``time.monotonic()``."""

    coordinate: Coordinate
    timestamp: float = field(default_factory=time.monotonic)

    def age(self, now: float | None = None) -> float:
        return (now if now is not None else time.monotonic()) - self.timestamp


class PositionSource(ABC):
    """The device location service."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for foreground location access; return whether it was granted."""

    @abstractmethod
    async def read_fix(self) -> PositionFix:
        """Wait for a fresh fix from the device."""

    def last_known_fix(self) -> PositionFix | None:
        """Return the last fix the device cached, if any."""
        return None


class StaticPositionSource(PositionSource):
    """Position source pinned to a fixed coordinate.

    Used on machines without a location service. The coordinate comes from
    the arguments or the DEVICE_LATITUDE / DEVICE_LONGITUDE env vars.
    """

    def __init__(
        self,
        latitude: float | None = None,
        longitude: float | None = None,
    ):
        lat = latitude if latitude is not None else os.getenv("DEVICE_LATITUDE")
        lon = longitude if longitude is not None else os.getenv("DEVICE_LONGITUDE")
        self.coordinate = (
            Coordinate(float(lat), float(lon)) if lat is not None and lon is not None else None
        )

    async def request_permission(self) -> bool:
        return self.coordinate is not None

    async def read_fix(self) -> PositionFix:
        if self.coordinate is None:
            raise PermissionDenied("No device position configured.")
        return PositionFix(self.coordinate)


class DevicePositionReader:
    """Reads the device position for the geocoding adapters.

    A cached fix younger than ``max_age_s`` is returned straight away;
    otherwise a fresh fix is awaited for at most ``timeout_s``.
    """

    def __init__(
        self,
        source: PositionSource,
        timeout_s: float = POSITION_TIMEOUT_S,
        max_age_s: float = POSITION_MAX_AGE_S,
    ):
        self.source = source
        self.timeout_s = timeout_s
        self.max_age_s = max_age_s

    async def current_position(self) -> Coordinate:
        if not await self.source.request_permission():
            logger.warning("position_permission_denied")
            raise PermissionDenied()

        cached = self.source.last_known_fix()
        if cached is not None and cached.age() <= self.max_age_s:
            logger.debug("position_cached_fix", age_s=round(cached.age(), 1))
            return cached.coordinate

        try:
            fix = await asyncio.wait_for(self.source.read_fix(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("position_timeout", timeout_s=self.timeout_s)
            raise PositionTimeout(self.timeout_s) from None
        return fix.coordinate
