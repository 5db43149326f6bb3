"""Shared fixtures and fakes for the delivery location tests."""

import asyncio

import pytest
import pytest_asyncio

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.errors import PermissionDenied
from delivery_location.geofence import GeofenceEngine
from delivery_location.location_cache import LocationCache
from delivery_location.location_store import DeliveryLocationStore
from delivery_location.logging_config import configure_logging
from delivery_location.models import Coordinate, DeliveryZone, LocationKind, LocationSuggestion
from delivery_location.storage import MemoryStore

configure_logging(level="debug", testing=True)

MARINA_BAY = Coordinate(1.2834, 103.8607)
ORCHARD = Coordinate(1.3048, 103.8318)
# Roughly 25 km west of Marina Bay.
TUAS = Coordinate(1.3200, 103.6400)


class FakeGeocoder(GeocodingPort):
    """In-memory geocoder that records calls.

    Setting ``gates[key]`` to an asyncio.Event holds the matching call until
    the event is set, which lets tests control response order.
    """

    def __init__(
        self,
        results: dict[str, list[LocationSuggestion]] | None = None,
        details: dict[str, LocationSuggestion] | None = None,
        reverse: dict[Coordinate, LocationSuggestion] | None = None,
        position: Coordinate | None = None,
        position_error: Exception | None = None,
    ):
        self.results = results or {}
        self.details = details or {}
        self.reverse = reverse or {}
        self.position = position
        self.position_error = position_error
        self.gates: dict[object, asyncio.Event] = {}
        self.search_calls: list[str] = []
        self.detail_calls: list[str] = []
        self.geocode_calls: list[str] = []
        self.reverse_calls: list[Coordinate] = []

    async def _gate(self, key):
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()

    async def search(self, query: str) -> list[LocationSuggestion]:
        self.search_calls.append(query)
        await self._gate(query)
        return list(self.results.get(query, []))

    async def resolve_details(self, place_id: str) -> LocationSuggestion | None:
        self.detail_calls.append(place_id)
        await self._gate(place_id)
        return self.details.get(place_id)

    async def geocode(self, address: str) -> LocationSuggestion | None:
        self.geocode_calls.append(address)
        return None

    async def reverse_geocode(self, coordinate: Coordinate) -> LocationSuggestion | None:
        self.reverse_calls.append(coordinate)
        await self._gate(coordinate)
        return self.reverse.get(coordinate)

    async def current_device_position(self) -> Coordinate:
        if self.position_error is not None:
            raise self.position_error
        if self.position is None:
            raise PermissionDenied()
        return self.position


class GatedStore(MemoryStore):
    """MemoryStore whose writes to keys in ``gates`` wait for the event."""

    def __init__(self, initial: dict[str, str] | None = None):
        super().__init__(initial)
        self.gates: dict[str, asyncio.Event] = {}

    async def set(self, key: str, value: str) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        await super().set(key, value)


class FailingStore(MemoryStore):
    """MemoryStore that raises OSError when writing any key in ``failing``."""

    def __init__(self, *failing: str):
        super().__init__()
        self.failing = set(failing)

    async def set(self, key: str, value: str) -> None:
        if key in self.failing:
            raise OSError(f"disk full writing {key}")
        await super().set(key, value)


async def settle(seconds: float = 0.05) -> None:
    """Let pending timers and tasks run."""
    await asyncio.sleep(seconds)


def suggestion(
    id: str,
    title: str,
    coordinate: Coordinate | None = None,
    kind: LocationKind = LocationKind.SEARCH_SUGGESTION,
    place_id: str | None = None,
) -> LocationSuggestion:
    return LocationSuggestion(
        id=id,
        title=title,
        kind=kind,
        coordinate=coordinate,
        place_id=place_id,
        subtitle=f"{title}, Singapore",
    )


@pytest.fixture
def zones() -> list[DeliveryZone]:
    return [
        DeliveryZone("Marina Bay", MARINA_BAY, 3.0, special_pricing=True),
        DeliveryZone("Orchard Road", ORCHARD, 3.0),
    ]


@pytest.fixture
def geofence(zones) -> GeofenceEngine:
    return GeofenceEngine(zones)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest_asyncio.fixture
async def cache(memory_store) -> LocationCache:
    cache = LocationCache(memory_store, popular=[])
    await cache.load()
    return cache


@pytest_asyncio.fixture
async def location_store(memory_store) -> DeliveryLocationStore:
    store = DeliveryLocationStore(memory_store)
    await store.init()
    return store
