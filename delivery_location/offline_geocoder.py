"""Geocoder backed by the built-in popular locations, for development without an API key."""

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import MIN_QUERY_LENGTH, POPULAR_LOCATIONS
from delivery_location.geofence import distance_km
from delivery_location.models import Coordinate, LocationKind, LocationSuggestion
from delivery_location.position import DevicePositionReader, PositionSource, StaticPositionSource

# Reverse geocoding snaps to a known place only when it is this close.
_SNAP_RADIUS_KM = 0.5


class OfflineGeocoder(GeocodingPort):
    """Answers every lookup from a fixed list of locations."""

    def __init__(
        self,
        locations: list[LocationSuggestion] | None = None,
        position_source: PositionSource | None = None,
    ):
        self.locations = list(locations if locations is not None else POPULAR_LOCATIONS)
        self.position = DevicePositionReader(position_source or StaticPositionSource())

    async def search(self, query: str) -> list[LocationSuggestion]:
        query = query.strip().lower()
        if len(query) <= MIN_QUERY_LENGTH:
            return []
        return [
            loc
            for loc in self.locations
            if query in loc.title.lower() or query in (loc.subtitle or "").lower()
        ]

    async def resolve_details(self, place_id: str) -> LocationSuggestion | None:
        for loc in self.locations:
            if place_id in (loc.id, loc.place_id):
                return loc
        return None

    async def geocode(self, address: str) -> LocationSuggestion | None:
        matches = await self.search(address)
        return matches[0] if matches else None

    async def reverse_geocode(self, coordinate: Coordinate) -> LocationSuggestion | None:
        located = [loc for loc in self.locations if loc.coordinate is not None]
        if not located:
            return None
        nearest = min(located, key=lambda loc: distance_km(coordinate, loc.coordinate))
        if distance_km(coordinate, nearest.coordinate) > _SNAP_RADIUS_KM:
            return None
        return LocationSuggestion(
            id=f"reverse_{coordinate.latitude:.6f}_{coordinate.longitude:.6f}",
            title=nearest.title,
            subtitle=nearest.subtitle,
            kind=LocationKind.DROPPED_PIN,
            coordinate=coordinate,
            address=nearest.address,
            postal_code=nearest.postal_code,
        )

    async def current_device_position(self) -> Coordinate:
        return await self.position.current_position()
