"""Abstract base class for geocoding providers."""

from abc import ABC, abstractmethod

from delivery_location.models import Coordinate, LocationSuggestion


class GeocodingPort(ABC):
    """Base class that all geocoding provider adapters must implement.

    Provider failures are absorbed by the adapter: lookups return an empty
    list or ``None`` instead of raising. Only device position acquisition
    raises, because a denied permission needs the user's attention.
    """

    @abstractmethod
    async def search(self, query: str) -> list[LocationSuggestion]:
        """Return place suggestions for a free-text query.

        Args:
            query: Text typed by the user. Queries of two characters or
                   fewer return an empty list without a network call.

        Returns:
            Suggestions of kind ``search-suggestion`` (or ``postal``), which
            may lack a coordinate until resolved.
        """

    @abstractmethod
    async def resolve_details(self, place_id: str) -> LocationSuggestion | None:
        """Fetch the precise coordinate and formatted address of a place."""

    @abstractmethod
    async def reverse_geocode(self, coordinate: Coordinate) -> LocationSuggestion | None:
        """Map a coordinate to a human-readable address."""

    @abstractmethod
    async def geocode(self, address: str) -> LocationSuggestion | None:
        """Resolve a full address string to a single located suggestion."""

    @abstractmethod
    async def current_device_position(self) -> Coordinate:
        """Return the device position.

        Raises:
            PermissionDenied: The user has not granted location access.
            PositionTimeout: No fix arrived within the allowed time.
        """
