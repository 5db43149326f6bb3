"""Google Maps Platform client for place search and geocoding."""

import asyncio
import os
import re
import secrets

import requests
from dotenv import load_dotenv

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import MIN_QUERY_LENGTH, SINGAPORE_CENTER
from delivery_location.logging_config import get_logger
from delivery_location.models import Coordinate, LocationKind, LocationSuggestion
from delivery_location.position import DevicePositionReader, PositionSource, StaticPositionSource

load_dotenv()

logger = get_logger(module="google_maps_client")

BASE_URL = "https://maps.googleapis.com/maps/api"

# Keys shipped in sample configuration files rather than real credentials.
_PLACEHOLDER_KEYS = {"your_google_maps_api_key_here", "DEVELOPMENT_MODE"}

_MAX_PREDICTIONS = 5
_SEARCH_RADIUS_M = 50000


def extract_location_name(formatted_address: str) -> str:
    """Return a short title for a formatted address.

    The first comma-separated part is used, joined with the second part when
    the first starts with a house number (``"10, Bayfront Ave"``).
    """
    parts = [p.strip() for p in formatted_address.split(",")]
    if not parts or not parts[0]:
        return formatted_address
    if re.match(r"^\d+", parts[0]) and len(parts) > 1:
        return f"{parts[0]}, {parts[1]}"
    return parts[0]


def _component(result: dict, component_type: str) -> dict | None:
    for component in result.get("address_components", []):
        if component_type in component.get("types", []):
            return component
    return None


def _postal_code(result: dict) -> str | None:
    component = _component(result, "postal_code")
    return component.get("long_name") if component else None


def _coordinate(result: dict) -> Coordinate | None:
    location = result.get("geometry", {}).get("location")
    if not location:
        return None
    return Coordinate(latitude=location["lat"], longitude=location["lng"])


class GoogleMapsClient(GeocodingPort):
    """Client for the Google Places and Geocoding web services."""

    def __init__(
        self,
        api_key: str | None = None,
        region: str = "sg",
        language: str = "en",
        timeout: float | None = None,
        position_source: PositionSource | None = None,
    ):
        self.api_key = api_key or os.getenv("GOOGLE_MAPS_API_KEY", "")
        if not self.api_key or self.api_key in _PLACEHOLDER_KEYS:
            raise ValueError(
                "GOOGLE_MAPS_API_KEY must be set either as an argument or in a .env file."
            )
        self.region = region
        self.language = language
        self.timeout = timeout or float(os.getenv("GEOCODING_TIMEOUT", "10"))
        self.position = DevicePositionReader(position_source or StaticPositionSource())
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _get(self, endpoint: str, params: dict) -> dict:
        """Make a GET request and check the Google status field.

        Args:
            endpoint: Path below the API root (e.g. ``place/autocomplete``).
            params: Query parameters; the API key is added here.

        Returns:
            Parsed JSON response dict.

        Raises:
            requests.RequestException: On transport or HTTP errors, or when
                the API answers with a status other than OK / ZERO_RESULTS.
        """
        resp = self.session.get(
            f"{BASE_URL}/{endpoint}/json",
            params={**params, "key": self.api_key},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        status = data.get("status", "OK")
        if status not in ("OK", "ZERO_RESULTS"):
            raise requests.RequestException(
                f"Google {endpoint} returned {status}: {data.get('error_message', '')}"
            )
        return data

    async def _get_async(self, endpoint: str, params: dict) -> dict:
        return await asyncio.to_thread(self._get, endpoint, params)

    async def search(self, query: str) -> list[LocationSuggestion]:
        """Fetch autocomplete predictions restricted to the configured region.

        Args:
            query: Free-text query.

        Returns:
            Up to five suggestions without coordinates; an empty list on
            any provider failure.
        """
        query = query.strip()
        if len(query) <= MIN_QUERY_LENGTH:
            return []

        params = {
            "input": query,
            "sessiontoken": secrets.token_urlsafe(12),
            "components": f"country:{self.region}",
            "language": self.language,
            "location": f"{SINGAPORE_CENTER.latitude},{SINGAPORE_CENTER.longitude}",
            "radius": str(_SEARCH_RADIUS_M),
        }
        try:
            data = await self._get_async("place/autocomplete", params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("autocomplete_failed", query=query, error=str(exc))
            return []

        suggestions: list[LocationSuggestion] = []
        for prediction in data.get("predictions", [])[:_MAX_PREDICTIONS]:
            formatting = prediction.get("structured_formatting", {})
            description = prediction.get("description", "")
            suggestions.append(
                LocationSuggestion(
                    id=prediction["place_id"],
                    place_id=prediction["place_id"],
                    title=formatting.get("main_text") or extract_location_name(description),
                    subtitle=formatting.get("secondary_text") or description,
                    kind=LocationKind.SEARCH_SUGGESTION,
                    address=description,
                )
            )

        logger.debug("autocomplete_results", query=query, count=len(suggestions))
        return suggestions

    async def resolve_details(self, place_id: str) -> LocationSuggestion | None:
        params = {
            "place_id": place_id,
            "fields": "formatted_address,geometry,name,place_id,types,address_components",
            "language": self.language,
        }
        try:
            data = await self._get_async("place/details", params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("place_details_failed", place_id=place_id, error=str(exc))
            return None

        result = data.get("result")
        if not result:
            return None

        formatted = result.get("formatted_address", "")
        return LocationSuggestion(
            id=result.get("place_id", place_id),
            place_id=result.get("place_id", place_id),
            title=result.get("name") or extract_location_name(formatted),
            subtitle=formatted,
            kind=LocationKind.SEARCH_SUGGESTION,
            coordinate=_coordinate(result),
            address=formatted,
            postal_code=_postal_code(result),
        )

    async def geocode(self, address: str) -> LocationSuggestion | None:
        params = {
            "address": address,
            "region": self.region,
            "language": self.language,
            "components": f"country:{self.region}",
        }
        try:
            data = await self._get_async("geocode", params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("geocode_failed", address=address, error=str(exc))
            return None

        results = data.get("results", [])
        if not results:
            return None

        result = results[0]
        formatted = result.get("formatted_address", address)
        return LocationSuggestion(
            id=result.get("place_id") or f"geocode_{address}",
            place_id=result.get("place_id"),
            title=extract_location_name(formatted),
            subtitle=formatted,
            kind=LocationKind.SEARCH_SUGGESTION,
            coordinate=_coordinate(result),
            address=formatted,
            postal_code=_postal_code(result),
        )

    async def reverse_geocode(self, coordinate: Coordinate) -> LocationSuggestion | None:
        params = {
            "latlng": f"{coordinate.latitude},{coordinate.longitude}",
            "region": self.region,
            "language": self.language,
            "result_type": "street_address|premise|establishment",
        }
        try:
            data = await self._get_async("geocode", params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("reverse_geocode_failed", coordinate=coordinate.label(), error=str(exc))
            return None

        results = data.get("results", [])
        if not results:
            return None

        result = results[0]
        formatted = result.get("formatted_address", "")
        return LocationSuggestion(
            id=f"reverse_{coordinate.latitude:.6f}_{coordinate.longitude:.6f}",
            place_id=result.get("place_id"),
            title=extract_location_name(formatted) or coordinate.label(),
            subtitle=formatted,
            kind=LocationKind.DROPPED_PIN,
            # The pin position wins over the geocoder's snapped result.
            coordinate=coordinate,
            address=formatted,
            postal_code=_postal_code(result),
        )

    async def current_device_position(self) -> Coordinate:
        return await self.position.current_position()
