"""OneMap (Singapore Land Authority) client for address search and reverse geocoding."""

import asyncio
import os

import requests
from dotenv import load_dotenv

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import MIN_QUERY_LENGTH
from delivery_location.logging_config import get_logger
from delivery_location.models import Coordinate, LocationKind, LocationSuggestion
from delivery_location.position import DevicePositionReader, PositionSource, StaticPositionSource

load_dotenv()

logger = get_logger(module="onemap_client")

BASE_URL = "https://www.onemap.gov.sg/api"

# OneMap marks missing address parts with this literal.
_NIL = "NIL"

# Search radius in metres around a reverse geocoded point.
_REVERSE_BUFFER_M = 40

_MAX_RESULTS = 5


def _clean(value: str | None) -> str:
    if not value or value == _NIL:
        return ""
    return value.strip()


def _title_case(value: str) -> str:
    return " ".join(word.capitalize() for word in value.split())


def _place_id(postal: str, fallback: str) -> str:
    return f"onemap_{postal}" if postal else f"onemap_{fallback}"


def _search_result_to_suggestion(result: dict) -> LocationSuggestion | None:
    """Convert one ``elastic/search`` result row into a suggestion.

    Args:
        result: Row with SEARCHVAL, BLK_NO, ROAD_NAME, BUILDING, ADDRESS,
                POSTAL, LATITUDE and LONGITUDE keys.

    Returns:
        A located suggestion, or None when the row has no usable coordinate.
    """
    try:
        coordinate = Coordinate(float(result["LATITUDE"]), float(result["LONGITUDE"]))
    except (KeyError, TypeError, ValueError):
        return None

    postal = _clean(result.get("POSTAL"))
    building = _clean(result.get("BUILDING"))
    street = " ".join(
        p for p in (_clean(result.get("BLK_NO")), _clean(result.get("ROAD_NAME"))) if p
    )
    address = _title_case(_clean(result.get("ADDRESS")) or street)
    title = _title_case(building or _clean(result.get("SEARCHVAL")) or street)
    place_id = _place_id(postal, title.lower().replace(" ", "_"))

    return LocationSuggestion(
        id=place_id,
        place_id=place_id,
        title=title or coordinate.label(),
        subtitle=address,
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=coordinate,
        address=address,
        building_name=_title_case(building) or None,
        postal_code=postal or None,
    )


class OneMapClient(GeocodingPort):
    """Client for the OneMap search and reverse geocoding APIs."""

    def __init__(
        self,
        api_token: str | None = None,
        timeout: float | None = None,
        position_source: PositionSource | None = None,
    ):
        # Search is public; only reverse geocoding needs the token.
        self.api_token = api_token or os.getenv("ONEMAP_API_TOKEN", "")
        self.timeout = timeout or float(os.getenv("GEOCODING_TIMEOUT", "10"))
        self.position = DevicePositionReader(position_source or StaticPositionSource())
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if self.api_token:
            self.session.headers.update({"Authorization": self.api_token})

    def _get(self, path: str, params: dict) -> dict:
        """Make a GET request to the OneMap API.

        Args:
            path: Endpoint path (e.g. /common/elastic/search).
            params: Query parameters.

        Returns:
            Parsed JSON response dict.
        """
        resp = self.session.get(f"{BASE_URL}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    async def _search_rows(self, value: str) -> list[dict]:
        params = {
            "searchVal": value,
            "returnGeom": "Y",
            "getAddrDetails": "Y",
            "pageNum": "1",
        }
        data = await asyncio.to_thread(self._get, "/common/elastic/search", params)
        return data.get("results", [])

    async def search(self, query: str) -> list[LocationSuggestion]:
        query = query.strip()
        if len(query) <= MIN_QUERY_LENGTH:
            return []
        try:
            rows = await self._search_rows(query)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("search_failed", query=query, error=str(exc))
            return []

        suggestions: list[LocationSuggestion] = []
        seen: set[str] = set()
        for row in rows:
            suggestion = _search_result_to_suggestion(row)
            if suggestion is None or suggestion.id in seen:
                continue
            seen.add(suggestion.id)
            suggestions.append(suggestion)
            if len(suggestions) >= _MAX_RESULTS:
                break
        return suggestions

    async def resolve_details(self, place_id: str) -> LocationSuggestion | None:
        """Look a place up again by the postal code embedded in its id."""
        key = place_id.removeprefix("onemap_")
        return await self.geocode(key.replace("_", " "))

    async def geocode(self, address: str) -> LocationSuggestion | None:
        try:
            rows = await self._search_rows(address)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("geocode_failed", address=address, error=str(exc))
            return None
        for row in rows:
            suggestion = _search_result_to_suggestion(row)
            if suggestion is not None:
                return suggestion
        return None

    async def reverse_geocode(self, coordinate: Coordinate) -> LocationSuggestion | None:
        if not self.api_token:
            logger.warning("reverse_geocode_skipped", reason="ONEMAP_API_TOKEN not set")
            return None

        params = {
            "location": f"{coordinate.latitude},{coordinate.longitude}",
            "buffer": str(_REVERSE_BUFFER_M),
            "addressType": "All",
            "otherFeatures": "N",
        }
        try:
            data = await asyncio.to_thread(self._get, "/public/revgeocode", params)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("reverse_geocode_failed", coordinate=coordinate.label(), error=str(exc))
            return None

        info = data.get("GeocodeInfo", [])
        if not info:
            return None

        first = info[0]
        building = _title_case(_clean(first.get("BUILDINGNAME")))
        street = _title_case(
            " ".join(p for p in (_clean(first.get("BLOCK")), _clean(first.get("ROAD"))) if p)
        )
        postal = _clean(first.get("POSTALCODE"))
        address = ", ".join(p for p in (street, f"Singapore {postal}" if postal else "") if p)

        return LocationSuggestion(
            id=f"reverse_{coordinate.latitude:.6f}_{coordinate.longitude:.6f}",
            title=building or street or coordinate.label(),
            subtitle=address or None,
            kind=LocationKind.DROPPED_PIN,
            coordinate=coordinate,
            address=address or None,
            building_name=building or None,
            postal_code=postal or None,
        )

    async def current_device_position(self) -> Coordinate:
        return await self.position.current_position()
