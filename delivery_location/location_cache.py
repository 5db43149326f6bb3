"""Recent locations and saved addresses, persisted after every change."""

import json
from dataclasses import replace
from datetime import datetime, timezone

from delivery_location.config import POPULAR_LOCATIONS, RECENT_CAPACITY
from delivery_location.logging_config import get_logger
from delivery_location.models import LocationKind, LocationSuggestion, SavedAddress
from delivery_location.storage import KeyValueStore

logger = get_logger(module="location_cache")

RECENT_LOCATIONS_KEY = "delivery_location:recent_locations"
SAVED_ADDRESSES_KEY = "delivery_location:saved_addresses"


class LocationCache:
    """Holds the recent list (most recent first) and the saved addresses.

    All mutation goes through the methods below, and each one writes the
    affected collection back to the store before returning. Call
    ``load()`` once at start-up.
    """

    def __init__(
        self,
        store: KeyValueStore,
        capacity: int = RECENT_CAPACITY,
        popular: list[LocationSuggestion] | None = None,
    ):
        self.store = store
        self.capacity = capacity
        self.popular = list(popular if popular is not None else POPULAR_LOCATIONS)
        self._recent: list[LocationSuggestion] = []
        self._saved: list[SavedAddress] = []

    async def load(self) -> None:
        recent_json = await self.store.get(RECENT_LOCATIONS_KEY)
        saved_json = await self.store.get(SAVED_ADDRESSES_KEY)

        recent = self._decode(recent_json, LocationSuggestion.from_dict, RECENT_LOCATIONS_KEY)
        if recent_json is None:
            # First run: show popular places instead of an empty list.
            recent = list(self.popular)
        self._recent = recent[: self.capacity]
        self._saved = self._decode(saved_json, SavedAddress.from_dict, SAVED_ADDRESSES_KEY)
        logger.debug("cache_loaded", recent=len(self._recent), saved=len(self._saved))

    @staticmethod
    def _decode(raw: str | None, parse, key: str) -> list:
        if raw is None:
            return []
        try:
            return [parse(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("cache_corrupt", key=key, error=str(exc))
            return []

    def recent_locations(self) -> list[LocationSuggestion]:
        return list(self._recent)

    def saved_addresses(self) -> list[SavedAddress]:
        return list(self._saved)

    def default_address(self) -> SavedAddress | None:
        for address in self._saved:
            if address.is_default:
                return address
        return None

    def find_saved(self, address_id: str) -> SavedAddress | None:
        for address in self._saved:
            if address.id == address_id:
                return address
        return None

    async def _persist_recent(self) -> None:
        await self.store.set(
            RECENT_LOCATIONS_KEY, json.dumps([loc.to_dict() for loc in self._recent])
        )

    async def _persist_saved(self) -> None:
        await self.store.set(
            SAVED_ADDRESSES_KEY, json.dumps([addr.to_dict() for addr in self._saved])
        )

    async def record_recent(self, location: LocationSuggestion | SavedAddress) -> None:
        """Put *location* at the front of the recent list.

        An entry with the same id is moved rather than duplicated, and the
        list is truncated to capacity. Saved addresses are recorded through
        their underlying location.
        """
        if isinstance(location, SavedAddress):
            location = location.location
        entry = location.with_kind(LocationKind.RECENT)
        self._recent = [entry] + [loc for loc in self._recent if loc.id != entry.id]
        del self._recent[self.capacity:]
        await self._persist_recent()

    async def delete_recent(self, location_id: str) -> None:
        self._recent = [loc for loc in self._recent if loc.id != location_id]
        await self._persist_recent()

    async def save_address(self, address: SavedAddress) -> SavedAddress:
        """Insert or update *address*, keeping at most one default.

        Returns:
            The stored address with refreshed timestamps.
        """
        now = datetime.now(timezone.utc)
        existing = self.find_saved(address.id)
        stored = replace(
            address,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

        saved = self._saved
        if stored.is_default:
            saved = [replace(a, is_default=False) if a.is_default else a for a in saved]

        if existing:
            saved = [stored if a.id == stored.id else a for a in saved]
        else:
            saved = saved + [stored]

        self._saved = saved
        await self._persist_saved()
        logger.info("address_saved", address_id=stored.id, is_default=stored.is_default)
        return stored

    async def delete_address(self, address_id: str) -> None:
        self._saved = [a for a in self._saved if a.id != address_id]
        await self._persist_saved()

    async def clear_all(self) -> None:
        """Forget every recent location and saved address."""
        self._recent = []
        self._saved = []
        await self.store.remove(RECENT_LOCATIONS_KEY)
        await self.store.remove(SAVED_ADDRESSES_KEY)
