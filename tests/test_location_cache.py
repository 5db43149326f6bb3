"""Tests for the recent list and saved addresses."""

import json

import pytest

from conftest import MARINA_BAY, ORCHARD, suggestion
from delivery_location.location_cache import (
    RECENT_LOCATIONS_KEY,
    SAVED_ADDRESSES_KEY,
    LocationCache,
)
from delivery_location.models import LocationKind, SavedAddress
from delivery_location.storage import MemoryStore


def saved(id: str, is_default: bool = False) -> SavedAddress:
    return SavedAddress(
        id=id,
        label=id.title(),
        location=suggestion(f"loc_{id}", id.title(), MARINA_BAY),
        is_default=is_default,
    )


class TestRecentLocations:
    @pytest.mark.asyncio
    async def test_capacity_evicts_oldest(self, cache):
        for i in range(6):
            await cache.record_recent(suggestion(f"id{i}", f"Place {i}", MARINA_BAY))

        ids = [loc.id for loc in cache.recent_locations()]
        assert ids == ["id5", "id4", "id3", "id2", "id1"]

    @pytest.mark.asyncio
    async def test_reinsert_moves_to_front(self, cache):
        for i in range(3):
            await cache.record_recent(suggestion(f"id{i}", f"Place {i}", MARINA_BAY))

        await cache.record_recent(suggestion("id0", "Place 0", MARINA_BAY))

        ids = [loc.id for loc in cache.recent_locations()]
        assert ids == ["id0", "id2", "id1"]

    @pytest.mark.asyncio
    async def test_entries_are_stored_as_recent(self, cache, memory_store):
        await cache.record_recent(suggestion("a", "A", MARINA_BAY))

        assert cache.recent_locations()[0].kind == LocationKind.RECENT
        persisted = json.loads(memory_store.data[RECENT_LOCATIONS_KEY])
        assert persisted[0]["id"] == "a"

    @pytest.mark.asyncio
    async def test_delete_recent(self, cache):
        await cache.record_recent(suggestion("a", "A", MARINA_BAY))
        await cache.record_recent(suggestion("b", "B", ORCHARD))

        await cache.delete_recent("a")

        assert [loc.id for loc in cache.recent_locations()] == ["b"]

    @pytest.mark.asyncio
    async def test_first_load_seeds_popular_locations(self):
        popular = [suggestion("p1", "Popular", MARINA_BAY)]
        cache = LocationCache(MemoryStore(), popular=popular)
        await cache.load()
        assert [loc.id for loc in cache.recent_locations()] == ["p1"]

    @pytest.mark.asyncio
    async def test_persisted_empty_list_is_not_reseeded(self):
        store = MemoryStore({RECENT_LOCATIONS_KEY: "[]"})
        cache = LocationCache(store, popular=[suggestion("p1", "Popular", MARINA_BAY)])
        await cache.load()
        assert cache.recent_locations() == []

    @pytest.mark.asyncio
    async def test_corrupt_data_loads_as_empty(self):
        store = MemoryStore({RECENT_LOCATIONS_KEY: "{not json", SAVED_ADDRESSES_KEY: "[{}]"})
        cache = LocationCache(store, popular=[])
        await cache.load()
        assert cache.recent_locations() == []
        assert cache.saved_addresses() == []

    @pytest.mark.asyncio
    async def test_reload_restores_order(self, memory_store):
        cache = LocationCache(memory_store, popular=[])
        await cache.load()
        await cache.record_recent(suggestion("a", "A", MARINA_BAY))
        await cache.record_recent(suggestion("b", "B", ORCHARD))

        reloaded = LocationCache(memory_store, popular=[])
        await reloaded.load()
        assert [loc.id for loc in reloaded.recent_locations()] == ["b", "a"]


class TestSavedAddresses:
    @pytest.mark.asyncio
    async def test_new_default_clears_previous(self, cache):
        await cache.save_address(saved("home", is_default=True))
        await cache.save_address(saved("office", is_default=True))

        defaults = [a.id for a in cache.saved_addresses() if a.is_default]
        assert defaults == ["office"]
        assert cache.default_address().id == "office"

    @pytest.mark.asyncio
    async def test_non_default_save_keeps_existing_default(self, cache):
        await cache.save_address(saved("home", is_default=True))
        await cache.save_address(saved("gym"))

        assert cache.default_address().id == "home"

    @pytest.mark.asyncio
    async def test_upsert_keeps_created_at(self, cache):
        first = await cache.save_address(saved("home"))
        updated = await cache.save_address(saved("home", is_default=True))

        assert len(cache.saved_addresses()) == 1
        assert updated.created_at == first.created_at
        assert updated.updated_at >= first.updated_at

    @pytest.mark.asyncio
    async def test_delete_address_persists(self, cache, memory_store):
        await cache.save_address(saved("home"))
        await cache.save_address(saved("office"))

        await cache.delete_address("home")

        persisted = json.loads(memory_store.data[SAVED_ADDRESSES_KEY])
        assert [a["id"] for a in persisted] == ["office"]

    @pytest.mark.asyncio
    async def test_clear_all(self, cache, memory_store):
        await cache.save_address(saved("home"))
        await cache.record_recent(suggestion("a", "A", MARINA_BAY))

        await cache.clear_all()

        assert cache.saved_addresses() == []
        assert cache.recent_locations() == []
        assert SAVED_ADDRESSES_KEY not in memory_store.data
