"""The current delivery location shared by the rest of the app."""

import json
from collections.abc import Callable
from dataclasses import asdict, dataclass, replace

from delivery_location.logging_config import get_logger
from delivery_location.models import (
    DeliveryLocation,
    LocationKind,
    LocationSuggestion,
    SavedAddress,
    location_from_dict,
    location_to_dict,
)
from delivery_location.storage import KeyValueStore

logger = get_logger(module="location_store")

PREFERENCES_KEY = "delivery_location:preferences"
CURRENT_LOCATION_KEY = "delivery_location:current"


@dataclass
class LocationPreferences:
    """Persisted choices about how the delivery location is picked.

    ``auto_suggest_current`` is off unless the user turns it on.
    """

    last_location_source: str | None = None
    prevent_current_location_auto_select: bool = False
    auto_suggest_current: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "LocationPreferences":
        return cls(
            last_location_source=data.get("last_location_source"),
            prevent_current_location_auto_select=bool(
                data.get("prevent_current_location_auto_select", False)
            ),
            auto_suggest_current=bool(data.get("auto_suggest_current", False)),
        )


def location_source(kind: LocationKind) -> str:
    if kind == LocationKind.CURRENT:
        return "current"
    if kind == LocationKind.SAVED:
        return "saved"
    return "search"


class DeliveryLocationStore:
    """Holds the one confirmed delivery location.

    Construct once at app start, ``await init()``, and pass the instance to
    whatever needs it. ``get()`` reads memory only; ``set()`` and
    ``clear()`` write through to the backing store before returning.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.preferences = LocationPreferences()
        self._location: DeliveryLocation = None
        self._listeners: list[Callable[[DeliveryLocation], None]] = []

    async def init(self) -> None:
        raw_prefs = await self.store.get(PREFERENCES_KEY)
        if raw_prefs:
            try:
                self.preferences = LocationPreferences.from_dict(json.loads(raw_prefs))
            except (ValueError, TypeError) as exc:
                logger.warning("preferences_corrupt", error=str(exc))

        raw_location = await self.store.get(CURRENT_LOCATION_KEY)
        if raw_location:
            try:
                self._location = location_from_dict(json.loads(raw_location))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("current_location_corrupt", error=str(exc))

    def get(self) -> DeliveryLocation:
        return self._location

    def subscribe(self, listener: Callable[[DeliveryLocation], None]) -> Callable[[], None]:
        """Register *listener* for location changes; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._location)

    async def _persist_preferences(self) -> None:
        await self.store.set(PREFERENCES_KEY, json.dumps(asdict(self.preferences)))

    async def set(self, location: LocationSuggestion | SavedAddress) -> None:
        """Make *location* the delivery location and update the source flags.

        Memory is only updated once both records are persisted.
        """
        preferences = replace(
            self.preferences,
            last_location_source=location_source(location.kind),
            # A deliberate non-GPS choice must never be replaced by a later GPS fix.
            prevent_current_location_auto_select=location.kind != LocationKind.CURRENT,
        )

        await self.store.set(CURRENT_LOCATION_KEY, json.dumps(location_to_dict(location)))
        await self.store.set(PREFERENCES_KEY, json.dumps(asdict(preferences)))
        self._location = location
        self.preferences = preferences
        logger.info(
            "delivery_location_set",
            location_id=location.id,
            source=self.preferences.last_location_source,
        )
        self._notify()

    async def clear(self) -> None:
        """Forget the delivery location. Only called on explicit user action."""
        self._location = None
        self.preferences.prevent_current_location_auto_select = False
        await self.store.remove(CURRENT_LOCATION_KEY)
        await self._persist_preferences()
        self._notify()

    async def set_auto_suggest_current(self, enabled: bool) -> None:
        self.preferences.auto_suggest_current = enabled
        await self._persist_preferences()

    def may_auto_select_current(self) -> bool:
        return (
            self.preferences.auto_suggest_current
            and not self.preferences.prevent_current_location_auto_select
        )

    async def offer_detected_location(self, location: LocationSuggestion) -> bool:
        """Apply a freshly detected GPS location if the preferences allow it.

        Returns:
            True if the location was applied.
        """
        if location.kind != LocationKind.CURRENT:
            raise ValueError("Only current-location fixes can be offered.")
        if not self.may_auto_select_current():
            logger.debug(
                "detected_location_ignored",
                prevent=self.preferences.prevent_current_location_auto_select,
                auto_suggest=self.preferences.auto_suggest_current,
            )
            return False
        await self.set(location)
        return True
