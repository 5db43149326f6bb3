"""Location picker controller: from user input to one confirmed delivery location."""

from collections.abc import Callable
from dataclasses import dataclass, replace

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import REGION_SETTLE_S, SEARCH_DEBOUNCE_S
from delivery_location.errors import InvalidTransition
from delivery_location.geofence import EligibilityResult, GeofenceEngine
from delivery_location.location_cache import LocationCache
from delivery_location.location_store import DeliveryLocationStore
from delivery_location.logging_config import get_logger
from delivery_location.models import Coordinate, LocationKind, LocationSuggestion, SavedAddress
from delivery_location.picker_states import PickerEvent, PickerState, advance, can_advance
from delivery_location.search_session import Debouncer, SearchSession

logger = get_logger(module="selection_controller")

UNRESOLVED_MESSAGE = "Unable to determine location coordinates. Please try a different address."

Candidate = LocationSuggestion | SavedAddress


def _noop(*_args) -> None:
    return None


@dataclass
class PickerCallbacks:
    """Hooks through which the UI layer observes the picker."""

    on_suggestions_changed: Callable[[list[LocationSuggestion]], None] = _noop
    on_candidate_ready: Callable[[Candidate], None] = _noop
    on_eligibility_rejected: Callable[[str], None] = _noop
    on_confirmed: Callable[[Candidate], None] = _noop
    on_error: Callable[[str], None] = _noop


class SelectionController:
    """Drives the picker through its states.

    Legal moves come from ``picker_states``; this class performs the side
    effects around them. Geocoding results are tagged with a generation so
    a pin drop, region change, cancel or new selection makes any older
    pending lookup inert.
    """

    def __init__(
        self,
        geocoder: GeocodingPort,
        geofence: GeofenceEngine,
        cache: LocationCache,
        store: DeliveryLocationStore,
        callbacks: PickerCallbacks | None = None,
        debounce_s: float = SEARCH_DEBOUNCE_S,
        region_settle_s: float = REGION_SETTLE_S,
    ):
        self.geocoder = geocoder
        self.geofence = geofence
        self.cache = cache
        self.store = store
        self.callbacks = callbacks or PickerCallbacks()
        self.state = PickerState.IDLE
        self.suggestions: list[LocationSuggestion] = []
        self.candidate: Candidate | None = None
        self.last_eligibility: EligibilityResult | None = None
        self.search = SearchSession(
            geocoder,
            on_results=self._on_search_results,
            on_cleared=self._on_search_cleared,
            debounce_s=debounce_s,
        )
        self._region_settle = Debouncer(region_settle_s)
        self._lookup_generation = 0
        self._confirming = False

    def _advance(self, event: PickerEvent) -> None:
        previous = self.state
        self.state = advance(self.state, event)
        logger.debug(
            "picker_transition",
            picker_event=event.value,
            frm=previous.value,
            to=self.state.value,
        )

    def _require(self, event: PickerEvent) -> None:
        if not can_advance(self.state, event):
            raise InvalidTransition(self.state, event)

    def _next_lookup(self) -> int:
        self._lookup_generation += 1
        return self._lookup_generation

    def _set_suggestions(self, suggestions: list[LocationSuggestion]) -> None:
        self.suggestions = suggestions
        self.callbacks.on_suggestions_changed(list(suggestions))

    def _set_candidate(self, candidate: Candidate) -> None:
        self.candidate = candidate
        self.callbacks.on_candidate_ready(candidate)

    def default_suggestions(self) -> list[LocationSuggestion]:
        """Recent locations, or the popular list when there are none."""
        return self.cache.recent_locations() or list(self.cache.popular)

    # Search

    def open_picker(self) -> None:
        """Show the picker with cached suggestions; no network call is made."""
        self._advance(PickerEvent.OPEN)
        self._set_suggestions(self.default_suggestions())

    def update_query(self, text: str) -> None:
        if self.state == PickerState.IDLE:
            self.open_picker()
        if self.state not in (
            PickerState.SEARCH_ACTIVE,
            PickerState.SUGGESTIONS_READY,
            PickerState.CANDIDATE_READY,
        ):
            raise InvalidTransition(self.state, PickerEvent.RESULTS_READY)
        self.search.update_query(text)

    async def submit_postal_code(self, postal_code: str) -> list[LocationSuggestion] | None:
        """Search for a postal code.

        Raises:
            InvalidPostalCode: Malformed input; nothing is sent to the provider.
        """
        if self.state == PickerState.IDLE:
            self.open_picker()
        return await self.search.search_postal_code(postal_code)

    def _on_search_results(self, results: list[LocationSuggestion]) -> None:
        if not can_advance(self.state, PickerEvent.RESULTS_READY):
            logger.debug("search_results_ignored", state=self.state.value)
            return
        self._advance(PickerEvent.RESULTS_READY)
        # An empty answer falls back to cached places rather than a blank list.
        self._set_suggestions(results or self.default_suggestions())

    def _on_search_cleared(self) -> None:
        if not can_advance(self.state, PickerEvent.RESULTS_CLEARED):
            return
        self._advance(PickerEvent.RESULTS_CLEARED)
        self._set_suggestions(self.default_suggestions())

    async def _resolve(self, suggestion: LocationSuggestion) -> LocationSuggestion | None:
        details = None
        if suggestion.place_id:
            details = await self.geocoder.resolve_details(suggestion.place_id)
        if details is None or details.coordinate is None:
            address = suggestion.address or suggestion.subtitle
            if address:
                details = await self.geocoder.geocode(address)
        if details is None or details.coordinate is None:
            return None
        return replace(
            suggestion,
            coordinate=details.coordinate,
            address=details.address or suggestion.address,
            subtitle=suggestion.subtitle or details.subtitle,
            postal_code=details.postal_code or suggestion.postal_code,
        )

    async def select_suggestion(self, suggestion: LocationSuggestion) -> Candidate | None:
        """Make *suggestion* the candidate, resolving its coordinate first if needed.

        Returns:
            The candidate, or None if it could not be located or a newer
            action superseded the lookup.
        """
        self._require(PickerEvent.SELECT_SUGGESTION)
        self.search.reset()
        self._region_settle.cancel()
        generation = self._next_lookup()

        resolved = suggestion
        if not suggestion.has_coordinate:
            resolved = await self._resolve(suggestion)
            if generation != self._lookup_generation:
                return None
            if resolved is None:
                logger.info("suggestion_unresolved", suggestion_id=suggestion.id)
                self.callbacks.on_error(UNRESOLVED_MESSAGE)
                return None

        if not can_advance(self.state, PickerEvent.SELECT_SUGGESTION):
            return None
        self._advance(PickerEvent.SELECT_SUGGESTION)
        self._set_candidate(resolved)
        return resolved

    async def select_saved_address(self, address: SavedAddress) -> Candidate | None:
        self._require(PickerEvent.SELECT_SAVED)
        self.search.reset()
        self._region_settle.cancel()
        generation = self._next_lookup()

        if not address.has_coordinate:
            location = await self._resolve(address.location)
            if generation != self._lookup_generation:
                return None
            if location is None:
                self.callbacks.on_error(UNRESOLVED_MESSAGE)
                return None
            address = replace(address, location=location)

        if not can_advance(self.state, PickerEvent.SELECT_SAVED):
            return None
        self._advance(PickerEvent.SELECT_SAVED)
        self._set_candidate(address)
        return address

    # Map

    def enter_map_mode(self) -> None:
        self.search.reset()
        self._advance(PickerEvent.ENTER_MAP)

    async def drop_pin(self, coordinate: Coordinate) -> Candidate | None:
        """Place the pin and reverse geocode it.

        Returns:
            The candidate, or None if a newer pin drop superseded this one.
        """
        self._region_settle.cancel()
        self._advance(PickerEvent.PIN_DROP)
        self._advance(PickerEvent.GEOCODE_START)
        return await self._reverse_geocode(coordinate, LocationKind.DROPPED_PIN)

    def region_changed(self, coordinate: Coordinate) -> None:
        """Handle the end of a map drag; geocodes once the map has settled."""
        if not can_advance(self.state, PickerEvent.PIN_DROP):
            return
        # Any lookup for the previous region is now out of date.
        generation = self._next_lookup()
        self._region_settle.schedule(lambda: self._settled(coordinate, generation))

    async def _settled(self, coordinate: Coordinate, generation: int) -> None:
        # A selection, pin drop or cancel since the drag supersedes it.
        if generation != self._lookup_generation:
            return
        if can_advance(self.state, PickerEvent.PIN_DROP):
            await self.drop_pin(coordinate)

    async def _reverse_geocode(self, coordinate: Coordinate, kind: LocationKind) -> Candidate | None:
        generation = self._next_lookup()
        result = await self.geocoder.reverse_geocode(coordinate)
        if generation != self._lookup_generation:
            logger.debug("stale_reverse_geocode_discarded", coordinate=coordinate.label())
            return None

        if result is None:
            candidate = LocationSuggestion(
                id=f"pin_{coordinate.latitude:.6f}_{coordinate.longitude:.6f}",
                title=coordinate.label(),
                kind=kind,
                coordinate=coordinate,
            )
        else:
            candidate = replace(result, kind=kind, coordinate=coordinate)
        if kind == LocationKind.CURRENT:
            candidate = replace(candidate, id="current_location")

        previous = self.candidate
        if kind == LocationKind.DROPPED_PIN and isinstance(previous, LocationSuggestion):
            # Nudging the pin keeps what the user already typed in.
            candidate = candidate.with_details(
                unit_number=previous.unit_number,
                building_name=previous.building_name,
                delivery_instructions=previous.delivery_instructions,
            )

        self._advance(PickerEvent.GEOCODE_DONE)
        self._set_candidate(candidate)
        return candidate

    async def use_current_location(self) -> Candidate | None:
        """Locate the device and reverse geocode its position.

        Raises:
            PermissionDenied: Location access was refused; the picker state
                is left unchanged.
            PositionTimeout: No fix arrived in time; state is unchanged.
        """
        self._require(PickerEvent.USE_CURRENT)
        self.search.reset()
        self._region_settle.cancel()
        generation = self._next_lookup()

        coordinate = await self.geocoder.current_device_position()
        if generation != self._lookup_generation or not can_advance(
            self.state, PickerEvent.USE_CURRENT
        ):
            return None
        self._advance(PickerEvent.USE_CURRENT)
        return await self._reverse_geocode(coordinate, LocationKind.CURRENT)

    # Confirmation

    def update_details(
        self,
        unit_number: str | None = None,
        building_name: str | None = None,
        delivery_instructions: str | None = None,
    ) -> Candidate:
        """Attach manually entered delivery details to the candidate."""
        self._require(PickerEvent.EDIT_DETAILS)
        candidate = self.candidate
        if isinstance(candidate, SavedAddress):
            candidate = replace(
                candidate,
                unit_number=unit_number if unit_number is not None else candidate.unit_number,
                building_name=(
                    building_name if building_name is not None else candidate.building_name
                ),
                delivery_instructions=(
                    delivery_instructions
                    if delivery_instructions is not None
                    else candidate.delivery_instructions
                ),
            )
        else:
            candidate = candidate.with_details(unit_number, building_name, delivery_instructions)
        self._advance(PickerEvent.EDIT_DETAILS)
        self.candidate = candidate
        return candidate

    async def confirm(self) -> Candidate | None:
        """Confirm the candidate if it lies in a delivery zone.

        A confirm issued while another is still running is ignored.

        Returns:
            The confirmed location, or None when the request was a duplicate
            or the location was rejected as undeliverable.
        """
        if self._confirming or (
            self.candidate is None and self.state in (PickerState.IDLE, PickerState.CONFIRMED)
        ):
            logger.debug("duplicate_confirm_ignored", state=self.state.value)
            return None
        self._require(PickerEvent.CONFIRM_REQUEST)

        self._confirming = True
        try:
            self._advance(PickerEvent.CONFIRM_REQUEST)
            candidate = self.candidate
            if candidate.coordinate is None:
                return self._reject(UNRESOLVED_MESSAGE)

            eligibility = self.geofence.check_eligibility(candidate.coordinate)
            self.last_eligibility = eligibility
            if not eligibility.available:
                return self._reject(eligibility.reason or "Location is outside our delivery area.")

            try:
                # The delivery location is written last so a failed recent
                # write leaves it unchanged.
                await self.cache.record_recent(candidate)
                await self.store.set(candidate)
            except Exception:
                # Keep the candidate selectable so the user can retry.
                self._advance(PickerEvent.CONFIRM_REJECTED)
                raise

            self._advance(PickerEvent.CONFIRM_ACCEPTED)
            logger.info(
                "location_confirmed",
                location_id=candidate.id,
                zone=eligibility.zone.name if eligibility.zone else None,
            )
            self.callbacks.on_confirmed(candidate)
            self._reset()
            return candidate
        finally:
            self._confirming = False

    def _reject(self, reason: str) -> None:
        self._advance(PickerEvent.CONFIRM_REJECTED)
        logger.info("location_rejected", reason=reason)
        self.callbacks.on_eligibility_rejected(reason)
        return None

    def cancel(self) -> None:
        """Abandon the picker. Ignored while a confirm is being written."""
        if self._confirming:
            logger.debug("cancel_ignored_during_confirm", state=self.state.value)
            return
        if not can_advance(self.state, PickerEvent.CANCEL):
            return
        self._advance(PickerEvent.CANCEL)
        self._reset()

    def _reset(self) -> None:
        self.search.reset()
        self._region_settle.cancel()
        self._next_lookup()
        self.candidate = None
        self.suggestions = []
        self._advance(PickerEvent.RESET)
