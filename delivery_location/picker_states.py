"""States and legal transitions of the location picker.

The table is pure data: ``advance(state, event)`` has no side effects and
can be exercised without timers, providers or storage.
"""

from enum import Enum

from delivery_location.errors import InvalidTransition


class PickerState(str, Enum):
    IDLE = "idle"
    SEARCH_ACTIVE = "search-active"
    SUGGESTIONS_READY = "suggestions-ready"
    MAP_MODE = "map-mode"
    PIN_DROPPED = "pin-dropped"
    REVERSE_GEOCODING = "reverse-geocoding"
    CANDIDATE_READY = "candidate-ready"
    AWAITING_CONFIRM = "awaiting-confirm"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PickerEvent(str, Enum):
    OPEN = "open"
    RESULTS_READY = "results-ready"
    RESULTS_CLEARED = "results-cleared"
    ENTER_MAP = "enter-map"
    PIN_DROP = "pin-drop"
    GEOCODE_START = "geocode-start"
    GEOCODE_DONE = "geocode-done"
    USE_CURRENT = "use-current"
    SELECT_SUGGESTION = "select-suggestion"
    SELECT_SAVED = "select-saved"
    EDIT_DETAILS = "edit-details"
    CONFIRM_REQUEST = "confirm-request"
    CONFIRM_REJECTED = "confirm-rejected"
    CONFIRM_ACCEPTED = "confirm-accepted"
    CANCEL = "cancel"
    RESET = "reset"


S = PickerState
E = PickerEvent

TERMINAL_STATES = frozenset({S.CONFIRMED, S.CANCELLED})

# Events accepted wherever the user is looking at a list or a candidate.
_PICKING = {
    E.SELECT_SUGGESTION: S.CANDIDATE_READY,
    E.SELECT_SAVED: S.CANDIDATE_READY,
    E.ENTER_MAP: S.MAP_MODE,
    E.USE_CURRENT: S.REVERSE_GEOCODING,
}

TRANSITIONS: dict[PickerState, dict[PickerEvent, PickerState]] = {
    S.IDLE: {
        E.OPEN: S.SEARCH_ACTIVE,
        E.ENTER_MAP: S.MAP_MODE,
    },
    S.SEARCH_ACTIVE: {
        **_PICKING,
        E.RESULTS_READY: S.SUGGESTIONS_READY,
        E.RESULTS_CLEARED: S.SEARCH_ACTIVE,
    },
    S.SUGGESTIONS_READY: {
        **_PICKING,
        E.RESULTS_READY: S.SUGGESTIONS_READY,
        E.RESULTS_CLEARED: S.SEARCH_ACTIVE,
    },
    S.MAP_MODE: {
        E.OPEN: S.SEARCH_ACTIVE,
        E.PIN_DROP: S.PIN_DROPPED,
        E.USE_CURRENT: S.REVERSE_GEOCODING,
        E.SELECT_SAVED: S.CANDIDATE_READY,
    },
    S.PIN_DROPPED: {
        E.GEOCODE_START: S.REVERSE_GEOCODING,
        E.PIN_DROP: S.PIN_DROPPED,
    },
    S.REVERSE_GEOCODING: {
        E.GEOCODE_DONE: S.CANDIDATE_READY,
        E.PIN_DROP: S.PIN_DROPPED,
    },
    S.CANDIDATE_READY: {
        **_PICKING,
        E.OPEN: S.SEARCH_ACTIVE,
        E.RESULTS_READY: S.SUGGESTIONS_READY,
        E.PIN_DROP: S.PIN_DROPPED,
        E.EDIT_DETAILS: S.AWAITING_CONFIRM,
        E.CONFIRM_REQUEST: S.AWAITING_CONFIRM,
    },
    S.AWAITING_CONFIRM: {
        E.EDIT_DETAILS: S.AWAITING_CONFIRM,
        E.CONFIRM_REQUEST: S.AWAITING_CONFIRM,
        E.CONFIRM_REJECTED: S.CANDIDATE_READY,
        E.CONFIRM_ACCEPTED: S.CONFIRMED,
    },
    S.CONFIRMED: {E.RESET: S.IDLE},
    S.CANCELLED: {E.RESET: S.IDLE},
}

# Cancelling is possible from every state that is not already finished.
for _state, _edges in TRANSITIONS.items():
    if _state not in TERMINAL_STATES:
        _edges[E.CANCEL] = S.CANCELLED


def can_advance(state: PickerState, event: PickerEvent) -> bool:
    return event in TRANSITIONS[state]


def advance(state: PickerState, event: PickerEvent) -> PickerState:
    """Return the state reached from *state* on *event*.

    Raises:
        InvalidTransition: The event is not legal in *state*.
    """
    try:
        return TRANSITIONS[state][event]
    except KeyError:
        raise InvalidTransition(state, event) from None
