"""Exceptions raised by the location resolution engine."""


class LocationError(Exception):
    """Base class for all location resolution errors."""


class PositionUnavailable(LocationError):
    """The device position could not be obtained."""


class PermissionDenied(PositionUnavailable):
    """The user has not granted access to the device location."""

    def __init__(self, message: str = "Location permission denied."):
        super().__init__(message)


class PositionTimeout(PositionUnavailable):
    """No usable position fix arrived within the allowed time."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"No position fix within {timeout_s:g} seconds.")


class InvalidInput(LocationError):
    """User input rejected before any network call was made."""


class InvalidPostalCode(InvalidInput):
    def __init__(self, postal_code: str):
        self.postal_code = postal_code
        super().__init__(f"'{postal_code}' is not a valid 6-digit postal code.")


class IneligibleLocation(LocationError):
    """The location lies outside every configured delivery zone."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class InvalidTransition(LocationError):
    """An event arrived that the picker cannot handle in its current state."""

    def __init__(self, state, event):
        self.state = state
        self.event = event
        super().__init__(f"Cannot handle {event.value} while {state.value}.")
