"""Delivery zone membership using great-circle distance."""

from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

from delivery_location.config import CITY_CENTER
from delivery_location.errors import IneligibleLocation
from delivery_location.models import Coordinate, DeliveryZone

# Mean radius of Earth in kilometres.
_EARTH_RADIUS_KM = 6371.0

_BASE_DELIVERY_MIN = 30
_MIN_PER_KM = 2
_WINDOW_MIN = 15

_BASE_FEE = 3.99
_MID_DISTANCE_FEE = 4.99
_FAR_DISTANCE_FEE = 6.99
_SPECIAL_PRICING_MIN_FEE = 5.99
_MID_DISTANCE_KM = 8
_FAR_DISTANCE_KM = 15


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in km between two lat/lon points."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return _EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of a delivery eligibility check.

    ``distance_km`` is measured to the matched zone's centre. The fee and
    time estimate are only filled in for eligible points.
    """

    available: bool
    zone: DeliveryZone | None = None
    distance_km: float | None = None
    reason: str | None = None
    estimated_time: str | None = None
    delivery_fee: float | None = None


class GeofenceEngine:
    """Checks points against an ordered list of circular delivery zones."""

    def __init__(self, zones: list[DeliveryZone], city_center: Coordinate = CITY_CENTER):
        self.zones = list(zones)
        self.city_center = city_center

    def check_eligibility(self, point: Coordinate) -> EligibilityResult:
        """Return the first zone, in declared order, that contains *point*.

        Overlapping zones are resolved by declaration order rather than by
        proximity.

        Args:
            point: The candidate delivery coordinate.

        Returns:
            An EligibilityResult; ``available`` is False with a
            human-readable ``reason`` when no zone matches.
        """
        for zone in self.zones:
            d = distance_km(point, zone.center)
            if d <= zone.radius_km:
                estimated_time, fee = self.estimate_delivery(point, zone)
                return EligibilityResult(
                    available=True,
                    zone=zone,
                    distance_km=d,
                    estimated_time=estimated_time,
                    delivery_fee=fee,
                )

        return EligibilityResult(
            available=False,
            reason=(
                "Sorry, we don't deliver to this location yet. "
                "Please choose an address inside one of our delivery zones."
            ),
        )

    def require_eligible(self, point: Coordinate) -> EligibilityResult:
        """Like check_eligibility, but raise IneligibleLocation when no zone matches."""
        result = self.check_eligibility(point)
        if not result.available:
            raise IneligibleLocation(result.reason)
        return result

    def estimate_delivery(self, point: Coordinate, zone: DeliveryZone) -> tuple[str, float]:
        """Estimate the delivery window and fee from the distance to the city centre."""
        from_center = distance_km(point, self.city_center)

        minutes = _BASE_DELIVERY_MIN + round(from_center * _MIN_PER_KM)
        window = f"{minutes}-{minutes + _WINDOW_MIN} min"

        fee = _BASE_FEE
        if from_center > _FAR_DISTANCE_KM:
            fee = _FAR_DISTANCE_FEE
        elif from_center > _MID_DISTANCE_KM:
            fee = _MID_DISTANCE_FEE
        if zone.special_pricing:
            fee = max(fee, _SPECIAL_PRICING_MIN_FEE)

        return window, round(fee, 2)
