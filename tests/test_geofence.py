"""Tests for haversine distance and delivery zone eligibility."""

import pytest

from conftest import MARINA_BAY, ORCHARD, TUAS
from delivery_location.errors import IneligibleLocation
from delivery_location.geofence import GeofenceEngine, distance_km, haversine
from delivery_location.models import Coordinate, DeliveryZone

# One kilometre of latitude in degrees on a 6371 km sphere.
KM_LAT = 1 / 111.19492664455873


class TestDistance:
    def test_same_point_is_zero(self):
        assert distance_km(Coordinate(1.2834, 103.8607), Coordinate(1.2834, 103.8607)) == 0

    def test_one_km_north(self):
        north = Coordinate(MARINA_BAY.latitude + KM_LAT, MARINA_BAY.longitude)
        assert distance_km(MARINA_BAY, north) == pytest.approx(1.0, rel=1e-6)

    def test_symmetric(self):
        assert distance_km(MARINA_BAY, ORCHARD) == pytest.approx(distance_km(ORCHARD, MARINA_BAY))

    def test_known_distance(self):
        # London to Paris is about 343.5 km on a 6371 km sphere.
        assert haversine(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)


class TestEligibility:
    def test_point_inside_radius_is_available(self, geofence):
        point = Coordinate(MARINA_BAY.latitude - KM_LAT, MARINA_BAY.longitude)
        result = geofence.check_eligibility(point)
        assert result.available is True
        assert result.zone.name == "Marina Bay"
        assert result.distance_km == pytest.approx(1.0, rel=1e-6)

    def test_point_ten_km_away_is_not_available(self):
        engine = GeofenceEngine([DeliveryZone("Marina Bay", MARINA_BAY, 3.0)])
        point = Coordinate(MARINA_BAY.latitude + 10 * KM_LAT, MARINA_BAY.longitude)
        result = engine.check_eligibility(point)
        assert result.available is False
        assert result.zone is None
        assert result.reason

    def test_boundary_is_inclusive(self):
        edge = Coordinate(MARINA_BAY.latitude + 2 * KM_LAT, MARINA_BAY.longitude)
        radius = distance_km(MARINA_BAY, edge)
        engine = GeofenceEngine([DeliveryZone("Edge", MARINA_BAY, radius)])
        assert engine.check_eligibility(edge).available is True

    def test_first_declared_zone_wins_over_closest(self):
        # The point sits right on the second zone's centre but inside both.
        big = DeliveryZone("Big", MARINA_BAY, 10.0)
        small = DeliveryZone("Small", ORCHARD, 1.0)
        result = GeofenceEngine([big, small]).check_eligibility(ORCHARD)
        assert result.zone.name == "Big"

        result = GeofenceEngine([small, big]).check_eligibility(ORCHARD)
        assert result.zone.name == "Small"

    def test_no_zones_means_nothing_is_deliverable(self):
        assert GeofenceEngine([]).check_eligibility(MARINA_BAY).available is False

    def test_far_point_rejected_by_default_fixture(self, geofence):
        assert geofence.check_eligibility(TUAS).available is False

    def test_require_eligible_raises_with_reason(self, geofence):
        with pytest.raises(IneligibleLocation) as excinfo:
            geofence.require_eligible(TUAS)
        assert excinfo.value.reason.startswith("Sorry")
        assert geofence.require_eligible(MARINA_BAY).zone.name == "Marina Bay"


class TestDeliveryEstimate:
    def test_city_centre_with_special_pricing(self, geofence):
        result = geofence.check_eligibility(MARINA_BAY)
        assert result.estimated_time == "30-45 min"
        assert result.delivery_fee == 5.99

    def test_regular_zone_uses_base_fee(self, geofence):
        result = geofence.check_eligibility(ORCHARD)
        # Orchard is about 4 km from Marina Bay, outside its 3 km radius.
        assert result.zone.name == "Orchard Road"
        assert result.delivery_fee == 3.99

    def test_fee_tiers_by_distance(self):
        engine = GeofenceEngine([])
        zone = DeliveryZone("Anywhere", MARINA_BAY, 50.0)
        mid = Coordinate(MARINA_BAY.latitude + 10 * KM_LAT, MARINA_BAY.longitude)
        far = Coordinate(MARINA_BAY.latitude + 20 * KM_LAT, MARINA_BAY.longitude)

        window, fee = engine.estimate_delivery(mid, zone)
        assert fee == 4.99
        assert window == "50-65 min"

        _, fee = engine.estimate_delivery(far, zone)
        assert fee == 6.99
