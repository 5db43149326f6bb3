"""Static configuration: delivery zones, popular locations and engine constants."""

import json
import os

from dotenv import load_dotenv

from delivery_location.models import Coordinate, DeliveryZone, LocationKind, LocationSuggestion

load_dotenv()

# Debounce interval applied to search keystrokes.
SEARCH_DEBOUNCE_S = 0.3

# Settle interval applied to map drags before reverse geocoding.
REGION_SETTLE_S = 0.1

# Queries at or below this length show recent/popular locations instead.
MIN_QUERY_LENGTH = 2

RECENT_CAPACITY = 5

# Device position acquisition limits.
POSITION_TIMEOUT_S = 10.0
POSITION_MAX_AGE_S = 300.0

SINGAPORE_CENTER = Coordinate(latitude=1.3521, longitude=103.8198)

# Delivery fees and times are estimated from the distance to Marina Bay.
CITY_CENTER = Coordinate(latitude=1.2834, longitude=103.8607)

# Ordered: eligibility is decided by the first zone containing the point.
DEFAULT_DELIVERY_ZONES: list[DeliveryZone] = [
    DeliveryZone("Marina Bay", Coordinate(1.2834, 103.8607), 5.0, special_pricing=True),
    DeliveryZone("Central Business District", Coordinate(1.2789, 103.8536), 3.0),
    DeliveryZone("Orchard Road", Coordinate(1.3048, 103.8318), 3.0),
    DeliveryZone("Clarke Quay", Coordinate(1.2888, 103.8467), 2.0),
    DeliveryZone("Sentosa", Coordinate(1.2494, 103.8303), 4.0),
    DeliveryZone("Jurong East", Coordinate(1.3329, 103.7436), 5.0),
]

POPULAR_LOCATIONS: list[LocationSuggestion] = [
    LocationSuggestion(
        id="popular_marina_bay",
        title="Marina Bay Sands",
        subtitle="10 Bayfront Ave, Singapore 018956",
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=Coordinate(1.2834, 103.8607),
        address="10 Bayfront Ave, Singapore 018956",
        postal_code="018956",
    ),
    LocationSuggestion(
        id="popular_orchard_road",
        title="Orchard Road",
        subtitle="Orchard Road, Singapore",
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=Coordinate(1.3048, 103.8318),
        address="Orchard Road, Singapore",
    ),
    LocationSuggestion(
        id="popular_chinatown",
        title="Chinatown",
        subtitle="Chinatown, Singapore",
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=Coordinate(1.2792, 103.8454),
        address="Chinatown, Singapore",
    ),
    LocationSuggestion(
        id="popular_clarke_quay",
        title="Clarke Quay",
        subtitle="3 River Valley Rd, Singapore 179024",
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=Coordinate(1.2884, 103.8469),
        address="3 River Valley Rd, Singapore 179024",
        postal_code="179024",
    ),
    LocationSuggestion(
        id="popular_sentosa",
        title="Sentosa Island",
        subtitle="Sentosa Island, Singapore",
        kind=LocationKind.SEARCH_SUGGESTION,
        coordinate=Coordinate(1.2494, 103.8303),
        address="Sentosa Island, Singapore",
    ),
]


def load_delivery_zones(path: str | None = None) -> list[DeliveryZone]:
    """Load the ordered delivery zone list.

    Args:
        path: JSON file holding a list of zone objects. Falls back to the
              DELIVERY_ZONES_FILE env var, then to the built-in zones.

    Returns:
        Zones in their declared order.
    """
    path = path or os.getenv("DELIVERY_ZONES_FILE")
    if not path:
        return list(DEFAULT_DELIVERY_ZONES)

    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON list of delivery zones.")
    return [DeliveryZone.from_dict(item) for item in raw]
