#!/usr/bin/env python3
"""CLI entry point for resolving and checking delivery locations."""

import argparse
import asyncio
import os
import sys

from delivery_location.base_geocoder import GeocodingPort
from delivery_location.config import load_delivery_zones
from delivery_location.errors import LocationError
from delivery_location.geofence import EligibilityResult, GeofenceEngine
from delivery_location.location_cache import LocationCache
from delivery_location.location_store import DeliveryLocationStore
from delivery_location.logging_config import configure_logging
from delivery_location.models import Coordinate, LocationSuggestion
from delivery_location.selection_controller import PickerCallbacks, SelectionController
from delivery_location.storage import JsonFileStore


def _print_suggestions(suggestions: list[LocationSuggestion]):
    """Print a numbered suggestion list to stdout."""
    if not suggestions:
        print("No locations found.")
        return
    for i, loc in enumerate(suggestions, 1):
        print(f"  {i}. {loc.title}")
        if loc.subtitle:
            print(f"     {loc.subtitle}")
        if loc.coordinate:
            print(f"     Coords: {loc.coordinate.label()}")


def _print_eligibility(result: EligibilityResult):
    """Print the zone, time and fee of an eligible location."""
    print(f"Deliverable in zone: {result.zone.name} ({result.distance_km:.2f} km from centre)")
    print(f"  Estimated time: {result.estimated_time}")
    print(f"  Delivery fee:   ${result.delivery_fee:.2f}")


def _build_geocoder(args) -> GeocodingPort:
    """Instantiate the geocoding adapter chosen on the command line.

    Args:
        args: Parsed argparse namespace.

    Returns:
        A GeocodingPort implementation.
    """
    provider = (args.provider or os.getenv("GEOCODING_PROVIDER", "google")).lower()

    if provider == "google":
        from delivery_location.google_maps_client import GoogleMapsClient
        return GoogleMapsClient(api_key=args.api_key)

    if provider == "onemap":
        from delivery_location.onemap_client import OneMapClient
        return OneMapClient(api_token=args.api_key)

    if provider == "offline":
        from delivery_location.offline_geocoder import OfflineGeocoder
        return OfflineGeocoder()

    raise ValueError(f"Unsupported geocoding provider: {provider}")


async def _run(args) -> int:
    geofence = GeofenceEngine(load_delivery_zones(args.zones))

    if args.command == "check":
        _print_eligibility(geofence.require_eligible(Coordinate(args.latitude, args.longitude)))
        return 0

    if args.command == "reverse":
        coordinate = Coordinate(args.latitude, args.longitude)
        found = await _build_geocoder(args).reverse_geocode(coordinate)
        print(found.title if found else coordinate.label())
        if found and found.address:
            print(f"  {found.address}")
        return 0

    storage = JsonFileStore(args.store)
    cache = LocationCache(storage)
    store = DeliveryLocationStore(storage)
    await cache.load()
    await store.init()

    if args.command == "recent":
        _print_suggestions(cache.recent_locations())
        return 0

    if args.command == "current":
        location = store.get()
        print(location.title if location else "No delivery location set.")
        return 0

    controller = SelectionController(
        _build_geocoder(args),
        geofence,
        cache,
        store,
        callbacks=PickerCallbacks(
            on_eligibility_rejected=lambda reason: print(f"Rejected: {reason}"),
            on_error=lambda message: print(f"Error: {message}", file=sys.stderr),
        ),
    )
    controller.open_picker()

    if args.command == "postal":
        suggestions = await controller.submit_postal_code(args.postal_code) or []
    else:
        suggestions = await controller.search.search_now(args.query) or []
    _print_suggestions(suggestions)

    if args.pick is None or not suggestions:
        return 0
    if not 1 <= args.pick <= len(suggestions):
        print(f"Error: --pick must be between 1 and {len(suggestions)}", file=sys.stderr)
        return 1

    candidate = await controller.select_suggestion(suggestions[args.pick - 1])
    if candidate is None:
        return 1
    if args.unit:
        controller.update_details(unit_number=args.unit)

    confirmed = await controller.confirm()
    if confirmed is None:
        return 1
    print(f"\nDelivery location set to: {confirmed.title}")
    _print_eligibility(controller.last_eligibility)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Search for delivery locations and check delivery eligibility.",
    )
    parser.add_argument(
        "--provider",
        choices=["google", "onemap", "offline"],
        help='Geocoding provider (overrides GEOCODING_PROVIDER env var, default: "google").',
    )
    parser.add_argument(
        "--api-key",
        help="Provider API key or token (overrides provider-specific env var).",
    )
    parser.add_argument(
        "--zones",
        metavar="FILE",
        help="JSON file with delivery zones (overrides DELIVERY_ZONES_FILE env var).",
    )
    parser.add_argument(
        "--store",
        metavar="FILE",
        help="JSON file for recents and preferences (overrides LOCATION_STORE_PATH env var).",
    )
    parser.add_argument("--log-level", default="warning", help='Log level (default: "warning").')

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search for a place and optionally confirm it.")
    search.add_argument("query")
    search.add_argument("--pick", type=int, help="Confirm the Nth suggestion.")
    search.add_argument("--unit", help="Unit number to attach when confirming.")

    postal = sub.add_parser("postal", help="Look up a 6-digit postal code.")
    postal.add_argument("postal_code")
    postal.add_argument("--pick", type=int, help="Confirm the Nth suggestion.")
    postal.add_argument("--unit", help="Unit number to attach when confirming.")

    for name, help_text in (
        ("check", "Check whether a coordinate is deliverable."),
        ("reverse", "Reverse geocode a coordinate."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("latitude", type=float)
        cmd.add_argument("longitude", type=float)

    sub.add_parser("recent", help="List recent locations.")
    sub.add_parser("current", help="Show the current delivery location.")

    args = parser.parse_args()
    configure_logging(level=args.log_level)

    try:
        code = asyncio.run(_run(args))
    except (ValueError, LocationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
