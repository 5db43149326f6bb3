"""Shared data models for delivery location resolution."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class LocationKind(str, Enum):
    """Where a location came from."""

    SEARCH_SUGGESTION = "search-suggestion"
    RECENT = "recent"
    CURRENT = "current"
    SAVED = "saved"
    POSTAL = "postal"
    DROPPED_PIN = "dropped-pin"


# Kinds that are only ever built from a known coordinate.
_COORDINATE_REQUIRED = frozenset({LocationKind.CURRENT, LocationKind.DROPPED_PIN})


@dataclass(frozen=True)
class Coordinate:
    """A WGS-84 point in degrees."""

    latitude: float
    longitude: float

    def label(self) -> str:
        """Return a coordinate-only label such as ``"1.2834, 103.8607"``."""
        return f"{self.latitude:.4f}, {self.longitude:.4f}"

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}

    @classmethod
    def from_dict(cls, data: dict) -> "Coordinate":
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]))


@dataclass(frozen=True)
class LocationSuggestion:
    """A candidate delivery location.

    ``current`` and ``dropped-pin`` locations are built from a coordinate and
    must carry one. A ``search-suggestion`` may lack a coordinate until its
    place details have been resolved.
    """

    id: str
    title: str
    kind: LocationKind
    subtitle: str | None = None
    coordinate: Coordinate | None = None
    address: str | None = None
    place_id: str | None = None
    postal_code: str | None = None
    unit_number: str | None = None
    building_name: str | None = None
    delivery_instructions: str | None = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Location id must not be empty.")
        if self.kind in _COORDINATE_REQUIRED and self.coordinate is None:
            raise ValueError(f"A {self.kind.value} location requires a coordinate.")

    @property
    def has_coordinate(self) -> bool:
        return self.coordinate is not None

    def with_kind(self, kind: LocationKind) -> "LocationSuggestion":
        return replace(self, kind=kind)

    def with_details(
        self,
        unit_number: str | None = None,
        building_name: str | None = None,
        delivery_instructions: str | None = None,
    ) -> "LocationSuggestion":
        """Return a copy carrying manually entered delivery details.

        Arguments left as ``None`` keep the existing value.
        """
        return replace(
            self,
            unit_number=unit_number if unit_number is not None else self.unit_number,
            building_name=building_name if building_name is not None else self.building_name,
            delivery_instructions=(
                delivery_instructions
                if delivery_instructions is not None
                else self.delivery_instructions
            ),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "kind": self.kind.value,
            "subtitle": self.subtitle,
            "coordinate": self.coordinate.to_dict() if self.coordinate else None,
            "address": self.address,
            "place_id": self.place_id,
            "postal_code": self.postal_code,
            "unit_number": self.unit_number,
            "building_name": self.building_name,
            "delivery_instructions": self.delivery_instructions,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "LocationSuggestion":
        coordinate = data.get("coordinate")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            kind=LocationKind(data.get("kind", LocationKind.SEARCH_SUGGESTION.value)),
            subtitle=data.get("subtitle"),
            coordinate=Coordinate.from_dict(coordinate) if coordinate else None,
            address=data.get("address"),
            place_id=data.get("place_id"),
            postal_code=data.get("postal_code"),
            unit_number=data.get("unit_number"),
            building_name=data.get("building_name"),
            delivery_instructions=data.get("delivery_instructions"),
        )


@dataclass(frozen=True)
class TimeWindow:
    """A preferred delivery window, e.g. ``TimeWindow("09:00", "12:00")``."""

    start: str
    end: str

    def to_dict(self) -> dict:
        return {"from": self.start, "to": self.end}

    @classmethod
    def from_dict(cls, data: dict) -> "TimeWindow":
        return cls(start=data["from"], end=data["to"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SavedAddress:
    """A user-labelled address such as "Home" or "Office"."""

    id: str
    label: str
    location: LocationSuggestion
    unit_number: str | None = None
    building_name: str | None = None
    delivery_instructions: str | None = None
    contact_number: str | None = None
    preferred_time_window: TimeWindow | None = None
    is_default: bool = False
    icon: str | None = None
    color: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def kind(self) -> LocationKind:
        return LocationKind.SAVED

    @property
    def title(self) -> str:
        return self.label or self.location.title

    @property
    def coordinate(self) -> Coordinate | None:
        return self.location.coordinate

    @property
    def has_coordinate(self) -> bool:
        return self.location.coordinate is not None

    @property
    def full_address(self) -> str:
        parts = [self.unit_number, self.building_name, self.location.address or self.location.title]
        return ", ".join(p for p in parts if p)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "location": self.location.to_dict(),
            "unit_number": self.unit_number,
            "building_name": self.building_name,
            "delivery_instructions": self.delivery_instructions,
            "contact_number": self.contact_number,
            "preferred_time_window": (
                self.preferred_time_window.to_dict() if self.preferred_time_window else None
            ),
            "is_default": self.is_default,
            "icon": self.icon,
            "color": self.color,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SavedAddress":
        window = data.get("preferred_time_window")
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            location=LocationSuggestion.from_dict(data["location"]),
            unit_number=data.get("unit_number"),
            building_name=data.get("building_name"),
            delivery_instructions=data.get("delivery_instructions"),
            contact_number=data.get("contact_number"),
            preferred_time_window=TimeWindow.from_dict(window) if window else None,
            is_default=bool(data.get("is_default", False)),
            icon=data.get("icon"),
            color=data.get("color"),
            created_at=datetime.fromisoformat(data["created_at"]) if "created_at" in data else _now(),
            updated_at=datetime.fromisoformat(data["updated_at"]) if "updated_at" in data else _now(),
        )


@dataclass(frozen=True)
class DeliveryZone:
    """A circular delivery area."""

    name: str
    center: Coordinate
    radius_km: float
    special_pricing: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "DeliveryZone":
        return cls(
            name=data["name"],
            center=Coordinate.from_dict(data["center"]),
            radius_km=float(data["radius_km"]),
            special_pricing=bool(data.get("special_pricing", False)),
        )


# The current delivery location: a plain suggestion, a saved address, or nothing.
DeliveryLocation = LocationSuggestion | SavedAddress | None


def location_to_dict(location: LocationSuggestion | SavedAddress) -> dict:
    """Serialise either kind of delivery location with a type tag."""
    if isinstance(location, SavedAddress):
        return {"type": "saved_address", "value": location.to_dict()}
    return {"type": "suggestion", "value": location.to_dict()}


def location_from_dict(data: dict) -> LocationSuggestion | SavedAddress:
    if data.get("type") == "saved_address":
        return SavedAddress.from_dict(data["value"])
    return LocationSuggestion.from_dict(data["value"])
