"""
Core data models for the recommendation pipeline.

Locations and interests are the two axes of the pipeline's key space; each
(location, interest) pair is one UnitOfWork that yields one batch of
StructuredRecords.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .utils import slugify


class CombinationState(str, Enum):
    """Lifecycle of one combination within a pipeline run."""
    PENDING = "pending"
    RESEARCHING = "researching"
    STRUCTURING = "structuring"
    STORING = "storing"
    STORED = "stored"
    FAILED = "failed"
    SKIPPED = "skipped"


class RecordSource(str, Enum):
    """Where a record batch came from."""
    LIVE = "live"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Location:
    """
    A tracked city.

    Attributes:
        id: Short identifier (e.g., 'la')
        name: Display name (e.g., 'Los Angeles')
        coordinates: (longitude, latitude) of the city center
    """
    id: str
    name: str
    coordinates: Optional[Tuple[float, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coordinates": list(self.coordinates) if self.coordinates else None,
        }

    @classmethod
    def from_value(cls, value: Any) -> "Location":
        """Build from a mapping or a bare display name."""
        if isinstance(value, Location):
            return value
        if isinstance(value, str):
            return cls(id=slugify(value), name=value)
        coordinates = value.get("coordinates")
        return cls(
            id=value.get("id") or slugify(value["name"]),
            name=value["name"],
            coordinates=tuple(coordinates) if coordinates else None,
        )


@dataclass(frozen=True)
class Interest:
    """
    A tracked interest.

    Attributes:
        id: Short identifier (e.g., 'coffee')
        name: Display name (e.g., 'Coffee')
        emoji: Display emoji
    """
    id: str
    name: str
    emoji: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "emoji": self.emoji}

    @classmethod
    def from_value(cls, value: Any) -> "Interest":
        """Build from a mapping or a bare display name."""
        if isinstance(value, Interest):
            return value
        if isinstance(value, str):
            return cls(id=slugify(value), name=value)
        return cls(
            id=value.get("id") or slugify(value["name"]),
            name=value["name"],
            emoji=value.get("emoji"),
        )


@dataclass(frozen=True)
class UnitOfWork:
    """One (location, interest) combination."""
    location: Location
    interest: Interest

    @property
    def key(self) -> Tuple[str, str]:
        return (self.location.id, self.interest.id)

    @property
    def label(self) -> str:
        return f"{self.interest.name} in {self.location.name}"


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _coordinates(value: Any) -> Optional[List[float]]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        return [float(value[0]), float(value[1])]
    except (TypeError, ValueError):
        return None


@dataclass
class StructuredRecord:
    """
    One persisted place record.

    Records are identified by their natural key (location_id, interest_id,
    name); persisting a record with an existing natural key updates it.

    Attributes:
        id: Record identifier
        location_id: Axis-A key
        interest_id: Axis-B key
        name: Place name
        description: Short description
        type: Place type (cafe, park, museum, ...)
        tags: Display tags
        neighborhood: Neighborhood or area
        address: Street address, when known
        price_range: 1 (least expensive) to 4
        popularity: 1 to 10
        coordinates: [longitude, latitude], when known
        website: Website URL, when known
        image_url: Image URL, when known
        check_ins: Visit count
        source: Whether the batch came from a live call or the fallback
        updated_at: When the record was last written
    """
    id: str
    location_id: str
    interest_id: str
    name: str
    description: str = ""
    type: str = "venue"
    tags: List[str] = field(default_factory=list)
    neighborhood: Optional[str] = None
    address: Optional[str] = None
    price_range: int = 2
    popularity: int = 5
    coordinates: Optional[List[float]] = None
    website: Optional[str] = None
    image_url: Optional[str] = None
    check_ins: int = 0
    source: RecordSource = RecordSource.LIVE
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def natural_key(self) -> Tuple[str, str, str]:
        return (self.location_id, self.interest_id, self.name)

    @classmethod
    def from_generated(
        cls,
        item: Dict[str, Any],
        unit: UnitOfWork,
        index: int,
        source: RecordSource,
        timestamp: Optional[datetime] = None,
        default_type: str = "venue",
    ) -> "StructuredRecord":
        """
        Normalize one generated item.

        Out-of-range numbers are clamped and malformed optional fields are
        dropped; a missing name raises ValueError.
        """
        name = str(item.get("name") or "").strip()
        if not name:
            raise ValueError(f"Generated item {index} for {unit.label} has no name")

        tags = item.get("tags") or []
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(",") if t.strip()]

        return cls(
            id=str(item.get("id") or f"{unit.interest.id}-{unit.location.id}-{index}"),
            location_id=unit.location.id,
            interest_id=unit.interest.id,
            name=name,
            description=str(item.get("description") or ""),
            type=str(item.get("type") or default_type),
            tags=[str(t) for t in tags],
            neighborhood=item.get("neighborhood") or None,
            address=item.get("address") or None,
            price_range=_clamp_int(item.get("priceRange"), 1, 4, 2),
            popularity=_clamp_int(item.get("popularity"), 1, 10, 5),
            coordinates=_coordinates(item.get("coordinates")),
            website=item.get("website") or None,
            image_url=item.get("imageUrl") or None,
            check_ins=_clamp_int(item.get("checkIns"), 0, 1_000_000, 0),
            source=source,
            updated_at=timestamp or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used in batch files."""
        return {
            "id": self.id,
            "locationId": self.location_id,
            "interestId": self.interest_id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "tags": list(self.tags),
            "neighborhood": self.neighborhood,
            "address": self.address,
            "priceRange": self.price_range,
            "popularity": self.popularity,
            "coordinates": self.coordinates,
            "website": self.website,
            "imageUrl": self.image_url,
            "checkIns": self.check_ins,
            "source": self.source.value,
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructuredRecord":
        updated_at = datetime.fromisoformat(data["updatedAt"])
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            location_id=data["locationId"],
            interest_id=data["interestId"],
            name=data["name"],
            description=data.get("description") or "",
            type=data.get("type") or "venue",
            tags=list(data.get("tags") or []),
            neighborhood=data.get("neighborhood"),
            address=data.get("address"),
            price_range=data.get("priceRange", 2),
            popularity=data.get("popularity", 5),
            coordinates=data.get("coordinates"),
            website=data.get("website"),
            image_url=data.get("imageUrl"),
            check_ins=data.get("checkIns", 0),
            source=RecordSource(data.get("source", RecordSource.LIVE.value)),
            updated_at=updated_at,
        )
