from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Union


class Category(str, Enum):
    """Resource categories served by a snapshot source. Values are table names."""

    PARKING = "parking_lots"
    LIBRARY = "library_zones"
    FOOD = "food_stalls"
    ELEVATOR = "elevators"
    CLASSROOM = "classrooms"
    TRAFFIC = "poi_traffic"


AVAILABILITY_CATEGORIES = (Category.PARKING, Category.LIBRARY, Category.FOOD)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    IDLE = "idle"


class TrafficLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HEAVY = "heavy"
    SEVERE = "severe"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResourceRecord:
    """A parking lot, library zone or food stall as of the last poll."""

    record_id: str
    name: str
    category: Category
    total_capacity: int
    available: int
    queue_length: int = 0
    amenities: tuple[str, ...] = ()
    location: str = ""
    scope: str = ""
    last_updated: str = ""

    @property
    def is_valid(self) -> bool:
        return self.total_capacity > 0 and 0 <= self.available <= self.total_capacity

    @property
    def availability_rate(self) -> float:
        return self.available / self.total_capacity

    @property
    def occupancy_percent(self) -> float:
        return (self.total_capacity - self.available) / self.total_capacity * 100

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["category"] = self.category.value
        payload["amenities"] = list(self.amenities)
        return payload


@dataclass(frozen=True)
class Elevator:
    elevator_id: str
    building: str
    current_floor: int
    direction: Direction
    occupancy: int
    capacity: int
    queue_length: int = 0
    estimated_wait: int = 0
    scope: str = ""

    @property
    def is_valid(self) -> bool:
        return self.capacity > 0 and self.occupancy >= 0 and self.queue_length >= 0

    @property
    def occupancy_rate(self) -> float:
        return self.occupancy / self.capacity

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["direction"] = self.direction.value
        return payload


@dataclass(frozen=True)
class Destination:
    building: str
    floor: int
    label: str
    is_available: bool = True
    capacity: int = 0
    scope: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoredElevator:
    elevator: Elevator
    score: int
    explanation: tuple[str, ...] = ()

    @property
    def reasoning(self) -> str:
        return ", ".join(self.explanation)

    def to_dict(self) -> dict[str, Any]:
        payload = self.elevator.to_dict()
        payload["score"] = self.score
        payload["explanation"] = list(self.explanation)
        payload["reasoning"] = self.reasoning
        return payload


@dataclass(frozen=True)
class CommuteReading:
    poi_id: str
    name: str
    level: TrafficLevel = TrafficLevel.UNKNOWN
    eta_minutes: float | None = None
    address: str = ""
    is_default: bool = False
    scope: str = ""
    last_updated: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["level"] = self.level.value
        return payload


Record = Union[ResourceRecord, Elevator, Destination, CommuteReading]


@dataclass(frozen=True)
class Snapshot:
    """The full record set of one category, replaced wholesale on every poll."""

    category: Category
    scope: str
    records: tuple[Record, ...]
    sequence: int
    fetched_at: float

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class User:
    user_id: str
    scope: str


@dataclass
class CommandResponse:
    utterance: str
    intent: str
    text: str
    target: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
