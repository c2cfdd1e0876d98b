from __future__ import annotations

import logging
from typing import Any

from campus_dashboard.data_models import (
    Category,
    CommuteReading,
    Destination,
    Direction,
    Elevator,
    Record,
    ResourceRecord,
    TrafficLevel,
)

logger = logging.getLogger(__name__)

# Column aliases used by the hosted dashboard tables.
_CAPACITY_KEYS = ("total_capacity", "total_spaces", "total_seats")
_AVAILABLE_KEYS = ("available", "available_spaces", "available_seats")
_NAME_KEYS = ("name", "zone", "area")


def to_record(category: Category | str, row: dict[str, Any]) -> Record:
    category = Category(category)
    if category in (Category.PARKING, Category.LIBRARY, Category.FOOD):
        return _resource_record(category, row)
    if category == Category.ELEVATOR:
        return _elevator(row)
    if category == Category.CLASSROOM:
        return _destination(row)
    return _commute_reading(row)


def to_records(category: Category | str, rows: list[dict[str, Any]]) -> list[Record]:
    """Lenient variant of ``to_record`` for polled data: malformed rows are dropped with a warning."""
    category = Category(category)
    records: list[Record] = []
    for row in rows:
        try:
            records.append(to_record(category, row))
        except ValueError as exc:
            logger.warning("Skipping malformed %s row: %s", category.value, exc)
    return records


def _resource_record(category: Category, row: dict[str, Any]) -> ResourceRecord:
    amenities = row.get("amenities") or ()
    if isinstance(amenities, str):
        amenities = [item.strip() for item in amenities.split(",") if item.strip()]

    return ResourceRecord(
        record_id=_str(_require(row, ("id", "record_id"))),
        name=_str(_first(row, _NAME_KEYS, default="")),
        category=category,
        total_capacity=_int(_require(row, _CAPACITY_KEYS)),
        available=_int(_require(row, _AVAILABLE_KEYS)),
        queue_length=_int(row.get("queue_length", 0)),
        amenities=tuple(str(item) for item in amenities),
        location=_str(row.get("location")),
        scope=_str(_first(row, ("scope", "university_id"), default="")),
        last_updated=_str(row.get("last_updated")),
    )


def _elevator(row: dict[str, Any]) -> Elevator:
    direction = _str(row.get("direction")).lower() or Direction.IDLE.value
    return Elevator(
        elevator_id=_str(_require(row, ("elevator_id", "lift_id", "id"))),
        building=_str(_require(row, ("building",))),
        current_floor=_int(_require(row, ("current_floor",))),
        direction=Direction(direction),
        occupancy=_int(_first(row, ("occupancy", "current_occupancy"), default=0)),
        capacity=_int(_require(row, ("capacity",))),
        queue_length=_int(_first(row, ("queue_length", "queue_count"), default=0)),
        estimated_wait=_int(_first(row, ("estimated_wait", "estimated_wait_time"), default=0)),
        scope=_str(_first(row, ("scope", "university_id"), default="")),
    )


def _destination(row: dict[str, Any]) -> Destination:
    return Destination(
        building=_str(_require(row, ("building",))),
        floor=_int(_require(row, ("floor",))),
        label=_str(_require(row, ("label", "room_number"))),
        is_available=bool(row.get("is_available", True)),
        capacity=_int(row.get("capacity", 0)),
        scope=_str(_first(row, ("scope", "university_id"), default="")),
    )


def _commute_reading(row: dict[str, Any]) -> CommuteReading:
    level = _str(_first(row, ("level", "traffic_level"), default="")).lower()
    eta = _first(row, ("eta_minutes", "commute_time_minutes"), default=None)
    return CommuteReading(
        poi_id=_str(_require(row, ("poi_id", "id"))),
        name=_str(row.get("name")),
        level=TrafficLevel(level) if level in TrafficLevel._value2member_map_ else TrafficLevel.UNKNOWN,
        eta_minutes=float(eta) if eta not in (None, "") else None,
        address=_str(row.get("address")),
        is_default=bool(row.get("is_default", False)),
        scope=_str(_first(row, ("scope", "university_id"), default="")),
        last_updated=_str(row.get("last_updated")),
    )


def _require(row: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if row.get(key) not in (None, ""):
            return row[key]
    raise ValueError(f"Row is missing required field {keys[0]!r}: {row}")


def _first(row: dict[str, Any], keys: tuple[str, ...], default: Any) -> Any:
    for key in keys:
        if row.get(key) not in (None, ""):
            return row[key]
    return default


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected a number, got {value!r}") from exc


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
