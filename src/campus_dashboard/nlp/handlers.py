"""Sentence templates for the category query handlers of the command router."""

from __future__ import annotations

import re
from enum import Enum

from campus_dashboard.data_models import (
    Category,
    CommuteReading,
    Destination,
    Elevator,
    ResourceRecord,
    ScoredElevator,
)
from campus_dashboard.recommend.availability import AvailabilityAggregator
from campus_dashboard.recommend.commute import congested, most_congested, quickest, traffic_badge

BEST_KEYWORDS = ("recommend", "best", "suggest", "where should", "quickest", "fastest")
WORST_KEYWORDS = ("avoid", "worst", "busiest", "slowest")

_FLOOR_PATTERN = re.compile(r"\b(?:on|from|at)\s+(?:the\s+)?(?:floor|level)\s+(-?\d+)\b")
_ORDINAL_FLOOR_PATTERN = re.compile(r"\b(?:on|from|at)\s+the\s+(\d+)(?:st|nd|rd|th)\s+floor\b")


class QueryMode(str, Enum):
    BEST = "best"
    WORST = "worst"
    SUMMARY = "summary"


def query_mode(text: str) -> QueryMode:
    lowered = text.lower()
    if any(keyword in lowered for keyword in BEST_KEYWORDS):
        return QueryMode.BEST
    if any(keyword in lowered for keyword in WORST_KEYWORDS):
        return QueryMode.WORST
    return QueryMode.SUMMARY


def parse_current_floor(text: str) -> int | None:
    lowered = text.lower()
    for pattern in (_FLOOR_PATTERN, _ORDINAL_FLOOR_PATTERN):
        match = pattern.search(lowered)
        if match:
            return int(match.group(1))
    return None


def mentioned_destination(text: str, catalog: list[Destination]) -> Destination | None:
    tokens = set(re.findall(r"[a-z0-9-]+", text.lower()))
    for destination in catalog:
        if destination.label.lower() in tokens:
            return destination
    return None


_NOUNS = {
    Category.PARKING: ("spaces", "Parking"),
    Category.LIBRARY: ("seats", "Library seats"),
    Category.FOOD: ("seats", "Food stalls"),
}


def render_availability(category: Category, records: list[ResourceRecord], mode: QueryMode, top_n: int) -> str:
    aggregator = AvailabilityAggregator(category)
    unit, heading = _NOUNS[category]

    if mode == QueryMode.BEST:
        best = aggregator.best_pick(records)
        if best is None:
            return _no_valid_records(category)
        if category == Category.FOOD:
            return (
                f"{best.name} is your best bet: {best.available} of {best.total_capacity} seats free "
                f"and {_queue_text(best.queue_length)}."
            )
        return f"{_place(best)} has the most room: {best.available} of {best.total_capacity} {unit} free."

    if mode == QueryMode.WORST:
        worst = aggregator.worst_pick(records)
        if worst is None:
            return _no_valid_records(category)
        if category == Category.FOOD:
            return f"Avoid {worst.name}: {_queue_text(worst.queue_length)} and {worst.available} seats free."
        if worst.available == 0:
            return f"Avoid {_place(worst)}: it is full."
        return f"Avoid {_place(worst)}: only {worst.available} of {worst.total_capacity} {unit} free."

    top = aggregator.top(records, top_n)
    if not top:
        return _no_valid_records(category)
    parts = []
    for record in top:
        part = f"{record.name} {record.available}/{record.total_capacity} {unit} free ({aggregator.tier_label(record)})"
        if category == Category.FOOD:
            part += f", {_queue_text(record.queue_length)}"
        parts.append(part)
    return f"{heading} right now: " + "; ".join(parts) + "."


def render_traffic(readings: list[CommuteReading], mode: QueryMode, top_n: int) -> str:
    if mode == QueryMode.BEST:
        best = quickest(readings)
        if best is None:
            return "There are no live commute readings right now."
        return (
            f"The quickest trip is to {best.name}: about {_minutes(best.eta_minutes)} "
            f"({traffic_badge(best).lower()})."
        )

    if mode == QueryMode.WORST:
        worst = most_congested(readings)
        if worst is None:
            return "There are no live commute readings right now."
        return (
            f"Avoid the route to {worst.name}: {traffic_badge(worst).lower()}, "
            f"about {_minutes(worst.eta_minutes)}."
        )

    jammed = congested(readings)
    if jammed:
        names = ", ".join(reading.name for reading in jammed)
        prefix = f"Heads up, there's heavy traffic toward {names}."
    else:
        prefix = "Looks good! Traffic is light, safe travels!"

    parts = []
    for reading in readings[:top_n]:
        if reading.eta_minutes is None:
            parts.append(f"{reading.name} (no data)")
        else:
            parts.append(f"{reading.name} {_minutes(reading.eta_minutes)} ({traffic_badge(reading)})")
    return f"{prefix} " + "; ".join(parts) + "."


def render_elevators(elevators: list[Elevator], mode: QueryMode, top_n: int) -> str:
    usable = [elevator for elevator in elevators if elevator.is_valid]
    if not usable:
        return "No lift readings are usable right now."

    if mode == QueryMode.WORST:
        worst = max(usable, key=lambda elevator: elevator.estimated_wait)
        return (
            f"Avoid lift {worst.elevator_id} in {worst.building}: about {_seconds(worst.estimated_wait)} wait "
            f"with {_queue_text(worst.queue_length)}."
        )

    by_wait = sorted(usable, key=lambda elevator: elevator.estimated_wait)
    if mode == QueryMode.BEST:
        best = by_wait[0]
        return (
            f"Lift {best.elevator_id} in {best.building} has the shortest wait: "
            f"about {_seconds(best.estimated_wait)}, currently on floor {best.current_floor}."
        )

    parts = [
        f"{elevator.elevator_id} in {elevator.building} {_seconds(elevator.estimated_wait)}"
        for elevator in by_wait[:top_n]
    ]
    return "Shortest lift waits: " + "; ".join(parts) + "."


def render_elevator_route(ranked: list[ScoredElevator], destination: Destination, current_floor: int) -> str:
    if not ranked:
        return f"No lifts are listed for {destination.building} right now."
    best = ranked[0]
    return (
        f"Take lift {best.elevator.elevator_id} to {destination.label} "
        f"(floor {destination.floor}, {destination.building}) from floor {current_floor}: "
        f"{best.reasoning}."
    )


def _no_valid_records(category: Category) -> str:
    return f"No usable {category.value.replace('_', ' ')} readings right now."


def _place(record: ResourceRecord) -> str:
    if record.location and record.category == Category.LIBRARY:
        return f"{record.name} ({record.location})"
    return record.name


def _queue_text(queue_length: int) -> str:
    if queue_length == 0:
        return "no queue"
    if queue_length == 1:
        return "1 person waiting"
    return f"{queue_length} people waiting"


def _minutes(value: float | None) -> str:
    minutes = round(value or 0)
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def _seconds(value: int) -> str:
    if value < 60:
        return f"{value} seconds"
    minutes = round(value / 60)
    return "1 minute" if minutes == 1 else f"{minutes} minutes"
