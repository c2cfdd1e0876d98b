from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from campus_dashboard.data_models import Category, ResourceRecord

logger = logging.getLogger(__name__)

QUEUE_PENALTY_PER_PERSON = 5


class Tier(str, Enum):
    PLENTY = "plenty"
    MODERATE = "moderate"
    LIMITED = "limited"
    FULL = "full"


TIER_LABELS: dict[Category, dict[Tier, str]] = {
    Category.PARKING: {
        Tier.PLENTY: "Plenty Available",
        Tier.MODERATE: "Moderate",
        Tier.LIMITED: "Limited",
        Tier.FULL: "Full",
    },
    Category.LIBRARY: {
        Tier.PLENTY: "Plenty Available",
        Tier.MODERATE: "Moderate",
        Tier.LIMITED: "Limited",
        Tier.FULL: "Full",
    },
    Category.FOOD: {
        Tier.PLENTY: "Great Choice",
        Tier.MODERATE: "Good",
        Tier.LIMITED: "Busy",
        Tier.FULL: "Very Busy",
    },
}


def occupancy_score(record: ResourceRecord) -> float:
    return record.available / record.total_capacity


def food_score(record: ResourceRecord) -> float:
    return (record.available / record.total_capacity) * 100 - record.queue_length * QUEUE_PENALTY_PER_PERSON


def scoring_rule(category: Category) -> Callable[[ResourceRecord], float]:
    if category == Category.FOOD:
        return food_score
    return occupancy_score


def valid_records(records: Iterable[ResourceRecord]) -> list[ResourceRecord]:
    kept: list[ResourceRecord] = []
    for record in records:
        if record.is_valid:
            kept.append(record)
            continue
        logger.warning(
            "Skipping malformed %s record %s (available=%s, total=%s)",
            record.category.value,
            record.record_id,
            record.available,
            record.total_capacity,
        )
    return kept


class AvailabilityAggregator:
    """
    Picks the headline recommendation for parking, library and food snapshots.

    Malformed records are dropped before scoring, so the division by
    ``total_capacity`` is always defined. Ties keep the first record seen.
    """

    def __init__(self, category: Category | str) -> None:
        category = Category(category)
        if category not in TIER_LABELS:
            raise ValueError(f"No availability rule for category {category.value!r}")
        self.category = category
        self.score = scoring_rule(category)

    def best_pick(self, records: Iterable[ResourceRecord]) -> ResourceRecord | None:
        best: ResourceRecord | None = None
        best_score = 0.0
        for record in valid_records(records):
            score = self.score(record)
            if best is None or score > best_score:
                best, best_score = record, score
        return best

    def worst_pick(self, records: Iterable[ResourceRecord]) -> ResourceRecord | None:
        worst: ResourceRecord | None = None
        worst_score = 0.0
        for record in valid_records(records):
            score = self.score(record)
            if worst is None or score < worst_score:
                worst, worst_score = record, score
        return worst

    def top(self, records: Iterable[ResourceRecord], n: int) -> list[ResourceRecord]:
        ranked = sorted(valid_records(records), key=self.score, reverse=True)
        return ranked[: max(n, 0)]

    def tier(self, record: ResourceRecord) -> Tier:
        return classify_tier(record)

    def tier_label(self, record: ResourceRecord) -> str:
        return TIER_LABELS[self.category][classify_tier(record)]


def best_pick(records: list[ResourceRecord]) -> ResourceRecord | None:
    if not records:
        return None
    return AvailabilityAggregator(records[0].category).best_pick(records)


def classify_tier(record: ResourceRecord) -> Tier:
    if not record.is_valid:
        return Tier.FULL
    rate = record.available / record.total_capacity * 100
    if record.category == Category.FOOD:
        if rate > 50 and record.queue_length < 3:
            return Tier.PLENTY
        if rate > 25 and record.queue_length < 5:
            return Tier.MODERATE
    else:
        if rate > 50:
            return Tier.PLENTY
        if rate > 25:
            return Tier.MODERATE
    if rate > 0:
        return Tier.LIMITED
    return Tier.FULL


def queue_tier(queue_length: int) -> str:
    if queue_length == 0:
        return "none"
    if queue_length < 3:
        return "short"
    if queue_length < 5:
        return "medium"
    return "long"


@dataclass(frozen=True)
class CategoryOverview:
    category: Category
    total_available: int
    total_capacity: int
    percentage: float
    label: str
    preview: tuple[ResourceRecord, ...]
    average_queue: int | None = None
    queue_speed: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "total_available": self.total_available,
            "total_capacity": self.total_capacity,
            "percentage": round(self.percentage, 1),
            "label": self.label,
            "preview": [record.to_dict() for record in self.preview],
            "average_queue": self.average_queue,
            "queue_speed": self.queue_speed,
        }


def summarize_category(category: Category, records: list[ResourceRecord], preview_size: int = 3) -> CategoryOverview:
    total_available = sum(record.available for record in records)
    total_capacity = sum(record.total_capacity for record in records)
    percentage = (total_available / total_capacity) * 100 if total_capacity > 0 else 0.0

    average_queue = None
    queue_speed = None
    if category == Category.FOOD:
        average_queue = round(sum(r.queue_length for r in records) / len(records)) if records else 0
        queue_speed = "Fast" if average_queue < 10 else "Busy"

    return CategoryOverview(
        category=category,
        total_available=total_available,
        total_capacity=total_capacity,
        percentage=percentage,
        label=_overview_label(percentage),
        preview=tuple(records[:preview_size]),
        average_queue=average_queue,
        queue_speed=queue_speed,
    )


def _overview_label(percentage: float) -> str:
    if percentage > 50:
        return "Good"
    if percentage > 20:
        return "Limited"
    return "Low"
