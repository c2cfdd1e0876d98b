from __future__ import annotations

import logging
from typing import Iterable

from campus_dashboard.data_models import Destination, Direction, Elevator, ScoredElevator

logger = logging.getLogger(__name__)

BASE_SCORE = 100
FLOOR_DISTANCE_PENALTY = 5
NEARLY_FULL_PENALTY = 30
MODERATELY_OCCUPIED_PENALTY = 15
LONG_QUEUE_PENALTY_PER_PERSON = 3
SHORT_QUEUE_PENALTY_PER_PERSON = 2
IDLE_BONUS = 15
COMING_YOUR_WAY_BONUS = 20
WRONG_DIRECTION_PENALTY = 10


class ElevatorRankingEngine:
    """
    Scores elevators against a destination and the requester's floor.

    Every factor contributes a reason fragment, evaluated in a fixed order
    (distance, occupancy, queue, direction), so the explanation reads the same
    way the score was built. Scores are clamped at zero but not capped.
    """

    def score(self, elevator: Elevator, destination: Destination, current_floor: int) -> ScoredElevator:
        if elevator.building != destination.building:
            return ScoredElevator(elevator=elevator, score=0, explanation=("different building",))

        score = BASE_SCORE
        reasons: list[str] = []

        distance = abs(elevator.current_floor - current_floor)
        score -= distance * FLOOR_DISTANCE_PENALTY
        reasons.append("1 floor away" if distance == 1 else f"{distance} floors away")

        occupancy_rate = elevator.occupancy / elevator.capacity
        if occupancy_rate > 0.8:
            score -= NEARLY_FULL_PENALTY
            reasons.append("nearly full")
        elif occupancy_rate > 0.5:
            score -= MODERATELY_OCCUPIED_PENALTY
            reasons.append("moderately occupied")
        else:
            reasons.append("good space available")

        queue = elevator.queue_length
        if queue > 5:
            score -= queue * LONG_QUEUE_PENALTY_PER_PERSON
            reasons.append(f"{queue} people waiting")
        elif queue > 0:
            score -= queue * SHORT_QUEUE_PENALTY_PER_PERSON
            reasons.append(f"{queue} in queue")
        else:
            reasons.append("no queue")

        toward_requester = (elevator.direction == Direction.UP and elevator.current_floor < current_floor) or (
            elevator.direction == Direction.DOWN and elevator.current_floor > current_floor
        )
        toward_destination = (elevator.direction == Direction.UP and destination.floor > current_floor) or (
            elevator.direction == Direction.DOWN and destination.floor < current_floor
        )

        if elevator.direction == Direction.IDLE:
            score += IDLE_BONUS
            reasons.append("idle and ready")
        elif toward_requester and toward_destination:
            score += COMING_YOUR_WAY_BONUS
            reasons.append("coming your way")
        elif not toward_destination:
            score -= WRONG_DIRECTION_PENALTY
            reasons.append("wrong direction")

        return ScoredElevator(elevator=elevator, score=max(0, score), explanation=tuple(reasons))

    def rank(
        self,
        elevators: Iterable[Elevator],
        destination: Destination,
        current_floor: int,
    ) -> list[ScoredElevator]:
        scored: list[ScoredElevator] = []
        for elevator in elevators:
            if not elevator.is_valid:
                logger.warning(
                    "Skipping malformed elevator %s (occupancy=%s, capacity=%s)",
                    elevator.elevator_id,
                    elevator.occupancy,
                    elevator.capacity,
                )
                continue
            scored.append(self.score(elevator, destination, current_floor))

        # sorted() is stable: equal scores keep the source order.
        return sorted(scored, key=lambda item: item.score, reverse=True)

    def rank_in_building(
        self,
        elevators: Iterable[Elevator],
        destination: Destination,
        current_floor: int,
    ) -> list[ScoredElevator]:
        same_building = [elevator for elevator in elevators if elevator.building == destination.building]
        return self.rank(same_building, destination, current_floor)


def score_band(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def occupancy_band(elevator: Elevator) -> str:
    if elevator.capacity <= 0:
        return "high"
    rate = elevator.occupancy / elevator.capacity * 100
    if rate > 80:
        return "high"
    if rate > 50:
        return "medium"
    return "low"


def search_destinations(catalog: Iterable[Destination], text: str, limit: int = 5) -> list[Destination]:
    needle = text.strip().lower()
    if not needle:
        return []
    matches = [
        destination
        for destination in catalog
        if needle in destination.label.lower() or needle in destination.building.lower()
    ]
    return matches[:limit]


def find_destination(catalog: Iterable[Destination], label: str) -> Destination | None:
    wanted = label.strip().lower()
    for destination in catalog:
        if destination.label.lower() == wanted:
            return destination
    return None
