from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any

from campus_dashboard.data_models import Category

logger = logging.getLogger(__name__)


class SyntheticCampusGenerator:
    """Generates a plausible demo campus so the dashboard works without live feeds."""

    def __init__(self, random_seed: int = 42) -> None:
        self.random = random.Random(random_seed)

    def generate(self, scope: str) -> dict[Category, list[dict[str, Any]]]:
        now = datetime.now(timezone.utc).isoformat()
        rows = {
            Category.PARKING: self._parking(scope, now),
            Category.LIBRARY: self._library(scope, now),
            Category.FOOD: self._food(scope, now),
            Category.ELEVATOR: self._elevators(scope),
            Category.CLASSROOM: self._classrooms(scope),
            Category.TRAFFIC: self._traffic(scope, now),
        }
        logger.info(
            "Generated synthetic campus for scope=%s: %s",
            scope,
            {category.value: len(items) for category, items in rows.items()},
        )
        return rows

    def _parking(self, scope: str, now: str) -> list[dict[str, Any]]:
        zones = ["Zone A", "Zone B", "Zone C", "Staff Lot", "Visitor Lot"]
        rows = []
        for idx, zone in enumerate(zones):
            total = self.random.choice([50, 80, 120, 200])
            rows.append(
                {
                    "id": f"lot-{idx + 1}",
                    "name": zone,
                    "total_capacity": total,
                    "available": self.random.randint(0, total),
                    "location": f"{zone} entrance",
                    "scope": scope,
                    "last_updated": now,
                }
            )
        return rows

    def _library(self, scope: str, now: str) -> list[dict[str, Any]]:
        areas = [
            ("Quiet Study", ["wifi", "power outlets"]),
            ("Group Study", ["wifi", "whiteboards"]),
            ("Computer Lab", ["wifi", "computers", "printing"]),
            ("Reading Room", ["wifi"]),
        ]
        rows = []
        for idx, (area, amenities) in enumerate(areas):
            total = self.random.choice([30, 40, 60, 100])
            rows.append(
                {
                    "id": f"library-{idx + 1}",
                    "name": area,
                    "total_capacity": total,
                    "available": self.random.randint(0, total),
                    "amenities": amenities,
                    "location": f"Level {idx + 1}",
                    "scope": scope,
                    "last_updated": now,
                }
            )
        return rows

    def _food(self, scope: str, now: str) -> list[dict[str, Any]]:
        stalls = ["Asian Kitchen", "Burger Bar", "Coffee Corner", "Noodle House", "Salad Station"]
        rows = []
        for idx, stall in enumerate(stalls):
            total = self.random.choice([20, 30, 40])
            rows.append(
                {
                    "id": f"stall-{idx + 1}",
                    "name": stall,
                    "total_capacity": total,
                    "available": self.random.randint(0, total),
                    "queue_length": self.random.randint(0, 12),
                    "location": "Main Canteen",
                    "scope": scope,
                    "last_updated": now,
                }
            )
        return rows

    def _elevators(self, scope: str) -> list[dict[str, Any]]:
        rows = []
        for building, floors in [("Block A", 8), ("Block C", 12)]:
            for number in range(1, 4):
                capacity = self.random.choice([10, 13, 16])
                rows.append(
                    {
                        "elevator_id": f"{building[-1]}-L{number}",
                        "building": building,
                        "current_floor": self.random.randint(1, floors),
                        "direction": self.random.choice(["up", "down", "idle"]),
                        "occupancy": self.random.randint(0, capacity),
                        "capacity": capacity,
                        "queue_length": self.random.randint(0, 10),
                        "estimated_wait": self.random.randint(0, 240),
                        "scope": scope,
                    }
                )
        return rows

    def _classrooms(self, scope: str) -> list[dict[str, Any]]:
        rows = []
        for building, prefix, floors in [("Block A", "A", 8), ("Block C", "C", 12)]:
            for floor in range(1, floors + 1):
                for room in (1, 21):
                    rows.append(
                        {
                            "building": building,
                            "floor": floor,
                            "label": f"{prefix}{floor}{room:02d}",
                            "is_available": self.random.random() > 0.4,
                            "capacity": self.random.choice([30, 45, 60, 120]),
                            "scope": scope,
                        }
                    )
        return rows

    def _traffic(self, scope: str, now: str) -> list[dict[str, Any]]:
        pois = [
            ("poi-1", "City Centre", "1 Main Street", True),
            ("poi-2", "Central Station", "Station Road", True),
            ("poi-3", "Northside Residences", "12 North Avenue", False),
            ("poi-4", "Airport", "Airport Drive", False),
        ]
        rows = []
        for poi_id, name, address, is_default in pois:
            level = self.random.choice(["low", "moderate", "heavy", "severe"])
            rows.append(
                {
                    "poi_id": poi_id,
                    "name": name,
                    "address": address,
                    "is_default": is_default,
                    "eta_minutes": self.random.randint(8, 55),
                    "level": level,
                    "scope": scope,
                    "last_updated": now,
                }
            )
        return rows
