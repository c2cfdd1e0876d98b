from __future__ import annotations

import logging
from typing import Any

import requests

from campus_dashboard.config import SETTINGS
from campus_dashboard.data_models import Category, Record
from campus_dashboard.ingestion.normalizer import to_records

logger = logging.getLogger(__name__)

_ORDER = {
    Category.PARKING: "zone.asc",
    Category.LIBRARY: "area.asc",
    Category.FOOD: "name.asc",
    Category.ELEVATOR: "building.asc",
    Category.CLASSROOM: "building.asc,room_number.asc",
}


class RestSnapshotSource:
    """
    Reads category tables from a PostgREST endpoint (the hosted dashboard backend).

    Every table carries a ``university_id`` column that is used as the scope.
    Commute readings live in two tables, ``pois`` and ``poi_traffic``, and are
    joined here by ``poi_id``. Failures raise; the polling scheduler decides
    what to do with them.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: int | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds or SETTINGS.request_timeout_seconds
        self.headers = {"User-Agent": SETTINGS.user_agent, "Accept": "application/json"}
        if api_key:
            self.headers["apikey"] = api_key
            self.headers["Authorization"] = f"Bearer {api_key}"

    def fetch(self, category: Category | str, scope: str) -> list[Record]:
        category = Category(category)
        if category == Category.TRAFFIC:
            return to_records(category, self._commute_rows(scope))

        rows = self._get_table(
            category.value,
            {"select": "*", "university_id": f"eq.{scope}", "order": _ORDER[category]},
        )
        return to_records(category, rows)

    def _commute_rows(self, scope: str) -> list[dict[str, Any]]:
        pois = self._get_table(
            "pois",
            {"select": "*", "university_id": f"eq.{scope}", "order": "is_default.desc,name.asc"},
        )
        readings = self._get_table("poi_traffic", {"select": "*"})
        by_poi = {str(reading.get("poi_id")): reading for reading in readings}

        combined: list[dict[str, Any]] = []
        for poi in pois:
            reading = by_poi.get(str(poi.get("id")), {})
            combined.append(
                {
                    "poi_id": poi.get("id"),
                    "name": poi.get("name"),
                    "address": poi.get("address"),
                    "is_default": poi.get("is_default", False),
                    "university_id": scope,
                    "commute_time_minutes": reading.get("commute_time_minutes"),
                    "traffic_level": reading.get("traffic_level"),
                    "last_updated": reading.get("last_updated"),
                }
            )
        return combined

    def _get_table(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        response = requests.get(
            f"{self.base_url}/rest/v1/{table}",
            params=params,
            headers=self.headers,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(f"Unexpected payload for table {table!r}: expected a JSON array")
        logger.debug("Fetched %s rows from %s", len(payload), table)
        return [row for row in payload if isinstance(row, dict)]
