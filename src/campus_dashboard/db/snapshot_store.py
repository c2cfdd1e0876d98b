from __future__ import annotations

import logging
import sqlite3
from dataclasses import replace
from pathlib import Path
from typing import Any

from campus_dashboard.data_models import (
    AVAILABILITY_CATEGORIES,
    Category,
    CommuteReading,
    Destination,
    Elevator,
    Record,
    ResourceRecord,
)
from campus_dashboard.ingestion.normalizer import to_record, to_records

logger = logging.getLogger(__name__)

_RESOURCE_TABLE = """
    CREATE TABLE IF NOT EXISTS {table} (
        record_id TEXT NOT NULL,
        scope TEXT NOT NULL,
        name TEXT,
        total_capacity INTEGER NOT NULL,
        available INTEGER NOT NULL,
        queue_length INTEGER DEFAULT 0,
        amenities TEXT,
        location TEXT,
        last_updated TEXT,
        PRIMARY KEY (scope, record_id)
    )
"""

_SCHEMA = [
    _RESOURCE_TABLE.format(table=Category.PARKING.value),
    _RESOURCE_TABLE.format(table=Category.LIBRARY.value),
    _RESOURCE_TABLE.format(table=Category.FOOD.value),
    """
    CREATE TABLE IF NOT EXISTS elevators (
        elevator_id TEXT NOT NULL,
        scope TEXT NOT NULL,
        building TEXT NOT NULL,
        current_floor INTEGER NOT NULL,
        direction TEXT NOT NULL DEFAULT 'idle',
        occupancy INTEGER DEFAULT 0,
        capacity INTEGER NOT NULL,
        queue_length INTEGER DEFAULT 0,
        estimated_wait INTEGER DEFAULT 0,
        PRIMARY KEY (scope, elevator_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS classrooms (
        scope TEXT NOT NULL,
        building TEXT NOT NULL,
        floor INTEGER NOT NULL,
        label TEXT NOT NULL,
        is_available INTEGER DEFAULT 1,
        capacity INTEGER DEFAULT 0,
        PRIMARY KEY (scope, building, label)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS poi_traffic (
        poi_id TEXT NOT NULL,
        scope TEXT NOT NULL,
        name TEXT,
        address TEXT,
        is_default INTEGER DEFAULT 0,
        eta_minutes REAL,
        level TEXT,
        last_updated TEXT,
        PRIMARY KEY (scope, poi_id)
    )
    """,
]

_ORDER_BY = {
    Category.PARKING: "name ASC",
    Category.LIBRARY: "name ASC",
    Category.FOOD: "name ASC",
    Category.ELEVATOR: "building ASC, elevator_id ASC",
    Category.CLASSROOM: "building ASC, label ASC",
    Category.TRAFFIC: "is_default DESC, name ASC",
}


class SqliteSnapshotStore:
    """Snapshot source backed by a single sqlite file, one table per category."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    def init(self) -> None:
        with self._connect() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    def fetch(self, category: Category | str, scope: str) -> list[Record]:
        category = Category(category)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM {category.value} WHERE scope = ? ORDER BY {_ORDER_BY[category]}",
                (scope,),
            ).fetchall()
        return to_records(category, [dict(row) for row in rows])

    def upsert(self, category: Category | str, rows: list[dict[str, Any]], scope: str | None = None) -> int:
        category = Category(category)
        records = [to_record(category, row) for row in rows]
        if scope is not None:
            records = [replace(record, scope=scope) for record in records]

        missing_scope = [record for record in records if not record.scope]
        if missing_scope:
            raise ValueError(f"{len(missing_scope)} {category.value} rows have no scope")

        return self.upsert_records(category, records)

    def upsert_records(self, category: Category, records: list[Record]) -> int:
        if not records:
            return 0

        columns, values = _encode(category, records)
        placeholders = ", ".join("?" for _ in columns)
        with self._connect() as conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO {category.value} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            conn.commit()
        logger.info("Upserted %s %s rows", len(records), category.value)
        return len(records)

    def clear(self, category: Category | str, scope: str) -> None:
        category = Category(category)
        with self._connect() as conn:
            conn.execute(f"DELETE FROM {category.value} WHERE scope = ?", (scope,))
            conn.commit()

    def counts(self, scope: str) -> dict[str, int]:
        counts: dict[str, int] = {}
        with self._connect() as conn:
            for category in Category:
                row = conn.execute(
                    f"SELECT COUNT(*) AS total FROM {category.value} WHERE scope = ?",
                    (scope,),
                ).fetchone()
                counts[category.value] = int(row["total"])
        return counts

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn


def _encode(category: Category, records: list[Record]) -> tuple[list[str], list[tuple[Any, ...]]]:
    if category in AVAILABILITY_CATEGORIES:
        columns = [
            "record_id", "scope", "name", "total_capacity", "available",
            "queue_length", "amenities", "location", "last_updated",
        ]
        values = [
            (
                r.record_id, r.scope, r.name, r.total_capacity, r.available,
                r.queue_length, ",".join(r.amenities), r.location, r.last_updated,
            )
            for r in records
            if isinstance(r, ResourceRecord)
        ]
    elif category == Category.ELEVATOR:
        columns = [
            "elevator_id", "scope", "building", "current_floor", "direction",
            "occupancy", "capacity", "queue_length", "estimated_wait",
        ]
        values = [
            (
                r.elevator_id, r.scope, r.building, r.current_floor, r.direction.value,
                r.occupancy, r.capacity, r.queue_length, r.estimated_wait,
            )
            for r in records
            if isinstance(r, Elevator)
        ]
    elif category == Category.CLASSROOM:
        columns = ["scope", "building", "floor", "label", "is_available", "capacity"]
        values = [
            (r.scope, r.building, r.floor, r.label, 1 if r.is_available else 0, r.capacity)
            for r in records
            if isinstance(r, Destination)
        ]
    else:
        columns = ["poi_id", "scope", "name", "address", "is_default", "eta_minutes", "level", "last_updated"]
        values = [
            (
                r.poi_id, r.scope, r.name, r.address, 1 if r.is_default else 0,
                r.eta_minutes, r.level.value, r.last_updated,
            )
            for r in records
            if isinstance(r, CommuteReading)
        ]
    return columns, values
