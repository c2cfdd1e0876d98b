from __future__ import annotations

import json

from fastapi.testclient import TestClient

from campus_dashboard.config import SETTINGS
from campus_dashboard.data_models import Category
from campus_dashboard.db.snapshot_store import SqliteSnapshotStore
from campus_dashboard.web.server import STATE, app

SCOPE = "uni-1"


def _seeded_store(tmp_path) -> SqliteSnapshotStore:
    store = SqliteSnapshotStore(tmp_path / "campus.db")
    store.init()
    store.upsert(
        Category.PARKING,
        [
            {"id": "1", "name": "North Lot", "total_capacity": 100, "available": 80},
            {"id": "2", "name": "South Lot", "total_capacity": 50, "available": 10},
            {"id": "3", "name": "Closed Lot", "total_capacity": 0, "available": 0},
        ],
        scope=SCOPE,
    )
    store.upsert(
        Category.ELEVATOR,
        [
            {"elevator_id": "L1", "building": "Block C", "current_floor": 3, "direction": "up",
             "occupancy": 2, "capacity": 10},
            {"elevator_id": "L2", "building": "Block C", "current_floor": 1, "direction": "idle",
             "occupancy": 9, "capacity": 10, "queue_length": 8},
        ],
        scope=SCOPE,
    )
    store.upsert(
        Category.CLASSROOM,
        [
            {"building": "Block C", "floor": 10, "label": "C1001"},
            {"building": "Block C", "floor": 2, "label": "C201"},
        ],
        scope=SCOPE,
    )
    return store


def _login(client: TestClient) -> None:
    response = client.post(
        "/api/session/login",
        json={"user_id": "student-1", "scope": SCOPE, "access_token": SETTINGS.dashboard_access_token},
    )
    assert response.status_code == 200


def test_health_and_auth_guards(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(STATE, "source", _seeded_store(tmp_path))

    with TestClient(app) as client:
        assert client.get("/api/health").json() == {"status": "ok"}
        assert client.get("/api/dashboard/overview").status_code == 401

        denied = client.post(
            "/api/session/login",
            json={"user_id": "student-1", "scope": SCOPE, "access_token": "wrong"},
        )
        assert denied.status_code == 403

        _login(client)
        assert client.get("/api/dashboard/overview").status_code == 200

        client.post("/api/session/logout")
        assert client.get("/api/traffic").status_code == 401


def test_dashboard_category_and_elevator_ranking(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(STATE, "source", _seeded_store(tmp_path))

    with TestClient(app) as client:
        _login(client)

        parking = client.get("/api/dashboard/parking_lots").json()
        assert parking["best_pick"]["name"] == "North Lot"
        assert [item["tier_label"] for item in parking["records"]] == ["Plenty Available", "Limited"]

        assert client.get("/api/dashboard/elevators").status_code == 404

        ranked = client.get("/api/elevators/rank", params={"destination": "c1001", "current_floor": 2}).json()
        assert [item["elevator_id"] for item in ranked["ranked"]] == ["L1", "L2"]
        assert ranked["ranked"][0]["score"] == 95
        assert ranked["ranked"][0]["band"] == "excellent"

        missing = client.get("/api/elevators/rank", params={"destination": "Z999"})
        assert missing.status_code == 404

        found = client.get("/api/destinations/search", params={"q": "c10"}).json()
        assert [item["label"] for item in found["results"]] == ["C1001"]


def test_assistant_command_uses_session_scope(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(STATE, "source", _seeded_store(tmp_path))

    with TestClient(app) as client:
        anonymous = client.post("/api/assistant/command", json={"utterance": "Where should I park?"}).json()
        assert anonymous["text"] == "Please sign in to see live campus data."

        _login(client)
        answer = client.post("/api/assistant/command", json={"utterance": "Where should I park?"}).json()
        assert answer["intent"] == "parking"
        assert answer["target"] == "parking_lots"
        assert answer["text"] == "North Lot has the most room: 80 of 100 spaces free."


def test_admin_records_import(tmp_path, monkeypatch) -> None:
    store = _seeded_store(tmp_path)
    monkeypatch.setattr(STATE, "source", store)
    rows = [{"id": "9", "name": "Ramen Bar", "total_capacity": 24, "available": 6, "queue_length": 2}]

    with TestClient(app) as client:
        forbidden = client.post(
            "/api/admin/records",
            json={"admin_token": "nope", "category": "food_stalls", "payload_json": json.dumps(rows)},
        )
        assert forbidden.status_code == 403

        no_scope = client.post(
            "/api/admin/records",
            json={"admin_token": SETTINGS.admin_api_token, "category": "food_stalls", "payload_json": json.dumps(rows)},
        )
        assert no_scope.status_code == 400

        accepted = client.post(
            "/api/admin/records",
            json={
                "admin_token": SETTINGS.admin_api_token,
                "category": "food_stalls",
                "payload_json": json.dumps({"records": rows}),
                "scope": SCOPE,
            },
        )
        assert accepted.status_code == 200
        assert accepted.json()["upserted"] == 1

        _login(client)
        status = client.get("/api/status").json()
        assert status["db_counts"]["food_stalls"] == 1
        assert status["db_counts"]["parking_lots"] == 3

    assert [stall.name for stall in store.fetch(Category.FOOD, SCOPE)] == ["Ramen Bar"]
