from __future__ import annotations

from campus_dashboard.data_models import Category, TrafficLevel
from campus_dashboard.ingestion.rest_source import RestSnapshotSource


class _MockResponse:
    def __init__(self, payload, status_error: Exception | None = None) -> None:
        self.payload = payload
        self.status_error = status_error

    def raise_for_status(self) -> None:
        if self.status_error is not None:
            raise self.status_error

    def json(self):
        return self.payload


def test_fetch_scopes_request_and_sends_api_key(monkeypatch) -> None:
    calls = []

    def _mock_get(url, params=None, headers=None, timeout=None):
        calls.append((url, params, headers, timeout))
        return _MockResponse(
            [{"id": 7, "area": "Quiet Study", "total_seats": 40, "available_seats": 12, "university_id": "uni-1",
              "amenities": ["wifi"]}]
        )

    monkeypatch.setattr("requests.get", _mock_get)

    source = RestSnapshotSource("https://db.example.com/", api_key="anon-key", timeout_seconds=5)
    zones = source.fetch(Category.LIBRARY, "uni-1")

    url, params, headers, timeout = calls[0]
    assert url == "https://db.example.com/rest/v1/library_zones"
    assert params["university_id"] == "eq.uni-1"
    assert headers["apikey"] == "anon-key"
    assert headers["Authorization"] == "Bearer anon-key"
    assert timeout == 5

    assert zones[0].record_id == "7"
    assert zones[0].name == "Quiet Study"
    assert zones[0].available == 12
    assert zones[0].amenities == ("wifi",)


def test_traffic_joins_pois_with_readings(monkeypatch) -> None:
    tables = {
        "pois": [
            {"id": "p1", "name": "City Centre", "is_default": True, "address": "1 Main Street"},
            {"id": "p2", "name": "Airport", "is_default": False},
        ],
        "poi_traffic": [{"poi_id": "p1", "traffic_level": "severe", "commute_time_minutes": 48}],
    }

    def _mock_get(url, params=None, headers=None, timeout=None):
        return _MockResponse(tables[url.rsplit("/", 1)[-1]])

    monkeypatch.setattr("requests.get", _mock_get)

    readings = RestSnapshotSource("https://db.example.com").fetch(Category.TRAFFIC, "uni-1")

    assert [reading.name for reading in readings] == ["City Centre", "Airport"]
    assert readings[0].level == TrafficLevel.SEVERE
    assert readings[0].eta_minutes == 48.0
    assert readings[0].scope == "uni-1"
    assert readings[1].level == TrafficLevel.UNKNOWN


def test_http_errors_propagate(monkeypatch) -> None:
    def _mock_get(*args, **kwargs):
        return _MockResponse([], status_error=RuntimeError("503 Service Unavailable"))

    monkeypatch.setattr("requests.get", _mock_get)

    try:
        RestSnapshotSource("https://db.example.com").fetch(Category.PARKING, "uni-1")
    except RuntimeError as exc:
        assert "503" in str(exc)
    else:
        raise AssertionError("Expected the HTTP error to reach the caller")


def test_non_list_payload_is_rejected(monkeypatch) -> None:
    monkeypatch.setattr("requests.get", lambda *args, **kwargs: _MockResponse({"message": "denied"}))

    try:
        RestSnapshotSource("https://db.example.com").fetch(Category.ELEVATOR, "uni-1")
    except ValueError as exc:
        assert "elevators" in str(exc)
    else:
        raise AssertionError("Expected ValueError for a non-list payload")


def test_malformed_rows_are_dropped_not_fatal(monkeypatch) -> None:
    rows = [
        {"lift_id": "L1", "building": "Block C", "current_floor": 3, "direction": "up", "capacity": 10},
        {"lift_id": "L2", "building": "Block C", "current_floor": 1, "direction": "stopped", "capacity": 10},
        {"lift_id": "L3", "building": "Block C", "current_floor": 2, "direction": "idle", "capacity": "n/a"},
        {"lift_id": "L4", "building": "Block C", "current_floor": 5, "direction": "down"},
    ]
    monkeypatch.setattr("requests.get", lambda *args, **kwargs: _MockResponse(rows))

    lifts = RestSnapshotSource("https://db.example.com").fetch(Category.ELEVATOR, "u1")

    assert [lift.elevator_id for lift in lifts] == ["L1"]
