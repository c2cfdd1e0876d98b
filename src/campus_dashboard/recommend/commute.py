from __future__ import annotations

from typing import Iterable

from campus_dashboard.data_models import CommuteReading, TrafficLevel

TRAFFIC_BADGES: dict[TrafficLevel, str] = {
    TrafficLevel.LOW: "Light Traffic",
    TrafficLevel.MODERATE: "Moderate Traffic",
    TrafficLevel.HEAVY: "Heavy Traffic",
    TrafficLevel.SEVERE: "Severe Congestion",
    TrafficLevel.UNKNOWN: "No Data",
}

SEVERITY: dict[TrafficLevel, int] = {
    TrafficLevel.UNKNOWN: -1,
    TrafficLevel.LOW: 0,
    TrafficLevel.MODERATE: 1,
    TrafficLevel.HEAVY: 2,
    TrafficLevel.SEVERE: 3,
}


def traffic_badge(reading: CommuteReading) -> str:
    return TRAFFIC_BADGES[reading.level]


def known_readings(readings: Iterable[CommuteReading]) -> list[CommuteReading]:
    return [r for r in readings if r.level != TrafficLevel.UNKNOWN and r.eta_minutes is not None]


def quickest(readings: Iterable[CommuteReading]) -> CommuteReading | None:
    candidates = known_readings(readings)
    if not candidates:
        return None
    return min(candidates, key=lambda r: r.eta_minutes)


def most_congested(readings: Iterable[CommuteReading]) -> CommuteReading | None:
    candidates = known_readings(readings)
    if not candidates:
        return None
    return max(candidates, key=lambda r: (SEVERITY[r.level], r.eta_minutes))


def congested(readings: Iterable[CommuteReading]) -> list[CommuteReading]:
    return [r for r in readings if SEVERITY[r.level] >= SEVERITY[TrafficLevel.HEAVY]]
