from __future__ import annotations

from campus_dashboard.auth import SessionStore
from campus_dashboard.data_models import Destination, User
from campus_dashboard.nlp.handlers import QueryMode, mentioned_destination, parse_current_floor, query_mode


def test_query_mode_prefers_best_over_worst() -> None:
    assert query_mode("Recommend a car park") == QueryMode.BEST
    assert query_mode("Which stall should I avoid?") == QueryMode.WORST
    assert query_mode("What's the best one to avoid?") == QueryMode.BEST
    assert query_mode("How is the library?") == QueryMode.SUMMARY


def test_parse_current_floor() -> None:
    assert parse_current_floor("Take me to C1001 from floor 4") == 4
    assert parse_current_floor("I'm on level 2 right now") == 2
    assert parse_current_floor("I'm on the 3rd floor") == 3
    assert parse_current_floor("Which lift goes to A721?") is None


def test_mentioned_destination_matches_whole_label() -> None:
    catalog = [Destination("Block A", 1, "A101"), Destination("Block A", 10, "A1001")]

    assert mentioned_destination("Route me to a1001 please", catalog).label == "A1001"
    assert mentioned_destination("Anything near A10?", catalog) is None


def test_session_store_round_trip() -> None:
    sessions = SessionStore(ttl_seconds=60)
    user = User(user_id="u1", scope="uni-1")

    session_id = sessions.create(user)
    assert sessions.get(session_id) == user
    assert sessions.get(None) is None

    sessions.delete(session_id)
    assert sessions.get(session_id) is None


def test_expired_sessions_are_dropped() -> None:
    sessions = SessionStore(ttl_seconds=0)

    session_id = sessions.create(User(user_id="u1", scope="uni-1"))

    assert sessions.get(session_id) is None
