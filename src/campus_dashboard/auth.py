from __future__ import annotations

import secrets
import time
from typing import Protocol

from campus_dashboard.data_models import User


class AuthContext(Protocol):
    def current_user(self) -> User | None:
        ...


class StaticAuthContext:
    """Auth context with a fixed user, or none. Used by the CLI and tests."""

    def __init__(self, user: User | None) -> None:
        self._user = user

    def current_user(self) -> User | None:
        return self._user


class SessionStore:
    """In-memory session ids mapped to signed-in users, with expiry."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, tuple[User, float]] = {}

    def create(self, user: User) -> str:
        self.cleanup()
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = (user, time.time() + self.ttl_seconds)
        return session_id

    def get(self, session_id: str | None) -> User | None:
        self.cleanup()
        if not session_id:
            return None
        entry = self._sessions.get(session_id)
        return entry[0] if entry else None

    def delete(self, session_id: str | None) -> None:
        if not session_id:
            return
        self._sessions.pop(session_id, None)

    def cleanup(self) -> None:
        now = time.time()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            self._sessions.pop(sid, None)
