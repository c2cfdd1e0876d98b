from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
PROCESSED_DATA_DIR = DATA_DIR / "processed"
EVAL_DATA_DIR = DATA_DIR / "eval"
DB_DIR = DATA_DIR / "db"


def _load_dotenv_file(path: Path) -> None:
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("'\"")
        if key and key not in os.environ:
            os.environ[key] = value


_load_dotenv_file(PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class Settings:
    db_path: str = os.getenv("CAMPUS_DB_PATH", str(DB_DIR / "campus.db"))

    snapshot_rest_url: str | None = os.getenv("SNAPSHOT_REST_URL")
    snapshot_rest_key: str | None = os.getenv("SNAPSHOT_REST_KEY")
    request_timeout_seconds: int = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "25"))
    user_agent: str = "CampusDashboard/0.1 (status dashboard; contact: maintainer@example.com)"

    # Refresh cadence of each dashboard page, in milliseconds.
    parking_poll_ms: int = int(os.getenv("PARKING_POLL_MS", "15000"))
    library_poll_ms: int = int(os.getenv("LIBRARY_POLL_MS", "15000"))
    food_poll_ms: int = int(os.getenv("FOOD_POLL_MS", "15000"))
    elevator_poll_ms: int = int(os.getenv("ELEVATOR_POLL_MS", "10000"))
    classroom_poll_ms: int = int(os.getenv("CLASSROOM_POLL_MS", "30000"))
    traffic_poll_ms: int = int(os.getenv("TRAFFIC_POLL_MS", "30000"))
    # Pollers nobody has read for this long are stopped.
    poller_idle_seconds: int = int(os.getenv("POLLER_IDLE_SECONDS", "300"))

    default_scope: str = os.getenv("DEFAULT_SCOPE", "demo-university")
    default_current_floor: int = int(os.getenv("DEFAULT_CURRENT_FLOOR", "1"))
    summary_top_n: int = int(os.getenv("SUMMARY_TOP_N", "3"))

    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    openai_assistant_id: str | None = os.getenv("OPENAI_ASSISTANT_ID")
    openai_assistant_system_prompt: str | None = os.getenv("OPENAI_ASSISTANT_SYSTEM_PROMPT")
    openai_assistant_timeout_seconds: int = int(os.getenv("OPENAI_ASSISTANT_TIMEOUT_SECONDS", "40"))

    admin_api_token: str = os.getenv("ADMIN_API_TOKEN", "campus-admin")
    dashboard_access_token: str = os.getenv("DASHBOARD_ACCESS_TOKEN", "campus-dashboard")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def poll_interval_ms(self, category: str) -> int:
        intervals = {
            "parking_lots": self.parking_poll_ms,
            "library_zones": self.library_poll_ms,
            "food_stalls": self.food_poll_ms,
            "elevators": self.elevator_poll_ms,
            "classrooms": self.classroom_poll_ms,
            "poi_traffic": self.traffic_poll_ms,
        }
        return intervals[getattr(category, "value", category)]


SETTINGS = Settings()


def ensure_directories() -> None:
    for path in [PROCESSED_DATA_DIR, EVAL_DATA_DIR, DB_DIR]:
        path.mkdir(parents=True, exist_ok=True)
