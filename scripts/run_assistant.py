from __future__ import annotations

from campus_dashboard.app.cli import run_ask
from campus_dashboard.config import SETTINGS
from campus_dashboard.utils.logging import configure_logging


if __name__ == "__main__":
    configure_logging()
    run_ask(SETTINGS.default_scope, user_id="cli")
