from __future__ import annotations

import json

from campus_dashboard.app.cli import seed
from campus_dashboard.config import SETTINGS, ensure_directories
from campus_dashboard.utils.logging import configure_logging


if __name__ == "__main__":
    configure_logging()
    ensure_directories()
    print(json.dumps(seed(SETTINGS.default_scope, random_seed=42), indent=2))
