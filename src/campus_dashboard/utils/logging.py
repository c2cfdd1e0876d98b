from __future__ import annotations

import logging

from campus_dashboard.config import SETTINGS

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        format=LOG_FORMAT,
    )
