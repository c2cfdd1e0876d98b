from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def write_json(path: Path, payload: dict[str, Any] | list[Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(payload, fp, indent=2, ensure_ascii=False)


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def rows_from_payload(parsed: Any) -> list[dict[str, Any]]:
    """Accepts a JSON array of objects or a ``{"records": [...]}`` wrapper."""
    if isinstance(parsed, list):
        rows = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("records"), list):
        rows = parsed["records"]
    else:
        raise ValueError("payload must be a JSON array of objects or {'records': [...]}")
    return [row for row in rows if isinstance(row, dict)]
