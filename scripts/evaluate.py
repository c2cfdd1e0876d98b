from __future__ import annotations

import json

from campus_dashboard.config import EVAL_DATA_DIR, PROCESSED_DATA_DIR
from campus_dashboard.evaluation.benchmark import IntentBenchmark


if __name__ == "__main__":
    report = IntentBenchmark().run(
        gold_path=EVAL_DATA_DIR / "intent_gold.json",
        output_path=PROCESSED_DATA_DIR / "intent_report.json",
    )
    print(json.dumps({key: report[key] for key in ("samples", "intent", "confusions")}, indent=2))
