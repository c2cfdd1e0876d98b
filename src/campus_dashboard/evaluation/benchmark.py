from __future__ import annotations

from pathlib import Path
from typing import Any

from campus_dashboard.evaluation.metrics import classification_metrics, confusions
from campus_dashboard.nlp.intent import IntentClassifier
from campus_dashboard.utils.io import read_json, write_json


class IntentBenchmark:
    """Scores the keyword classifier against a labelled set of utterances."""

    def __init__(self, classifier: IntentClassifier | None = None) -> None:
        self.classifier = classifier or IntentClassifier()

    def run(self, gold_path: Path, output_path: Path | None = None) -> dict[str, Any]:
        rows = read_json(gold_path)

        y_true: list[str] = []
        y_pred: list[str] = []
        details: list[dict[str, Any]] = []

        for row in rows:
            prediction = self.classifier.predict(row["utterance"])
            expected = row.get("intent", "unmatched")
            y_true.append(expected)
            y_pred.append(prediction.intent.value)
            details.append(
                {
                    "utterance": row["utterance"],
                    "expected": expected,
                    "predicted": prediction.intent.value,
                    "keyword": prediction.keyword,
                    "correct": expected == prediction.intent.value,
                }
            )

        report = {
            "samples": len(details),
            "intent": classification_metrics(y_true, y_pred) if details else {},
            "confusions": confusions(y_true, y_pred),
            "details": details,
        }
        if output_path is not None:
            write_json(output_path, report)
        return report
