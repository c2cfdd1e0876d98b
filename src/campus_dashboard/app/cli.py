from __future__ import annotations

import argparse
import json
from pathlib import Path

from campus_dashboard.config import EVAL_DATA_DIR, PROCESSED_DATA_DIR, SETTINGS, ensure_directories
from campus_dashboard.data_models import Category
from campus_dashboard.utils.logging import configure_logging


def open_store():
    from campus_dashboard.db.snapshot_store import SqliteSnapshotStore

    store = SqliteSnapshotStore(SETTINGS.db_path)
    store.init()
    return store


def open_source():
    """REST source when one is configured, otherwise the local sqlite store."""
    from campus_dashboard.ingestion.rest_source import RestSnapshotSource

    if SETTINGS.snapshot_rest_url:
        return RestSnapshotSource(SETTINGS.snapshot_rest_url, api_key=SETTINGS.snapshot_rest_key)
    return open_store()


def seed(scope: str, random_seed: int) -> dict[str, int]:
    from campus_dashboard.ingestion.sample_data import SyntheticCampusGenerator

    store = open_store()
    generated = SyntheticCampusGenerator(random_seed=random_seed).generate(scope)
    summary = {}
    for category, rows in generated.items():
        store.clear(category, scope)
        summary[category.value] = store.upsert(category, rows, scope=scope)
    return summary


def import_rows(category: str, path: Path, scope: str | None) -> int:
    from campus_dashboard.utils.io import read_json, rows_from_payload

    rows = rows_from_payload(read_json(path))
    return open_store().upsert(category, rows, scope=scope)


def run_ask(scope: str, user_id: str) -> None:
    from campus_dashboard.auth import StaticAuthContext
    from campus_dashboard.data_models import User
    from campus_dashboard.llm import build_responder
    from campus_dashboard.nlp.router import IntentRouter

    router = IntentRouter(open_source(), StaticAuthContext(User(user_id=user_id, scope=scope)), build_responder())

    print(f"Campus Dashboard assistant for {scope} (type 'exit' to quit)")
    while True:
        utterance = input("\nYou: ").strip()
        if utterance.lower() in {"exit", "quit"}:
            break
        if not utterance:
            continue
        response = router.handle(utterance)
        print(f"\nAssistant: {response.text}")
        print(f"Intent: {response.intent} | Target: {response.target or '-'}")


def run_rank(scope: str, destination: str, current_floor: int) -> dict:
    from campus_dashboard.data_models import Destination
    from campus_dashboard.recommend.elevators import ElevatorRankingEngine, find_destination, score_band

    source = open_source()
    catalog = [item for item in source.fetch(Category.CLASSROOM, scope) if isinstance(item, Destination)]
    target = find_destination(catalog, destination)
    if target is None:
        raise SystemExit(f"Unknown destination {destination!r} for scope {scope}")

    ranked = ElevatorRankingEngine().rank_in_building(source.fetch(Category.ELEVATOR, scope), target, current_floor)
    return {
        "destination": target.to_dict(),
        "current_floor": current_floor,
        "ranked": [{**item.to_dict(), "band": score_band(item.score)} for item in ranked],
    }


def run_eval(gold_path: Path, out_path: Path) -> None:
    from campus_dashboard.evaluation.benchmark import IntentBenchmark

    report = IntentBenchmark().run(gold_path=gold_path, output_path=out_path)
    print(json.dumps({key: report[key] for key in ("samples", "intent", "confusions")}, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Campus Dashboard")
    parser.add_argument("command", choices=["seed", "import", "ask", "rank", "evaluate"])
    parser.add_argument("--scope", default=SETTINGS.default_scope)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--category", choices=[category.value for category in Category])
    parser.add_argument("--file")
    parser.add_argument("--user-id", default="cli")
    parser.add_argument("--destination")
    parser.add_argument("--current-floor", type=int, default=SETTINGS.default_current_floor)
    parser.add_argument("--gold-path", default=str(EVAL_DATA_DIR / "intent_gold.json"))
    parser.add_argument("--report-path", default=str(PROCESSED_DATA_DIR / "intent_report.json"))
    args = parser.parse_args()

    configure_logging()
    ensure_directories()

    if args.command == "seed":
        print(json.dumps(seed(args.scope, args.seed), indent=2))
    elif args.command == "import":
        if not args.category or not args.file:
            parser.error("import needs --category and --file")
        upserted = import_rows(args.category, Path(args.file), args.scope)
        print(f"Upserted {upserted} {args.category} rows for {args.scope}")
    elif args.command == "ask":
        run_ask(args.scope, args.user_id)
    elif args.command == "rank":
        if not args.destination:
            parser.error("rank needs --destination")
        print(json.dumps(run_rank(args.scope, args.destination, args.current_floor), indent=2))
    elif args.command == "evaluate":
        run_eval(gold_path=Path(args.gold_path), out_path=Path(args.report_path))


if __name__ == "__main__":
    main()
