"""
Ingest a saved model completion into a store.

Reads the completion text from a file (or stdin), runs the ingestion
pipeline and prints the result as JSON.
Usage:
    python -m scripts.ingest_file completion.txt --user-id 42
    python -m scripts.ingest_file - --user-id 42 --store supabase < completion.txt
Exit status: 0 ok, 2 unusable model output, 3 persistence failure,
4 store not configured.
"""
from __future__ import annotations
import argparse, json, sys
from datetime import date
from pathlib import Path

from fitplan.config import Settings
from fitplan.errors import ModelOutputError, PersistenceError, SchemaError, MalformedJson, StoreError
from fitplan.local_store import LocalStore
from fitplan.log import setup_logging
from fitplan.models import OwnerContext
from fitplan.pipeline import ingest_and_persist
from fitplan.supabase_utils import SupabaseStore


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Ingest a model completion into the program tables.")
    p.add_argument("input", help="completion text file, or '-' for stdin")
    p.add_argument("--user-id", required=True)
    p.add_argument("--intake-id", default=None)
    p.add_argument("--start-date", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    p.add_argument("--store", choices=("local", "supabase"), default="local")
    p.add_argument("--database-url", default=None, help="overrides DATABASE_URL for --store local")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    raw = sys.stdin.read() if args.input == "-" else Path(args.input).read_text(encoding="utf-8")
    try:
        if args.store == "supabase":
            store = SupabaseStore.from_settings(settings)
        else:
            store = LocalStore(args.database_url or settings.database_url)
    except StoreError as exc:
        print(json.dumps({"error": "config", "store": args.store, "detail": str(exc)}, ensure_ascii=False, indent=2))
        return 4

    owner_kwargs = {"user_id": args.user_id, "intake_id": args.intake_id}
    if args.start_date:
        owner_kwargs["start_date"] = args.start_date
    owner = OwnerContext(**owner_kwargs)

    try:
        result = ingest_and_persist(raw, owner, store, end_marker=settings.end_marker)
    except ModelOutputError as exc:
        err = {"error": "unusable_output", "type": type(exc).__name__, "detail": str(exc)}
        if isinstance(exc, SchemaError):
            err["path"] = exc.path
        if isinstance(exc, MalformedJson):
            err["snippet"] = exc.snippet
        print(json.dumps(err, ensure_ascii=False, indent=2))
        return 2
    except PersistenceError as exc:
        print(json.dumps({
            "error": "persistence",
            "table": exc.table,
            "detail": str(exc.cause),
            "program_id": exc.program_id,
            "partial": exc.partial,
            "retryable": exc.retryable,
        }, ensure_ascii=False, indent=2))
        return 3

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
