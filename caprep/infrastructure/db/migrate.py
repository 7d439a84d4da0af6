"""
Plain-SQL migrations.

    python -m caprep.infrastructure.db.migrate up
    python -m caprep.infrastructure.db.migrate status
    python -m caprep.infrastructure.db.migrate new add_index
"""
from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from caprep.settings import get_settings

MIGRATIONS_DIR = Path(
    os.environ.get("MIGRATIONS_DIR", Path(__file__).resolve().parents[3] / "migrations")
)
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def pending(conn: psycopg.Connection) -> list[Path]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations")
        done = {r[0] for r in cur.fetchall()}
    conn.commit()
    return [p for p in sorted(MIGRATIONS_DIR.glob("*.sql")) if p.stem not in done]


def cmd_up(_: argparse.Namespace) -> int:
    with psycopg.connect(get_settings().database_url, autocommit=False) as conn:
        to_run = pending(conn)
        if not to_run:
            print("No pending migrations.")
            return 0
        for path in to_run:
            print(f"==> applying {path.stem}", flush=True)
            try:
                with conn.cursor() as cur:
                    cur.execute(path.read_text(encoding="utf-8"))
                    cur.execute(
                        "INSERT INTO schema_migrations (version) VALUES (%s)", (path.stem,)
                    )
                conn.commit()
            except psycopg.Error as e:
                conn.rollback()
                print(f"failed {path.stem}: {e}", file=sys.stderr)
                return 1
    return 0


def cmd_status(_: argparse.Namespace) -> int:
    with psycopg.connect(get_settings().database_url) as conn:
        waiting = pending(conn)
    print("=== Pending ===")
    for path in waiting:
        print(path.stem)
    return 0


def cmd_new(args: argparse.Namespace) -> int:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = MIGRATIONS_DIR / f"{ts}_{args.name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    print(path)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="caprep-migrate")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("up").set_defaults(func=cmd_up)
    sub.add_parser("status").set_defaults(func=cmd_status)
    new = sub.add_parser("new")
    new.add_argument("name")
    new.set_defaults(func=cmd_new)
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
