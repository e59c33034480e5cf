#!/usr/bin/env python
"""
scripts/run_migrations.py
--------------------------
Applies db/schema.sql (the location snapshot tables) to the configured
Postgres database.

Usage:
    python scripts/run_migrations.py [--dry-run]

Exit codes:
    0 — schema applied successfully (or dry-run completed)
    1 — connection failed or SQL error

Environment variables (same as db/connection.py):
    POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB, POSTGRES_USER, POSTGRES_PASSWORD

All statements run in one transaction; re-running is a no-op because every
CREATE uses IF NOT EXISTS.
"""

from __future__ import annotations

import argparse
import pathlib
import re
import sys

_BACKEND_DIR = pathlib.Path(__file__).resolve().parent.parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

import psycopg2

import config


SQL_FILE = _BACKEND_DIR / "db" / "schema.sql"


def strip_comments(sql: str) -> str:
    sql = re.sub(r"/\*.*?\*/", "", sql, flags=re.DOTALL)
    return re.sub(r"--[^\n]*", "", sql)


def split_statements(sql: str) -> list[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


def load_statements(path: pathlib.Path = SQL_FILE) -> list[str]:
    if not path.exists():
        raise FileNotFoundError(f"SQL file not found: {path}")
    return split_statements(strip_comments(path.read_text(encoding="utf-8")))


def run(dry_run: bool = False, path: pathlib.Path = SQL_FILE) -> int:
    statements = load_statements(path)

    print(f"[migrations] SQL file   : {path}")
    print(f"[migrations] Statements : {len(statements)}")
    print(f"[migrations] Target DB  : {config.POSTGRES_DB} @ "
          f"{config.POSTGRES_HOST}:{config.POSTGRES_PORT}")

    if dry_run:
        print("[migrations] DRY-RUN — no changes applied.")
        for i, stmt in enumerate(statements, 1):
            preview = stmt[:80].replace("\n", " ")
            print(f"  [{i:03d}] {preview}...")
        return len(statements)

    conn = psycopg2.connect(
        host=config.POSTGRES_HOST,
        port=config.POSTGRES_PORT,
        dbname=config.POSTGRES_DB,
        user=config.POSTGRES_USER,
        password=config.POSTGRES_PASSWORD,
    )
    try:
        with conn.cursor() as cur:
            for i, stmt in enumerate(statements, 1):
                try:
                    cur.execute(stmt)
                except psycopg2.Error as exc:
                    print(f"  [✗] Statement {i} failed: {exc.pgerror or exc}")
                    raise
                print(f"  [✓] {stmt[:60].replace(chr(10), ' ')}")
        conn.commit()
        print(f"[migrations] Done — {len(statements)} statements applied.")
    except Exception:
        conn.rollback()
        print("[migrations] ROLLED BACK due to error.")
        raise
    finally:
        conn.close()
    return len(statements)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the location snapshot tables.")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print statements without executing them.",
    )
    args = parser.parse_args()
    try:
        run(dry_run=args.dry_run)
    except Exception as exc:
        print(f"[migrations] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
