"""
db/connection.py
-----------------
psycopg2 ThreadedConnectionPool — singleton, shared across the process.

The itinerary engine only reads the location snapshot, so connections are
borrowed in read-only mode by default:

    from db.connection import get_conn

    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT id, name FROM locations")

Environment variables (set in config.py):
    POSTGRES_HOST       default: localhost
    POSTGRES_PORT       default: 5432
    POSTGRES_DB         default: itinerary
    POSTGRES_USER       default: postgres
    POSTGRES_PASSWORD   default: ""
    POSTGRES_MIN_CONN   default: 1
    POSTGRES_MAX_CONN   default: 5
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg2
import psycopg2.pool

import config

# Module-level singleton; initialised lazily on first call to get_conn()
_pool: psycopg2.pool.ThreadedConnectionPool | None = None


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    """Return the singleton connection pool, creating it on first call."""
    global _pool
    if _pool is None or _pool.closed:
        _pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=config.POSTGRES_MIN_CONN,
            maxconn=config.POSTGRES_MAX_CONN,
            host=config.POSTGRES_HOST,
            port=config.POSTGRES_PORT,
            dbname=config.POSTGRES_DB,
            user=config.POSTGRES_USER,
            password=config.POSTGRES_PASSWORD,
        )
    return _pool


@contextmanager
def get_conn(readonly: bool = True) -> Iterator[psycopg2.extensions.connection]:
    """
    Borrow a connection from the pool for the duration of the block.

    Read-only sessions are rolled back on exit; writable sessions commit on
    clean exit and roll back on exception. The connection always returns to
    the pool.
    """
    pool = get_pool()
    conn = pool.getconn()
    conn.set_session(readonly=readonly)
    try:
        yield conn
        if readonly:
            conn.rollback()
        else:
            conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close all connections in the pool (call at application shutdown)."""
    global _pool
    if _pool and not _pool.closed:
        _pool.closeall()
    _pool = None
