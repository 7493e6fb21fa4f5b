"""PostgreSQL client for running the profile store against a local database.

Used instead of Supabase for profiles when USE_LOCAL_DB=1. The schema mirrors the hosted
one (``user_profiles`` and ``gyms``); access policies are not enforced here.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Generator

from psycopg2 import pool
from psycopg2.extras import RealDictCursor


class PostgresClient:
    """Thread-safe connection pool with small query helpers.

    The helpers are blocking; async callers run them with ``asyncio.to_thread``.
    """

    def __init__(self, dsn: str | None = None) -> None:
        maxconn = int(os.getenv("POSTGRES_POOL_SIZE", "5"))
        dsn = dsn or os.getenv("DATABASE_URL")
        if dsn:
            self._pool = pool.ThreadedConnectionPool(1, maxconn, dsn=dsn)
            return
        self._pool = pool.ThreadedConnectionPool(
            1,
            maxconn,
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "gym_league"),
            user=os.getenv("POSTGRES_USER", "gym_league"),
            password=os.getenv("POSTGRES_PASSWORD", "gym_league_dev_password"),
        )

    @contextmanager
    def cursor(self) -> Generator[Any, None, None]:
        """Yield a dict cursor; commits on success, rolls back on error."""
        conn = self._pool.getconn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def fetch_one(self, query: str, params: tuple = ()) -> dict[str, Any] | None:
        with self.cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return dict(row) if row else None

    def insert_returning(self, query: str, params: tuple = ()) -> dict[str, Any]:
        row = self.fetch_one(query, params)
        if row is None:
            raise RuntimeError("Insert query did not return a row")
        return row

    def close(self) -> None:
        self._pool.closeall()


_POSTGRES_CLIENT: PostgresClient | None = None


def get_postgres_client() -> PostgresClient:
    """Shared client for the local database, created on first use."""
    global _POSTGRES_CLIENT
    if _POSTGRES_CLIENT is None:
        _POSTGRES_CLIENT = PostgresClient()
    return _POSTGRES_CLIENT


def close_postgres_client() -> None:
    global _POSTGRES_CLIENT
    if _POSTGRES_CLIENT is not None:
        _POSTGRES_CLIENT.close()
        _POSTGRES_CLIENT = None
