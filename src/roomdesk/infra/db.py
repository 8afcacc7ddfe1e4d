"""Database access layer using psycopg2.

Provides:
- get_conn(): Open a standalone connection from DATABASE_URL (scripts)
- get_pool(): Lazily built, bounded ThreadedConnectionPool shared by requests
- txn(): Context manager that borrows a pooled connection for one operation
- execute(): Parameterized query execution
- fetchone/fetchall: Query helpers
"""

import os
import re
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Sequence
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.pool import ThreadedConnectionPool

_DEFAULT_POOL_MIN = 1
_DEFAULT_POOL_MAX = 10

_LIBPQ_PASSWORD = re.compile(r"(^|\s)password\s*=")

_pool: ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()


def _dsn_has_password(dsn: str) -> bool:
    """Check whether a URL or libpq key=value DSN already carries a password."""
    if "://" in dsn:
        return bool(urlparse(dsn).password)
    return bool(_LIBPQ_PASSWORD.search(dsn))


def _connect_args() -> tuple[str, dict[str, str]]:
    """Resolve DSN and extra connect kwargs from the environment.

    DB_PASSWORD is only applied when the DSN itself has no password, so
    secrets can be mounted separately from the connection string.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    dsn = os.environ.get("DATABASE_URL")
    if not dsn:
        raise RuntimeError("DATABASE_URL environment variable not set")

    kwargs: dict[str, str] = {}
    password = os.environ.get("DB_PASSWORD")
    if password and not _dsn_has_password(dsn):
        kwargs["password"] = password
    return dsn, kwargs


def _pool_bounds() -> tuple[int, int]:
    minconn = int(os.environ.get("DB_POOL_MIN", _DEFAULT_POOL_MIN))
    maxconn = int(os.environ.get("DB_POOL_MAX", _DEFAULT_POOL_MAX))
    if minconn < 0 or maxconn < 1 or minconn > maxconn:
        raise RuntimeError(
            f"Invalid pool bounds DB_POOL_MIN={minconn} DB_POOL_MAX={maxconn}"
        )
    return minconn, maxconn


def get_conn() -> PgConnection:
    """Open a new, unpooled database connection.

    Used by one-off tools that must not depend on the request pool.

    Returns:
        psycopg2 connection object.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: On connection failure.
    """
    dsn, kwargs = _connect_args()
    return psycopg2.connect(dsn, **kwargs)


def get_pool() -> ThreadedConnectionPool:
    """Return the process-wide connection pool, creating it on first use.

    Bounded by DB_POOL_MIN / DB_POOL_MAX. Once every connection is lent out,
    getconn() raises psycopg2.pool.PoolError instead of blocking.
    """
    global _pool

    with _pool_lock:
        if _pool is None or _pool.closed:
            dsn, kwargs = _connect_args()
            minconn, maxconn = _pool_bounds()
            _pool = ThreadedConnectionPool(minconn, maxconn, dsn, **kwargs)
        return _pool


def close_pool() -> None:
    """Close every pooled connection. Safe to call when no pool exists."""
    global _pool

    with _pool_lock:
        if _pool is not None and not _pool.closed:
            _pool.closeall()
        _pool = None


@contextmanager
def txn(conn: PgConnection | None = None) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    If conn is None, borrows a connection from the pool and hands it back on
    every exit path. A connection that died mid-operation is discarded
    rather than returned for reuse.
    Commits on successful exit, rolls back on exception.

    Args:
        conn: Optional existing connection. If None, borrows a pooled one.

    Yields:
        Cursor for executing queries within the transaction.

    Example:
        with txn() as cur:
            cur.execute("DELETE FROM rooms WHERE id = %s", (7,))
    """
    pool = None
    if conn is None:
        pool = get_pool()
        conn = pool.getconn()

    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        if not conn.closed:
            conn.rollback()
        raise
    finally:
        if pool is not None:
            pool.putconn(conn, close=bool(conn.closed))


def execute(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> int:
    """Execute a parameterized query.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders.
        params: Query parameters.

    Returns:
        Number of rows affected.
    """
    cur.execute(query, params)
    return cur.rowcount


def fetchone(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> tuple[Any, ...] | None:
    """Execute query and fetch one row.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders.
        params: Query parameters.

    Returns:
        Single row tuple or None if no results.
    """
    cur.execute(query, params)
    return cur.fetchone()


def fetchall(
    cur: PgCursor,
    query: str,
    params: Sequence[Any] | None = None,
) -> list[tuple[Any, ...]]:
    """Execute query and fetch all rows.

    Args:
        cur: Database cursor.
        query: SQL query with %s placeholders.
        params: Query parameters.

    Returns:
        List of row tuples.
    """
    cur.execute(query, params)
    return cur.fetchall()
