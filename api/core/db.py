"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Every helper returns a `Result` envelope. Driver exceptions are logged and
converted here; they never reach the models or the routers.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import settings
from .result import ACQUIRE_TIMEOUT, DATABASE_ERROR, QueryResult, Result

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

# Everything the driver (or the socket under it) can raise for a statement.
DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


@dataclass(frozen=True)
class Statement:
    sql: str
    args: tuple[Any, ...] = ()


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def connect_kwargs() -> dict[str, Any]:
    """
    DATABASE_URL wins when set; otherwise the DB_* variables are used.
    """
    url = os.environ.get("DATABASE_URL", "").strip()
    if url:
        return {"dsn": _sanitize_database_url(url)}
    return {
        "host": settings.db_host(),
        "port": settings.db_port(),
        "user": settings.db_user(),
        "password": settings.db_password(),
        "database": settings.db_name(),
    }


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    _pool = await asyncpg.create_pool(
        **connect_kwargs(),
        min_size=min(settings.db_pool_min(), settings.db_pool_max()),
        max_size=settings.db_pool_max(),
        command_timeout=settings.db_command_timeout_s(),
    )
    logger.info(
        "db_pool_ready min_size=%s max_size=%s",
        settings.db_pool_min(),
        settings.db_pool_max(),
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("db_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _affected_rows(status: str) -> int:
    # Command tags look like "INSERT 0 1", "UPDATE 3", "DELETE 0", "SELECT 5".
    parts = (status or "").split()
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return 0


def _error_code(exc: BaseException) -> str:
    sqlstate = getattr(exc, "sqlstate", None)
    if sqlstate:
        return str(sqlstate)
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno, DATABASE_ERROR)
    return DATABASE_ERROR


def _short_sql(sql: str) -> str:
    return " ".join(sql.split())[:200]


def _failure(event: str, exc: BaseException, sql: str) -> Result:
    message = str(exc) or type(exc).__name__
    code = _error_code(exc)
    logger.warning("%s code=%s error=%s sql=%s", event, code, message, _short_sql(sql))
    return Result.fail(message, code)


async def _acquire() -> asyncpg.Connection:
    return await pool().acquire(timeout=settings.db_acquire_timeout_s())


def _acquire_timeout(sql: str) -> Result:
    logger.warning(
        "db_acquire_timeout timeout_s=%s sql=%s",
        settings.db_acquire_timeout_s(),
        _short_sql(sql),
    )
    return Result.fail("Timed out waiting for a database connection.", ACQUIRE_TIMEOUT)


async def _run(conn: asyncpg.Connection, sql: str, args: Sequence[Any]) -> QueryResult:
    # A prepared statement gives us both the rows and the command tag.
    stmt = await conn.prepare(sql)
    records = await stmt.fetch(*args)
    status = stmt.get_statusmsg() or ""
    rows = [_record_to_dict(r) for r in records]

    inserted_id = None
    if status.startswith("INSERT") and rows:
        inserted_id = rows[0].get("id")

    return QueryResult(
        rows=rows,
        status=status,
        affected_rows=_affected_rows(status),
        inserted_id=inserted_id,
    )


async def query(sql: str, *args: Any) -> Result:
    """
    Run one statement and return Result(data=QueryResult).

    Writes that need the generated key must say `RETURNING id`.
    """
    try:
        conn = await _acquire()
    except asyncio.TimeoutError:
        return _acquire_timeout(sql)
    except DRIVER_ERRORS as exc:
        return _failure("db_connect_failed", exc, sql)

    try:
        return Result.ok(await _run(conn, sql, args))
    except DRIVER_ERRORS as exc:
        return _failure("db_query_failed", exc, sql)
    finally:
        await pool().release(conn)


async def fetch_one(sql: str, *args: Any) -> Result:
    """
    Run a query and return the first row as a dict (or None) in `data`.
    """
    result = await query(sql, *args)
    if not result.success:
        return result
    rows = result.data.rows
    return Result.ok(rows[0] if rows else None)


async def fetch_all(sql: str, *args: Any) -> Result:
    """
    Run a query and return all rows as a list of dicts in `data`.
    """
    result = await query(sql, *args)
    if not result.success:
        return result
    return Result.ok(result.data.rows)


async def execute(sql: str, *args: Any) -> Result:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and report write metadata.
    """
    result = await query(sql, *args)
    if not result.success:
        return result
    qr: QueryResult = result.data
    return Result.ok(qr, insert_id=qr.inserted_id, affected_rows=qr.affected_rows)


async def run_transaction(statements: Sequence[Statement]) -> Result:
    """
    Run statements in order on one connection inside a transaction.

    The first failure rolls everything back; later statements are not sent.
    """
    first_sql = statements[0].sql if statements else ""
    try:
        conn = await _acquire()
    except asyncio.TimeoutError:
        return _acquire_timeout(first_sql)
    except DRIVER_ERRORS as exc:
        return _failure("db_connect_failed", exc, first_sql)

    results: list[QueryResult] = []
    current = first_sql
    try:
        async with conn.transaction():
            for stmt in statements:
                current = stmt.sql
                results.append(await _run(conn, stmt.sql, stmt.args))
    except DRIVER_ERRORS as exc:
        return _failure(f"db_transaction_rolled_back step={len(results)}", exc, current)
    finally:
        await pool().release(conn)

    return Result.ok(results)


async def check_connection() -> bool:
    result = await fetch_one("SELECT 1 + 1 AS result")
    return bool(result.success and result.data and result.data.get("result") == 2)
